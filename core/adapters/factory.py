# core/adapters/factory.py
import importlib
import pkgutil
import inspect
import logging
from .base import BaseStoreBackend

logger = logging.getLogger(__name__)


class StoreBackendFactory:
    _backends = {}  # name -> backend_class
    _discovered = False

    @classmethod
    def register(cls, name):
        """装饰器：注册远端存储后端"""

        def wrapper(backend_class):
            if not issubclass(backend_class, BaseStoreBackend):
                raise TypeError(f"{backend_class} must inherit from BaseStoreBackend")
            cls._backends[name] = backend_class
            return backend_class

        return wrapper

    @classmethod
    def get_backend(cls, name: str, config=None) -> BaseStoreBackend:
        if not cls._discovered:
            cls._discover_backends()
        backend_class = cls._backends.get(name)
        if not backend_class:
            raise ValueError(f"Unsupported remote backend: {name}")
        return backend_class(config or {})

    @classmethod
    def available(cls):
        if not cls._discovered:
            cls._discover_backends()
        return sorted(cls._backends)

    @classmethod
    def _discover_backends(cls):
        """自动扫描 adapters 包下的所有模块，收集被 @register 装饰的类"""
        cls._discovered = True
        package = importlib.import_module("..adapters", __package__)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            if module_name.startswith("__") or module_name in ("base", "factory"):
                continue
            try:
                module = importlib.import_module(f"..adapters.{module_name}", __package__)
            except ImportError as e:
                logger.warning(f"跳过后端模块 {module_name}，因为依赖缺失: {e}")
                continue
            for name, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, BaseStoreBackend) and obj is not BaseStoreBackend:
                    if hasattr(obj, "backend_name"):
                        cls._backends[obj.backend_name] = obj
