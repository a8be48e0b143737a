# backend/core/session.py
import logging
from typing import Callable, List, Optional

from core.utils import ANONYMOUS_CREATOR

logger = logging.getLogger(__name__)


class SessionContext:
    """
    当前用户身份。显式传给需要身份的组件，而不是做成全局单例。
    凭证校验由身份提供方完成，这里只保存结果并通知订阅者。
    """

    def __init__(self, user_id: Optional[str] = None, display_name: str = ""):
        self.user_id = user_id
        self.display_name = display_name
        self._listeners: List[Callable[["SessionContext"], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id) and self.user_id != ANONYMOUS_CREATOR

    @property
    def creator_id(self) -> str:
        return self.user_id if self.is_authenticated else ANONYMOUS_CREATOR

    def sign_in(self, user_id: str, display_name: str = ""):
        self.user_id = user_id
        self.display_name = display_name
        self._notify()

    def sign_out(self):
        self.user_id = None
        self.display_name = ""
        self._notify()

    def subscribe(self, callback: Callable[["SessionContext"], None]) -> Callable[[], None]:
        """注册身份变化回调，返回取消订阅函数"""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self):
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    @classmethod
    def from_headers(cls, user_id: Optional[str], user_name: Optional[str]) -> "SessionContext":
        return cls(user_id=user_id or None, display_name=user_name or "")
