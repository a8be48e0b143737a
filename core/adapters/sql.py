# core/adapters/sql.py
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from sqlalchemy import DateTime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .base import BaseStoreBackend, BackendError, DuplicateRow
from .factory import StoreBackendFactory
from ..utils import parse_timestamp, to_iso

logger = logging.getLogger(__name__)


@StoreBackendFactory.register("sql")
class SQLStoreBackend(BaseStoreBackend):
    """直接通过 SQLAlchemy 访问 projects 表（生产为 Postgres，本地为 SQLite）"""
    backend_name = "sql"

    def __init__(self, config=None):
        super().__init__(config)
        # 延迟导入，避免循环依赖
        from backend.models.project import Project
        self.model = Project
        session_factory = self.config.get("session_factory")
        if session_factory is None:
            from backend.db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory
        self._datetime_columns = {
            c.name for c in Project.__table__.columns if isinstance(c.type, DateTime)
        }

    def _to_dict(self, obj) -> Dict[str, Any]:
        row = {}
        for column in self.model.__table__.columns:
            value = getattr(obj, column.name)
            if isinstance(value, datetime):
                value = to_iso(value)
            row[column.name] = value
        return row

    def _coerce(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """ISO 字符串 -> datetime，未知列直接丢弃"""
        columns = self.model.__table__.columns.keys()
        coerced = {}
        for key, value in values.items():
            if key not in columns:
                continue
            if key in self._datetime_columns and value is not None:
                value = parse_timestamp(value)
            coerced[key] = value
        return coerced

    def find_by_title_and_creator(self, title: str, creator_id: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            obj = db.query(self.model).filter(
                self.model.title == title,
                self.model.creator_id == creator_id
            ).first()
            return self._to_dict(obj) if obj else None
        except SQLAlchemyError as e:
            raise BackendError(f"Database query error: {e}") from e
        finally:
            db.close()

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            obj = self.model(**self._coerce(row))
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return self._to_dict(obj)
        except IntegrityError as e:
            db.rollback()
            raise DuplicateRow(f"Duplicate project row: {e.orig}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise BackendError(f"Database insert error: {e}") from e
        finally:
            db.close()

    def update(self, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            obj = db.query(self.model).filter(self.model.id == row_id).first()
            if not obj:
                raise BackendError(f"Project row not found: {row_id}")
            for field, value in self._coerce(changes).items():
                setattr(obj, field, value)
            db.commit()
            db.refresh(obj)
            return self._to_dict(obj)
        except SQLAlchemyError as e:
            db.rollback()
            raise BackendError(f"Database update error: {e}") from e
        finally:
            db.close()

    def select_all(self) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            rows = db.query(self.model).order_by(self.model.created_at.desc()).all()
            return [self._to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            raise BackendError(f"Database query error: {e}") from e
        finally:
            db.close()

    def select_by_creator(self, creator_id: str) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            rows = db.query(self.model).filter(
                self.model.creator_id == creator_id
            ).order_by(self.model.created_at.desc()).all()
            return [self._to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            raise BackendError(f"Database query error: {e}") from e
        finally:
            db.close()

    def get(self, row_id: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            obj = db.query(self.model).filter(self.model.id == row_id).first()
            return self._to_dict(obj) if obj else None
        except SQLAlchemyError as e:
            raise BackendError(f"Database query error: {e}") from e
        finally:
            db.close()

    def ping(self) -> bool:
        db = self.session_factory()
        try:
            db.query(self.model.id).limit(1).all()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False
        finally:
            db.close()
