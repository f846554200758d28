"""
User-scoped persistence collaborator.

Every service operation receives a Store instead of a raw Session. The store
filters every read by the owning user's id and tags every insert with it, so
one landlord can never read or touch another landlord's rows.

Each mutating call is a single committed write. There is no cross-call
transaction: callers that touch several rows (e.g. tenant + property) apply
the writes in sequence and must report a partial failure themselves.

SQLAlchemy errors are translated into the domain taxonomy (app.core.errors):
    OperationalError / InterfaceError / DisconnectionError -> TransientIOError
    StaleDataError (version_id_col mismatch)               -> ConflictError
    IntegrityError                                          -> InconsistentStateError
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import (
    ConflictError,
    InconsistentStateError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class Store:
    def __init__(self, db: Session, user_id: Optional[str]):
        self.db = db
        self._user_id = user_id

    def get_current_user_id(self) -> Optional[str]:
        return self._user_id

    def _require_user(self) -> str:
        if not self._user_id:
            raise ValidationError("An authenticated user is required")
        return self._user_id

    @contextmanager
    def _translate_errors(self, action: str, label: str):
        try:
            yield
        except StaleDataError as e:
            self.db.rollback()
            logger.warning("Stale %s on %s: %s", label, action, e)
            raise ConflictError(f"{label} was modified by another request; reload and retry") from e
        except IntegrityError as e:
            self.db.rollback()
            logger.exception("Integrity error on %s %s", action, label)
            raise InconsistentStateError(f"Could not {action} {label}: integrity constraint violated") from e
        except (OperationalError, InterfaceError, DisconnectionError) as e:
            self.db.rollback()
            logger.exception("Database unavailable during %s %s", action, label)
            raise TransientIOError(f"Database unavailable while trying to {action} {label}") from e

    def _scoped(self, model, filters: Optional[Dict[str, Any]] = None, where: Iterable = ()):
        q = self.db.query(model).filter(model.user_id == self._require_user())
        for name, value in (filters or {}).items():
            column = getattr(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                q = q.filter(column.in_(list(value)))
            else:
                q = q.filter(column == value)
        for criterion in where:
            q = q.filter(criterion)
        return q

    # --- reads ---

    def find(self, model, id: str):
        """Row by id within the user's scope, or None."""
        with self._translate_errors("read", model.__name__):
            return self._scoped(model, {"id": id}).first()

    def get(self, model, id: str):
        obj = self.find(model, id)
        if obj is None:
            raise NotFoundError(f"{model.__name__} not found")
        return obj

    def query(
        self,
        model,
        filters: Optional[Dict[str, Any]] = None,
        where: Iterable = (),
        order_by: Sequence = (),
    ) -> List[Any]:
        """
        filters: column name -> value (a list/tuple/set value means IN).
        where:   extra SQLAlchemy criteria, e.g. Payment.due_date < today.
        """
        with self._translate_errors("read", model.__name__):
            q = self._scoped(model, filters, where)
            if order_by:
                q = q.order_by(*order_by)
            return q.all()

    def count(self, model, filters: Optional[Dict[str, Any]] = None, where: Iterable = ()) -> int:
        with self._translate_errors("count", model.__name__):
            return self._scoped(model, filters, where).count()

    # --- writes ---

    def insert(self, model, record: Dict[str, Any]):
        obj = model(**record)
        obj.user_id = self._require_user()
        with self._translate_errors("create", model.__name__):
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        return obj

    def update(self, model, id: str, fields: Dict[str, Any], expected_version: Optional[int] = None):
        obj = self.get(model, id)
        if expected_version is not None and getattr(obj, "version", None) != expected_version:
            raise ConflictError(
                f"{model.__name__} was modified by another request; reload and retry"
            )
        with self._translate_errors("update", model.__name__):
            for k, v in fields.items():
                setattr(obj, k, v)
            self.db.commit()
            self.db.refresh(obj)
        return obj

    def delete(self, model, id: str) -> None:
        obj = self.get(model, id)
        with self._translate_errors("delete", model.__name__):
            self.db.delete(obj)
            self.db.commit()

    def delete_where(self, model, filters: Dict[str, Any]) -> int:
        """Delete every scoped row matching filters in one commit; returns how many."""
        rows = self.query(model, filters)
        with self._translate_errors("delete", model.__name__):
            for obj in rows:
                self.db.delete(obj)
            self.db.commit()
        return len(rows)
