# File: dispatch_tracker/repositories/base_repository.py

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Shared read/create access for one mapped table.

    Subclasses either set ``model`` as a class attribute or pass it in. Every
    table handled here has an integer ``id`` primary key.

    Attributes:
        session (Session): Session the repository reads and writes through
        model (Type[T]): Mapped class of the table
    """

    model: Optional[Type[T]] = None

    def __init__(self, session: Session, model: Optional[Type[T]] = None):
        self.session = session
        if model is not None:
            self.model = model

    def _get_model(self) -> Type[T]:
        if self.model is None:
            raise TypeError(f"{type(self).__name__} has no model configured")
        return self.model

    def _where_equal(self, stmt: Select, filters: Dict[str, Any]) -> Select:
        """Add ``column == value`` clauses; keys that are not columns are ignored."""
        model_class = self._get_model()
        for column, value in filters.items():
            if hasattr(model_class, column):
                stmt = stmt.where(getattr(model_class, column) == value)
        return stmt

    def get_by_id(self, id: int) -> Optional[T]:
        model_class = self._get_model()
        stmt = select(model_class).where(model_class.id == id)
        return self.session.execute(stmt).scalar_one_or_none()

    def list(self, skip: int = 0, limit: Optional[int] = 100, **filters) -> List[T]:
        """
        Rows matching ``filters`` in primary-key order.

        Args:
            skip (int): Rows to skip
            limit (Optional[int]): Page size; None returns every remaining row
            **filters: Column equality filters

        Returns:
            List[T]: Matching rows
        """
        model_class = self._get_model()
        stmt = self._where_equal(select(model_class), filters)
        stmt = stmt.order_by(model_class.id).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def create(self, data: Dict[str, Any]) -> T:
        """Insert a row from ``data`` (unknown keys dropped), commit and reload it."""
        model_class = self._get_model()
        columns = model_class.__table__.columns.keys()
        entity = model_class(**{key: value for key, value in data.items() if key in columns})
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def count(self, **filters) -> int:
        model_class = self._get_model()
        stmt = self._where_equal(select(func.count(model_class.id)), filters)
        return self.session.execute(stmt).scalar_one()
