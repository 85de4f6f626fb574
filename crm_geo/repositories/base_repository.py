"""
Base repository for the persistent store
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from crm_geo.database.connection import SessionFactory, get_db_session

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class BaseRepository:
    """Common session handling and native upsert"""

    def __init__(self, model_class, session_factory: Optional[SessionFactory] = None):
        """
        Args:
            model_class: SQLAlchemy model
            session_factory: Session factory, None when no store is configured
        """
        self.model_class = model_class
        self.session_factory = session_factory

    @property
    def is_configured(self) -> bool:
        return self.session_factory is not None

    def _session(self):
        if self.session_factory is None:
            raise RuntimeError(f"No persistent store configured for {self.model_class.__tablename__}")
        return get_db_session(self.session_factory)

    def upsert(
        self,
        values: Dict[str, Any],
        conflict_columns: List[str],
        session: Session = None
    ) -> None:
        """
        INSERT ... ON CONFLICT (conflict_columns) DO UPDATE.

        Every non-key column of ``values`` is overwritten on conflict
        (latest write wins).
        """
        if session is None:
            with self._session() as session:
                return self._upsert(values, conflict_columns, session)
        return self._upsert(values, conflict_columns, session)

    def _upsert(self, values: Dict[str, Any], conflict_columns: List[str], session: Session) -> None:
        dialect = session.get_bind().dialect.name
        insert_fn = _INSERT_BY_DIALECT.get(dialect)
        if insert_fn is None:
            raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

        now = datetime.utcnow()
        row = dict(values, created_at=now, updated_at=now)
        stmt = insert_fn(self.model_class).values(**row)
        update_columns = {
            column: stmt.excluded[column]
            for column in row
            if column not in conflict_columns and column != "created_at"
        }
        stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=update_columns)
        session.execute(stmt)
        session.commit()
