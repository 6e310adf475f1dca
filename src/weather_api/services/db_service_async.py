from typing import Any, Dict, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.weather_api.models import Base


class Database:
    """Pooled database access shared by the location and weather stores.

    Owns a single SQLAlchemy `Engine` (and therefore one connection pool) and
    a session factory. Stores open a short-lived `Session` per operation in a
    `with` block, so the connection is returned to the pool whether the
    operation succeeds or fails. Blocking work is run by the stores through
    `asyncio.to_thread`.

    Attributes:
        db_url (str): Database connection URL.
        engine (Engine): SQLAlchemy Engine instance.
    """

    def __init__(
        self,
        db_url: str,
        engine_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.db_url: str = db_url
        options: Dict[str, Any] = {"echo": False, "pool_pre_ping": True}
        options.update(engine_options or {})
        self.engine: Engine = create_engine(db_url, **options)
        self._SessionLocal = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    def session(self) -> Session:
        """Return a new SQLAlchemy `Session` bound to the pooled engine."""
        return self._SessionLocal()

    def create_tables(self) -> None:
        """Create the locations, weather and conditions tables if missing."""
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
