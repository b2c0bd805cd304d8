"""
Database access.

The process entry point owns one `Database` (engine + session factory) and
stores it on `app.state.database`; request handlers receive sessions through
the `get_db` dependency instead of importing a module-level engine.
"""

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.url = url
        if engine is None:
            connect_args = {}
            engine_kwargs = {"echo": echo, "pool_pre_ping": True}
            if url.startswith("sqlite"):
                connect_args = {"check_same_thread": False}
                # In-memory SQLite must share one connection or every session sees an empty DB
                if url in ("sqlite://", "sqlite:///:memory:"):
                    engine_kwargs["poolclass"] = StaticPool
            engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        return self.session_factory()

    def create_tables(self):
        """Create all tables in the database"""
        # Import models so they register with Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready (%s)", self.dialect)

    def drop_tables(self):
        from . import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """Dependency to get database session"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
