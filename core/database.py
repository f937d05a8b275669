"""
core/database.py -- The one explicitly constructed database handle.

Every store receives a Database instance instead of building its own engine,
so the process holds exactly one connection pool and startup/shutdown are
explicit: connect() in the lifespan, close() on the way out. Nothing here is
a module-level singleton.

Tables are declared by the stores that own them (auth/store.py,
portfolio/store.py) on the shared `metadata` below; each store calls
create_tables() from its constructor so the schema exists before first use.

Usage:
    db = Database("sqlite:///portfolio.db").connect()
    users = UserStore(db)
    content = ContentStore(db)
    db.close()
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger("portfolio.db")

metadata = MetaData()


def _sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign keys on every new SQLite connection.

    SQLite PRAGMAs are per-connection and not inherited from the pool, so
    this runs on each "connect" event. foreign_keys=ON is what makes the
    ON DELETE CASCADE clauses on content tables take effect.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    def __init__(self, db_url: str) -> None:
        self.url = db_url
        self._engine: Engine | None = None

    def connect(self) -> "Database":
        """Create the engine. Returns self so construction can be chained."""
        if self._engine is not None:
            return self
        connect_args: dict = {}
        if self.url.startswith("sqlite"):
            # Route handlers run in Starlette's threadpool, so a pooled
            # connection may be used from a thread other than its creator.
            connect_args["check_same_thread"] = False
        self._engine = create_engine(self.url, connect_args=connect_args)
        if self.url.startswith("sqlite"):
            event.listen(self._engine, "connect", _sqlite_pragmas)
        return self

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database.connect() must be called before use.")
        return self._engine

    def create_tables(self) -> None:
        """Create any registered tables that do not exist yet. Idempotent."""
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True when a trivial round trip to the database succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
