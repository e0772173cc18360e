from presto_sync.db.base import Base
from presto_sync.db.engine import (
    DatabaseConfig,
    configure_sqlite,
    create_db_engine,
    create_session_factory,
)

__all__ = [
    "Base",
    "DatabaseConfig",
    "configure_sqlite",
    "create_db_engine",
    "create_session_factory",
]
