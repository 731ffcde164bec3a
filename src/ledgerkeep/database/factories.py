"""Builds the ledger store for a SQLite file."""

import logging
import os
from pathlib import Path
from typing import Optional

from ledgerkeep.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "LEDGERKEEP_DB_PATH"
DEFAULT_DB_DIR = Path.home() / ".ledgerkeep"
DEFAULT_DB_NAME = "ledgerkeep.db"


def default_database_path() -> Path:
    """``~/.ledgerkeep/ledgerkeep.db``, creating the directory on first use."""
    DEFAULT_DB_DIR.mkdir(exist_ok=True)
    return DEFAULT_DB_DIR / DEFAULT_DB_NAME


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Open (creating if needed) a SQLite-backed ledger.

    The path is resolved from the argument, then the LEDGERKEEP_DB_PATH
    environment variable, then the per-user default location.
    """
    path = database_path or os.environ.get(DB_PATH_ENV) or str(default_database_path())
    logger.debug("Using ledger database at %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
