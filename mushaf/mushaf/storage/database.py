"""
SQLite storage handle for the corpus and its annotations.

A ``Database`` is created once by the application and passed explicitly to
every store; nothing in the library holds a global connection.
"""

import logging
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any, Optional, Union

from mushaf.exceptions import (
    ConflictError,
    ForeignKeyError,
    SchemaError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Params = Optional[Union[tuple, list, dict[str, Any]]]


class Database:
    """
    Manages SQLite connections, schema and transactions.

    Connections run in autocommit mode, so every single statement is atomic on
    its own. Multi-statement work goes through ``transaction()``.
    """

    _CURRENT_SCHEMA_VERSION = 1
    _SCHEMA_NAME = "quran_admin_schema"

    _SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS db_schema_version(
  schema_name TEXT PRIMARY KEY NOT NULL,
  version     INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS surahs(
  id               INTEGER PRIMARY KEY CHECK(id BETWEEN 1 AND 114),
  name_arabic      TEXT NOT NULL,
  name_english     TEXT NOT NULL,
  name_translation TEXT NOT NULL,
  revelation_type  TEXT NOT NULL CHECK(revelation_type IN ('meccan','medinan')),
  total_ayahs      INTEGER NOT NULL CHECK(total_ayahs >= 1),
  bismillah_pre    INTEGER NOT NULL DEFAULT 1,
  created_at       DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at       DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS ayahs(
  id              INTEGER PRIMARY KEY AUTOINCREMENT,
  surah_id        INTEGER NOT NULL REFERENCES surahs(id) ON DELETE CASCADE,
  ayah_number     INTEGER NOT NULL CHECK(ayah_number >= 1),
  number_in_quran INTEGER NOT NULL CHECK(number_in_quran BETWEEN 1 AND 6236),
  text            TEXT NOT NULL CHECK(length(text) > 0),
  text_uthmani    TEXT,
  juz_number      INTEGER,
  hizb_number     INTEGER,
  rub_number      INTEGER,
  created_at      DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at      DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  UNIQUE(surah_id, ayah_number),
  UNIQUE(number_in_quran)
);

CREATE TABLE IF NOT EXISTS languages(
  id         INTEGER PRIMARY KEY AUTOINCREMENT,
  code       TEXT UNIQUE NOT NULL,
  name       TEXT NOT NULL,
  direction  TEXT NOT NULL DEFAULT 'ltr' CHECK(direction IN ('ltr','rtl')),
  created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS translation_sources(
  id          INTEGER PRIMARY KEY AUTOINCREMENT,
  name        TEXT UNIQUE NOT NULL,
  author      TEXT,
  language_id INTEGER NOT NULL REFERENCES languages(id),
  description TEXT,
  status      TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active','deactivated')),
  created_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS translations(
  id          INTEGER PRIMARY KEY AUTOINCREMENT,
  ayah_id     INTEGER NOT NULL REFERENCES ayahs(id) ON DELETE CASCADE,
  source_id   INTEGER NOT NULL REFERENCES translation_sources(id),
  text        TEXT NOT NULL CHECK(length(text) > 0),
  footnotes   TEXT,
  is_approved INTEGER NOT NULL DEFAULT 0,
  approved_by INTEGER,
  approved_at DATETIME,
  created_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  UNIQUE(ayah_id, source_id)
);
CREATE INDEX IF NOT EXISTS idx_translations_source ON translations(source_id);

CREATE TABLE IF NOT EXISTS reciters(
  id          INTEGER PRIMARY KEY AUTOINCREMENT,
  name        TEXT UNIQUE NOT NULL,
  name_arabic TEXT,
  style       TEXT,
  country     TEXT,
  status      TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active','deactivated')),
  created_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS audio_files(
  id          INTEGER PRIMARY KEY AUTOINCREMENT,
  ayah_id     INTEGER NOT NULL REFERENCES ayahs(id) ON DELETE CASCADE,
  reciter_id  INTEGER NOT NULL REFERENCES reciters(id),
  file_path   TEXT NOT NULL,
  file_name   TEXT NOT NULL,
  file_size   INTEGER,
  format      TEXT NOT NULL DEFAULT 'mp3',
  is_active   INTEGER NOT NULL DEFAULT 1,
  uploaded_by INTEGER,
  uploaded_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  updated_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
  UNIQUE(ayah_id, reciter_id)
);

CREATE TABLE IF NOT EXISTS activity_logs(
  id          INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id     INTEGER,
  action      TEXT NOT NULL,
  entity_type TEXT,
  entity_id   INTEGER,
  old_values  TEXT,
  new_values  TEXT,
  ip_address  TEXT,
  user_agent  TEXT,
  created_at  DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_activity_user ON activity_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_activity_action ON activity_logs(action);
"""

    def __init__(self, db_path: Union[str, Path]):
        self.is_memory_db = str(db_path) == ":memory:"
        if self.is_memory_db:
            # Named shared-cache database so every thread-local connection sees the same data
            self.db_path_str = f"file:mushaf-{uuid.uuid4().hex}?mode=memory&cache=shared"
        else:
            path = Path(db_path).resolve()
            path.parent.mkdir(parents=True, exist_ok=True)
            self.db_path_str = str(path)

        self._local = threading.local()
        self._anchor: Optional[sqlite3.Connection] = None
        if self.is_memory_db:
            # The in-memory database lives as long as one connection to it is open
            self._anchor = self._connect()

        self._initialize_schema()

    def __repr__(self) -> str:
        return f"Database({self.db_path_str!r})"

    # --- Connection Management ---
    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self.db_path_str,
                uri=self.is_memory_db,
                isolation_level=None,
                check_same_thread=False,
                timeout=15,
            )
            conn.row_factory = sqlite3.Row
            if not self.is_memory_db:
                conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.Error as e:
            logger.error("Failed to connect to database %s: %s", self.db_path_str, e)
            raise StorageError(f"Failed to connect to database '{self.db_path_str}': {e}") from e
        logger.debug("Opened SQLite connection to %s for thread %s", self.db_path_str, threading.get_ident())
        return conn

    def get_connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            try:
                conn.execute("SELECT 1")
            except (sqlite3.ProgrammingError, sqlite3.OperationalError):
                logger.warning("Connection to %s became unusable. Reopening.", self.db_path_str)
                conn = None
        if conn is None:
            conn = self._connect()
            self._local.conn = conn
        return conn

    def close_connection(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            return
        try:
            if conn.in_transaction:
                logger.warning("Closing %s inside an open transaction. Rolling back.", self.db_path_str)
                conn.rollback()
            conn.close()
        except sqlite3.Error as e:
            logger.warning("Error while closing connection to %s: %s", self.db_path_str, e)
        finally:
            self._local.conn = None

    def close(self) -> None:
        """Close this thread's connection and, for in-memory databases, drop the data."""
        self.close_connection()
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    # --- Query Execution ---
    def execute_query(self, query: str, params: Params = None) -> sqlite3.Cursor:
        conn = self.get_connection()
        logger.debug("Executing SQL: %s Params: %s", query[:300], str(params)[:200])
        try:
            return conn.execute(query, params or ())
        except sqlite3.IntegrityError as e:
            logger.warning("Integrity constraint violation: %s Error: %s", query[:200], e)
            raise self._translate_integrity_error(e) from e
        except OverflowError as e:
            raise ValidationError(f"Value out of range for storage: {e}") from e
        except sqlite3.Error as e:
            logger.error("Query execution failed: %s Error: %s", query[:200], e)
            raise StorageError(f"Query execution failed: {e}") from e

    def execute_many(self, query: str, params_list: list[Params]) -> Optional[sqlite3.Cursor]:
        if not params_list:
            logger.debug("execute_many called with no parameter sets.")
            return None
        conn = self.get_connection()
        logger.debug("Executing many: %s with %s sets.", query[:150], len(params_list))
        try:
            return conn.executemany(query, params_list)
        except sqlite3.IntegrityError as e:
            logger.warning("Integrity constraint violation during batch: %s Error: %s", query[:150], e)
            raise self._translate_integrity_error(e) from e
        except OverflowError as e:
            raise ValidationError(f"Value out of range for storage: {e}") from e
        except sqlite3.Error as e:
            logger.error("Execute many failed: %s Error: %s", query[:150], e)
            raise StorageError(f"Execute many failed: {e}") from e

    def fetch_one(self, query: str, params: Params = None) -> Optional[sqlite3.Row]:
        return self.execute_query(query, params).fetchone()

    def fetch_all(self, query: str, params: Params = None) -> list[sqlite3.Row]:
        return self.execute_query(query, params).fetchall()

    @staticmethod
    def _translate_integrity_error(e: sqlite3.IntegrityError) -> Exception:
        message = str(e)
        lowered = message.lower()
        if "unique constraint failed" in lowered:
            return ConflictError(f"Unique constraint violation: {message}")
        if "foreign key constraint failed" in lowered:
            return ForeignKeyError(f"Foreign key violation: {message}")
        if "not null constraint failed" in lowered or "check constraint failed" in lowered:
            return ValidationError(f"Constraint violation: {message}")
        return StorageError(f"Database constraint violation: {message}")

    # --- Transaction Context ---
    def transaction(self) -> "TransactionContextManager":
        return TransactionContextManager(self)

    # --- Schema ---
    def _get_db_version(self, conn: sqlite3.Connection) -> int:
        try:
            row = conn.execute(
                "SELECT version FROM db_schema_version WHERE schema_name = ? LIMIT 1",
                (self._SCHEMA_NAME,),
            ).fetchone()
            return row["version"] if row else 0
        except sqlite3.Error as e:
            if "no such table" in str(e).lower():
                return 0
            raise SchemaError(f"Could not determine schema version for '{self._SCHEMA_NAME}': {e}") from e

    def _initialize_schema(self) -> None:
        conn = self.get_connection()
        version = self._get_db_version(conn)
        if version == self._CURRENT_SCHEMA_VERSION:
            logger.debug("Schema '%s' is current (v%s) for %s", self._SCHEMA_NAME, version, self.db_path_str)
            return
        if version > self._CURRENT_SCHEMA_VERSION:
            raise SchemaError(
                f"Database schema v{version} is newer than supported v{self._CURRENT_SCHEMA_VERSION}"
            )

        logger.info("Applying schema v%s for '%s' to %s", self._CURRENT_SCHEMA_VERSION, self._SCHEMA_NAME, self.db_path_str)
        try:
            conn.executescript(self._SCHEMA_SQL)
            conn.execute(
                "INSERT INTO db_schema_version(schema_name, version) VALUES (?, ?) "
                "ON CONFLICT(schema_name) DO UPDATE SET version = excluded.version",
                (self._SCHEMA_NAME, self._CURRENT_SCHEMA_VERSION),
            )
        except sqlite3.Error as e:
            logger.error("Schema application failed: %s", e)
            raise SchemaError(f"Schema setup failed for '{self._SCHEMA_NAME}': {e}") from e

        final_version = self._get_db_version(conn)
        if final_version != self._CURRENT_SCHEMA_VERSION:
            raise SchemaError(
                f"Schema version check failed. Expected {self._CURRENT_SCHEMA_VERSION}, got {final_version}"
            )


class TransactionContextManager:
    """``with db.transaction() as conn:`` helper. Only the outermost block commits or rolls back."""

    def __init__(self, db: Database):
        self.db = db
        self.conn: Optional[sqlite3.Connection] = None
        self.is_outermost_transaction = False

    def __enter__(self) -> sqlite3.Connection:
        self.conn = self.db.get_connection()
        if not self.conn.in_transaction:
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StorageError(f"Could not begin transaction: {e}") from e
            self.is_outermost_transaction = True
            logger.debug("Transaction started on thread %s", threading.get_ident())
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.is_outermost_transaction:
            return False

        if exc_type:
            logger.debug("Transaction failed, rolling back: %s - %s", exc_type.__name__, exc_val)
            try:
                self.conn.rollback()
            except sqlite3.Error as rb_err:
                logger.critical("Rollback FAILED on thread %s: %s", threading.get_ident(), rb_err)
            return False

        try:
            self.conn.commit()
            logger.debug("Transaction committed on thread %s", threading.get_ident())
        except sqlite3.Error as commit_err:
            logger.error("Commit FAILED, attempting rollback: %s", commit_err)
            try:
                self.conn.rollback()
            except sqlite3.Error as rb_err:
                logger.critical("Rollback after failed commit also FAILED: %s", rb_err)
            raise StorageError(f"Commit failed: {commit_err}") from commit_err
        return False
