import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List

from hwasanscore.config.settings import settings
from hwasanscore.core.models import AcademicRecord
from hwasanscore.core.record import new_record
from hwasanscore.core.rules import RULESET_VERSION
from hwasanscore.services.serialization import SerializationError, record_from_dict, record_to_dict


logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class Storage:
    def __init__(self, db_path: str = "hwasan.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._owner_locks: Dict[str, threading.Lock] = {}
        self._owner_locks_guard = threading.Lock()
        self._init_schema()

    @classmethod
    def from_settings(cls) -> "Storage":
        return cls(settings.db_path)

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.executescript(
            """
            CREATE TABLE IF NOT EXISTS records (
              owner_id TEXT PRIMARY KEY,
              payload TEXT NOT NULL,
              ruleset_version TEXT NOT NULL,
              updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS bookmarks (
              owner_id TEXT NOT NULL,
              school_id TEXT NOT NULL,
              created_at TEXT NOT NULL,
              PRIMARY KEY(owner_id, school_id)
            );
            """
        )
        self.conn.commit()

    @contextmanager
    def editing(self, owner_id: str) -> Iterator[None]:
        """Hold the owner's lock across a load, edit and save."""
        with self._owner_locks_guard:
            lock = self._owner_locks.setdefault(owner_id, threading.Lock())
        with lock:
            yield

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def save_record(self, owner_id: str, record: AcademicRecord) -> None:
        payload = json.dumps(record_to_dict(record), ensure_ascii=False)
        with self._lock:
            self.conn.execute(
                """INSERT INTO records(owner_id, payload, ruleset_version, updated_at)
                   VALUES(?,?,?,?)
                   ON CONFLICT(owner_id) DO UPDATE SET
                       payload=excluded.payload,
                       ruleset_version=excluded.ruleset_version,
                       updated_at=excluded.updated_at""",
                (owner_id, payload, RULESET_VERSION, self._now()),
            )
            self.conn.commit()
        logger.debug("Saved record for %s", owner_id)

    def load_record(self, owner_id: str) -> AcademicRecord:
        with self._lock:
            cur = self.conn.execute("SELECT payload, ruleset_version FROM records WHERE owner_id=?", (owner_id,))
            row = cur.fetchone()
        if not row:
            return new_record()

        if row["ruleset_version"] != RULESET_VERSION:
            logger.info(
                "Record for %s was saved under rule set %s (current %s)",
                owner_id,
                row["ruleset_version"],
                RULESET_VERSION,
            )
        try:
            return record_from_dict(json.loads(row["payload"]))
        except (json.JSONDecodeError, SerializationError) as exc:
            logger.error("Stored record for %s is unreadable: %s", owner_id, exc)
            raise StorageError(f"Stored record for {owner_id} is corrupted") from exc

    def delete_record(self, owner_id: str) -> bool:
        with self._lock:
            cur = self.conn.execute("DELETE FROM records WHERE owner_id=?", (owner_id,))
            self.conn.execute("DELETE FROM bookmarks WHERE owner_id=?", (owner_id,))
            self.conn.commit()
        return cur.rowcount > 0

    def add_bookmark(self, owner_id: str, school_id: str) -> None:
        with self._lock:
            self.conn.execute(
                "INSERT OR IGNORE INTO bookmarks(owner_id, school_id, created_at) VALUES(?,?,?)",
                (owner_id, school_id, self._now()),
            )
            self.conn.commit()

    def remove_bookmark(self, owner_id: str, school_id: str) -> None:
        with self._lock:
            self.conn.execute("DELETE FROM bookmarks WHERE owner_id=? AND school_id=?", (owner_id, school_id))
            self.conn.commit()

    def list_bookmarks(self, owner_id: str) -> List[str]:
        with self._lock:
            cur = self.conn.execute("SELECT school_id FROM bookmarks WHERE owner_id=? ORDER BY rowid", (owner_id,))
            return [row["school_id"] for row in cur.fetchall()]

    def close(self) -> None:
        self.conn.close()
