from __future__ import annotations

import os

from packages.core.storage.sqlite import SQLiteReminderStore


def db_path() -> str:
    data_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "data"))
    return os.getenv("USOUL_DB_PATH", os.path.join(data_dir, "usoul.db"))


def default_store() -> SQLiteReminderStore:
    return SQLiteReminderStore(db_path=db_path())
