import logging
import os
import sqlite3
from utils.constants import DB_FILE, DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._seed_defaults(conn)
        conn.commit()
        logger.debug("Database initialized at %s", self.db_path)

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS expenses (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                amount               REAL NOT NULL CHECK(amount > 0),
                description          TEXT NOT NULL,
                category             TEXT NOT NULL,
                date                 TEXT NOT NULL,
                recurring_expense_id INTEGER REFERENCES recurring_expenses(id) ON DELETE SET NULL,
                created_at           TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS budgets (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      REAL NOT NULL CHECK(amount > 0),
                period      TEXT NOT NULL DEFAULT 'monthly'
                            CHECK(period IN ('weekly','monthly','quarterly','custom')),
                start_date  TEXT NOT NULL,
                end_date    TEXT,
                is_active   INTEGER NOT NULL DEFAULT 1,
                created_at  TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS recurring_expenses (
                id                    INTEGER PRIMARY KEY AUTOINCREMENT,
                amount                REAL NOT NULL CHECK(amount > 0),
                description           TEXT NOT NULL,
                category              TEXT NOT NULL,
                interval_days         INTEGER CHECK(interval_days IS NULL OR interval_days IN (7, 15, 30)),
                execution_dates       TEXT,
                start_date            TEXT NOT NULL,
                end_date              TEXT,
                next_due_date         TEXT NOT NULL,
                is_active             INTEGER NOT NULL DEFAULT 1,
                requires_confirmation INTEGER NOT NULL DEFAULT 1,
                last_executed         TEXT,
                notify_days_before    INTEGER NOT NULL DEFAULT 1,
                created_at            TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at            TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS pending_recurring_expenses (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                recurring_expense_id INTEGER NOT NULL REFERENCES recurring_expenses(id) ON DELETE CASCADE,
                scheduled_date       TEXT NOT NULL,
                amount               REAL NOT NULL,
                description          TEXT NOT NULL,
                category             TEXT NOT NULL,
                status               TEXT NOT NULL DEFAULT 'pending'
                                     CHECK(status IN ('pending','confirmed','skipped','overdue')),
                created_at           TEXT NOT NULL DEFAULT (datetime('now')),
                UNIQUE(recurring_expense_id, scheduled_date)
            );

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_expenses_date       ON expenses(date);
            CREATE INDEX IF NOT EXISTS idx_expenses_category   ON expenses(category);
            CREATE INDEX IF NOT EXISTS idx_budgets_active      ON budgets(is_active);
            CREATE INDEX IF NOT EXISTS idx_recurring_next_due  ON recurring_expenses(next_due_date);
            CREATE INDEX IF NOT EXISTS idx_recurring_active    ON recurring_expenses(is_active);
            CREATE INDEX IF NOT EXISTS idx_pending_status      ON pending_recurring_expenses(status);
            CREATE INDEX IF NOT EXISTS idx_pending_scheduled   ON pending_recurring_expenses(scheduled_date);
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for key, value in DEFAULT_SETTINGS:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and creates if needed) the database file.

        db_folder: if provided, the DB file is stored in that directory instead of CWD.
        """
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
