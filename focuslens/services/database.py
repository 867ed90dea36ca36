import asyncio
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from focuslens.config.settings import settings
from focuslens.models.activity import ActivityFilter, ActivityRecord, AppCategory
from focuslens.models.insights import ProductivityInsight
from focuslens.models.metrics import SystemMetrics
from focuslens.models.session import FocusSession, ProductivityBlock, WorkSession
from focuslens.services.errors import DatabaseError

logger = logging.getLogger(__name__)

MIGRATIONS = [
    """
    -- Raw activity observations
    CREATE TABLE IF NOT EXISTS activities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER NOT NULL,
        app_name TEXT NOT NULL,
        window_title TEXT,
        duration INTEGER NOT NULL,
        category TEXT,
        is_idle INTEGER DEFAULT 0,
        url TEXT,
        cpu_usage REAL,
        memory_usage REAL,
        focus_score REAL,
        productivity_rating TEXT,
        context_switches INTEGER,
        keystrokes INTEGER,
        mouse_clicks INTEGER
    );

    -- Application categories
    CREATE TABLE IF NOT EXISTS app_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        app_name TEXT NOT NULL UNIQUE,
        category TEXT NOT NULL,
        productivity_rating TEXT NOT NULL,
        is_user_defined INTEGER DEFAULT 0,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL
    );

    -- Completed work sessions
    CREATE TABLE IF NOT EXISTS work_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        start_time INTEGER NOT NULL,
        end_time INTEGER NOT NULL,
        duration INTEGER NOT NULL,
        focus_score REAL,
        productivity_rating TEXT,
        context_switches INTEGER,
        break_duration INTEGER,
        dominant_app TEXT,
        dominant_category TEXT
    );

    -- Focus session tracking
    CREATE TABLE IF NOT EXISTS focus_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        start_time INTEGER NOT NULL,
        end_time INTEGER NOT NULL,
        duration INTEGER NOT NULL,
        app_name TEXT NOT NULL,
        category TEXT,
        interruptions INTEGER DEFAULT 0,
        focus_score REAL,
        keystrokes INTEGER DEFAULT 0,
        mouse_clicks INTEGER DEFAULT 0
    );

    -- Fixed-width productivity blocks
    CREATE TABLE IF NOT EXISTS productivity_blocks (
        id TEXT PRIMARY KEY,
        start_time INTEGER NOT NULL,
        end_time INTEGER NOT NULL,
        duration INTEGER NOT NULL,
        type TEXT NOT NULL,
        focus_score REAL,
        dominant_activity TEXT,
        interruptions INTEGER,
        context_switches INTEGER,
        productivity_rating TEXT,
        energy_level TEXT,
        quality_score INTEGER
    );

    -- Generated insights
    CREATE TABLE IF NOT EXISTS insights (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        actionable INTEGER DEFAULT 0,
        priority TEXT NOT NULL,
        timestamp INTEGER NOT NULL
    );

    -- System resource samples
    CREATE TABLE IF NOT EXISTS system_metrics (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER NOT NULL,
        cpu_usage REAL,
        memory_usage REAL,
        disk_usage REAL,
        network_activity REAL,
        battery_level REAL,
        is_charging INTEGER
    );

    -- Create indexes if they don't exist
    CREATE INDEX IF NOT EXISTS idx_activities_timestamp ON activities(timestamp);
    CREATE INDEX IF NOT EXISTS idx_activities_app ON activities(app_name);
    CREATE INDEX IF NOT EXISTS idx_work_sessions_time ON work_sessions(start_time);
    CREATE INDEX IF NOT EXISTS idx_focus_sessions_time ON focus_sessions(start_time);
    CREATE INDEX IF NOT EXISTS idx_system_metrics_time ON system_metrics(timestamp);
    """
]

ACTIVITY_COLUMNS = [
    "id", "timestamp", "app_name", "window_title", "duration", "category",
    "is_idle", "url", "cpu_usage", "memory_usage", "focus_score",
    "productivity_rating", "context_switches", "keystrokes", "mouse_clicks"
]

class DatabaseConnectionError(DatabaseError):
    """Exception raised when database connection fails"""
    pass

class QueryError(DatabaseError):
    """Exception raised when a database query fails"""
    pass

class DatabaseManager:
    def __init__(self, db_path=None):
        """Initialize database manager"""
        self.db_path = str(db_path or settings.DEFAULT_DB_PATH)
        self._memory_conn: Optional[sqlite3.Connection] = None
        self._memory_lock = threading.Lock()
        logger.info(f"Initialized DatabaseManager with db_path: {self.db_path}")
        self.initialize()

    def initialize(self):
        """Initialize database schema"""
        try:
            with self._connection() as conn:
                for migration in MIGRATIONS:
                    conn.executescript(migration)
                conn.commit()
            logger.info("Database initialization complete")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise DatabaseError(f"Failed to initialize database: {e}")

    def get_connection(self) -> sqlite3.Connection:
        """Get a database connection for the calling thread"""
        # An in-memory database only lives as long as its connection
        if self.db_path == ":memory:":
            if self._memory_conn is None:
                self._memory_conn = sqlite3.connect(":memory:", check_same_thread=False)
            return self._memory_conn

        db_path = Path(self.db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Could not open {db_path}: {e}")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        """Yield a connection, serialising access to the shared in-memory one"""
        if self.db_path == ":memory:":
            with self._memory_lock:
                yield self.get_connection()
            return
        conn = self.get_connection()
        try:
            yield conn
        finally:
            conn.close()

    def _execute_write(self, sql: str, params: List[Any]) -> Optional[int]:
        with self._connection() as conn:
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.lastrowid
            except Exception:
                conn.rollback()
                raise

    def _fetch_all(self, sql: str, params: List[Any]) -> List[sqlite3.Row]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.row_factory = sqlite3.Row
            return cursor.execute(sql, params).fetchall()

    # Activities

    async def save_activity(self, activity: ActivityRecord) -> int:
        """Persist an activity record and return its row id"""
        try:
            return await asyncio.to_thread(self._save_activity, activity)
        except Exception as e:
            logger.error(f"Failed to save activity: {e}")
            raise DatabaseError(f"Failed to save activity: {e}")

    def _save_activity(self, activity: ActivityRecord) -> int:
        data = activity.model_dump(exclude={"id"})
        data["is_idle"] = int(data["is_idle"])
        columns = list(data.keys())
        placeholders = ", ".join("?" for _ in columns)
        return self._execute_write(
            f"INSERT INTO activities ({', '.join(columns)}) VALUES ({placeholders})",
            [data[c] for c in columns]
        )

    async def get_activities(self, activity_filter: Optional[ActivityFilter] = None) -> List[ActivityRecord]:
        """Get activities matching a filter, oldest first"""
        try:
            return await asyncio.to_thread(self._get_activities, activity_filter or ActivityFilter())
        except Exception as e:
            logger.error(f"Failed to get activities: {e}")
            raise QueryError(f"Failed to get activities: {e}")

    def _get_activities(self, activity_filter: ActivityFilter) -> List[ActivityRecord]:
        clauses = []
        params: List[Any] = []
        if activity_filter.start is not None:
            clauses.append("timestamp >= ?")
            params.append(activity_filter.start)
        if activity_filter.end is not None:
            clauses.append("timestamp <= ?")
            params.append(activity_filter.end)
        if activity_filter.app_names:
            names = sorted(activity_filter.app_names)
            clauses.append(f"app_name IN ({', '.join('?' for _ in names)})")
            params.extend(names)
        if activity_filter.categories:
            categories = sorted(activity_filter.categories)
            clauses.append(f"category IN ({', '.join('?' for _ in categories)})")
            params.extend(categories)

        sql = f"SELECT {', '.join(ACTIVITY_COLUMNS)} FROM activities"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY timestamp ASC, id ASC"
        if activity_filter.limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([activity_filter.limit, activity_filter.offset])
        elif activity_filter.offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(activity_filter.offset)

        rows = self._fetch_all(sql, params)
        return [
            ActivityRecord(**{k: v for k, v in dict(row).items() if v is not None})
            for row in rows
        ]

    # App categories

    async def get_app_categories(self) -> List[AppCategory]:
        try:
            return await asyncio.to_thread(self._get_app_categories)
        except Exception as e:
            logger.error(f"Failed to get app categories: {e}")
            raise QueryError(f"Failed to get app categories: {e}")

    def _get_app_categories(self) -> List[AppCategory]:
        rows = self._fetch_all(
            """
            SELECT id, app_name, category, productivity_rating,
                   is_user_defined, created_at, updated_at
            FROM app_categories ORDER BY app_name
            """,
            []
        )
        return [AppCategory(**dict(row)) for row in rows]

    async def save_app_category(self, category: AppCategory) -> None:
        """Insert or replace the category for an app"""
        try:
            await asyncio.to_thread(
                self._execute_write,
                """
                INSERT INTO app_categories
                (app_name, category, productivity_rating, is_user_defined, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(app_name) DO UPDATE SET
                    category = excluded.category,
                    productivity_rating = excluded.productivity_rating,
                    is_user_defined = excluded.is_user_defined,
                    updated_at = excluded.updated_at
                """,
                [
                    category.app_name,
                    category.category,
                    category.productivity_rating,
                    int(category.is_user_defined),
                    category.created_at,
                    category.updated_at
                ]
            )
        except Exception as e:
            logger.error(f"Failed to save app category: {e}")
            raise DatabaseError(f"Failed to save app category: {e}")

    # Derived artifacts

    async def save_work_session(self, session: WorkSession) -> int:
        return await self._save_dataclass("work_sessions", session, "work session")

    async def save_focus_session(self, session: FocusSession) -> int:
        return await self._save_dataclass("focus_sessions", session, "focus session")

    async def save_productivity_block(self, block: ProductivityBlock) -> int:
        return await self._save_dataclass("productivity_blocks", block, "productivity block", replace=True)

    async def save_insight(self, insight: ProductivityInsight) -> int:
        return await self._save_dataclass("insights", insight, "insight", replace=True)

    async def save_system_metrics(self, metrics: SystemMetrics) -> int:
        return await self._save_dataclass("system_metrics", metrics, "system metrics")

    async def _save_dataclass(self, table: str, record: Any, label: str, replace: bool = False) -> int:
        data = {
            k: int(v) if isinstance(v, bool) else v
            for k, v in asdict(record).items()
        }
        columns = list(data.keys())
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        sql = f"{verb} INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})"
        try:
            return await asyncio.to_thread(self._execute_write, sql, [data[c] for c in columns])
        except Exception as e:
            logger.error(f"Failed to save {label}: {e}")
            raise DatabaseError(f"Failed to save {label}: {e}")

    async def get_work_sessions(self, start: int, end: int) -> List[WorkSession]:
        try:
            rows = await asyncio.to_thread(
                self._fetch_all,
                """
                SELECT start_time, end_time, duration, focus_score, productivity_rating,
                       context_switches, break_duration, dominant_app, dominant_category
                FROM work_sessions
                WHERE start_time >= ? AND start_time <= ?
                ORDER BY start_time
                """,
                [start, end]
            )
            return [WorkSession(**dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to get work sessions: {e}")
            raise QueryError(f"Failed to get work sessions: {e}")

    async def get_insights(self, limit: int = 50) -> List[ProductivityInsight]:
        try:
            rows = await asyncio.to_thread(
                self._fetch_all,
                """
                SELECT id, type, title, description, actionable, priority, timestamp
                FROM insights ORDER BY timestamp DESC LIMIT ?
                """,
                [limit]
            )
            return [
                ProductivityInsight(**{**dict(row), "actionable": bool(row["actionable"])})
                for row in rows
            ]
        except Exception as e:
            logger.error(f"Failed to get insights: {e}")
            raise QueryError(f"Failed to get insights: {e}")

    # Maintenance

    async def cleanup_old_data(self, days: Optional[int] = None) -> int:
        """Delete activities and system metrics older than the retention window"""
        try:
            retention_days = days or settings.DATA_RETENTION_DAYS
            cutoff = int((datetime.now() - timedelta(days=retention_days)).timestamp() * 1000)
            return await asyncio.to_thread(self._do_cleanup, cutoff)
        except Exception as e:
            logger.error(f"Failed to clean up old data: {e}")
            raise DatabaseError(f"Data cleanup failed: {e}")

    def _do_cleanup(self, cutoff: int) -> int:
        with self._connection() as conn:
            try:
                deleted = conn.execute("DELETE FROM activities WHERE timestamp < ?", [cutoff]).rowcount
                conn.execute("DELETE FROM system_metrics WHERE timestamp < ?", [cutoff])
                conn.commit()
                return deleted
            except Exception:
                conn.rollback()
                raise

    def get_database_stats(self) -> Dict[str, Any]:
        """Get row counts per table and the tracked time range"""
        try:
            with self._connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                """)
                tables = {}
                for (table_name,) in cursor.fetchall():
                    cursor.execute(f"SELECT COUNT(*) FROM {table_name}")
                    tables[table_name] = {"row_count": cursor.fetchone()[0]}

                cursor.execute("SELECT MIN(timestamp), MAX(timestamp), COUNT(*) FROM activities")
                oldest, newest, total = cursor.fetchone()

                return {
                    "tables": tables,
                    "time_range": {
                        "oldest": oldest,
                        "newest": newest,
                        "total_records": total
                    }
                }
        except Exception as e:
            logger.error(f"Failed to get database stats: {e}")
            raise DatabaseError(f"Failed to get database stats: {e}")

    def close(self):
        """Close the persistent in-memory connection, if any"""
        if self._memory_conn is not None:
            try:
                self._memory_conn.close()
                logger.info("Database connection closed.")
            except Exception as e:
                logger.error(f"Error closing database: {e}")
            finally:
                self._memory_conn = None

