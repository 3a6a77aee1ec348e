# START OF FILE: botzin/infra/clients/sqlite_repo.py

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from botzin.shared.logger import logger
from botzin.shared.config import DATABASE_PATH
from botzin.domain.models import Lead

GROUP_MESSAGES_PER_DAY = 1000

SCHEMA = (
    "CREATE TABLE IF NOT EXISTS user_styles (user_id TEXT PRIMARY KEY, style TEXT, timestamp TEXT)",
    "CREATE TABLE IF NOT EXISTS messages (id INTEGER PRIMARY KEY AUTOINCREMENT, group_id TEXT, date TEXT, message TEXT)",
    "CREATE TABLE IF NOT EXISTS knowledge (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id TEXT, date TEXT, content TEXT)",
    "CREATE TABLE IF NOT EXISTS leads (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id TEXT, date TEXT, message TEXT, followed_up INTEGER DEFAULT 0)",
    "CREATE TABLE IF NOT EXISTS cache (id INTEGER PRIMARY KEY AUTOINCREMENT, prompt TEXT UNIQUE, response TEXT, date TEXT)",
    "CREATE TABLE IF NOT EXISTS usage (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id TEXT, command TEXT, date TEXT)",
    "CREATE TABLE IF NOT EXISTS connection_logs (id INTEGER PRIMARY KEY AUTOINCREMENT, event TEXT, timestamp TEXT, details TEXT)",
    "CREATE TABLE IF NOT EXISTS response_times (id INTEGER PRIMARY KEY AUTOINCREMENT, user_id TEXT, timestamp TEXT, delay REAL)",
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteRepo:
    def __init__(self, db_path: str = DATABASE_PATH):
        self.db_path = db_path
        logger.info(f"SQLiteRepo initialized with database {db_path}.")

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_schema(self):
        """Creates all tables. Raises on failure: the bot can't run without its database."""
        with self._get_connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
        logger.info("SQLite tables initialized successfully.")

    # --- Group messages ---

    def save_group_message(self, group_id: str, message: Dict[str, Any]) -> bool:
        date = datetime.now(timezone.utc).date().isoformat()
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    'SELECT COUNT(*) AS count FROM messages WHERE group_id = ? AND date = ?', (group_id, date)
                ).fetchone()
                if row['count'] >= GROUP_MESSAGES_PER_DAY:
                    logger.warning(f"Message limit reached for group {group_id} on {date}.")
                    return False
                conn.execute(
                    'INSERT INTO messages (group_id, date, message) VALUES (?, ?, ?)',
                    (group_id, date, json.dumps(message, ensure_ascii=False))
                )
            return True
        except Exception as e:
            logger.error(f"Error saving message for group {group_id}: {e}", exc_info=True)
            return False

    def get_group_messages(self, group_id: str, date: str) -> Optional[List[str]]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    'SELECT message FROM messages WHERE group_id = ? AND date = ? ORDER BY id', (group_id, date)
                ).fetchall()
            return [json.loads(row['message']).get('body', '') for row in rows]
        except Exception as e:
            logger.error(f"Error fetching messages for group {group_id} on {date}: {e}", exc_info=True)
            return None

    def get_messages_since(self, date: str) -> Optional[List[Tuple[str, str, str]]]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    'SELECT group_id, date, message FROM messages WHERE date >= ? ORDER BY id', (date,)
                ).fetchall()
            return [(row['group_id'], row['date'], json.loads(row['message']).get('body', '')) for row in rows]
        except Exception as e:
            logger.error(f"Error fetching messages since {date}: {e}", exc_info=True)
            return None

    # --- Knowledge ---

    def save_knowledge(self, user_id: str, content: str) -> bool:
        date = datetime.now(timezone.utc).date().isoformat()
        try:
            with self._get_connection() as conn:
                conn.execute('INSERT INTO knowledge (user_id, date, content) VALUES (?, ?, ?)', (user_id, date, content))
            logger.info(f"Knowledge saved for user {user_id}.")
            return True
        except Exception as e:
            logger.error(f"Error saving knowledge for user {user_id}: {e}", exc_info=True)
            return False

    def get_knowledge(self, user_id: str) -> str:
        try:
            with self._get_connection() as conn:
                rows = conn.execute('SELECT content FROM knowledge WHERE user_id = ? ORDER BY id', (user_id,)).fetchall()
            return "\n".join(row['content'] for row in rows)
        except Exception as e:
            logger.error(f"Error fetching knowledge for user {user_id}: {e}", exc_info=True)
            return ""

    # --- Leads ---

    def save_lead(self, user_id: str, message: str, date: Optional[str] = None) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT INTO leads (user_id, date, message) VALUES (?, ?, ?)',
                    (user_id, date or utc_now_iso(), message)
                )
            logger.info(f"Lead for user {user_id} saved.")
            return True
        except Exception as e:
            logger.error(f"Error saving lead for {user_id}: {e}", exc_info=True)
            return False

    def get_leads(self, user_id: str) -> List[Lead]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    'SELECT id, user_id, date, message, followed_up FROM leads WHERE user_id = ? ORDER BY id', (user_id,)
                ).fetchall()
            return [self._row_to_lead(row) for row in rows]
        except Exception as e:
            logger.error(f"Error fetching leads for user {user_id}: {e}", exc_info=True)
            return []

    def get_pending_leads(self, older_than: str) -> Optional[List[Lead]]:
        """Leads not yet followed up, created before `older_than`. None when the query fails."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    'SELECT id, user_id, date, message, followed_up FROM leads WHERE followed_up = 0 AND date < ? ORDER BY id',
                    (older_than,)
                ).fetchall()
            return [self._row_to_lead(row) for row in rows]
        except Exception as e:
            logger.error(f"Error fetching pending leads: {e}", exc_info=True)
            return None

    def mark_lead_followed_up(self, lead_id: int) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute('UPDATE leads SET followed_up = 1 WHERE id = ?', (lead_id,))
            return True
        except Exception as e:
            logger.error(f"Error marking lead {lead_id} as followed up: {e}", exc_info=True)
            return False

    @staticmethod
    def _row_to_lead(row) -> Lead:
        return Lead(
            id=row['id'], user_id=row['user_id'], date=row['date'],
            message=row['message'], followed_up=bool(row['followed_up'])
        )

    # --- Cache ---

    def get_cache_entry(self, prompt: str) -> Optional[Tuple[str, str]]:
        try:
            with self._get_connection() as conn:
                row = conn.execute('SELECT response, date FROM cache WHERE prompt = ?', (prompt,)).fetchone()
            return (row['response'], row['date']) if row else None
        except Exception as e:
            logger.warning(f"Error reading cache: {e}")
            return None

    def upsert_cache(self, prompt: str, response: str, date: str) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT OR REPLACE INTO cache (prompt, response, date) VALUES (?, ?, ?)', (prompt, response, date)
                )
            return True
        except Exception as e:
            logger.warning(f"Error writing cache: {e}")
            return False

    # --- Usage ---

    def log_usage(self, user_id: str, command: str) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT INTO usage (user_id, command, date) VALUES (?, ?, ?)', (user_id, command, utc_now_iso())
                )
            return True
        except Exception as e:
            logger.warning(f"Error logging usage of '{command}' by {user_id}: {e}")
            return False

    def count_usage(self) -> Optional[int]:
        try:
            with self._get_connection() as conn:
                return conn.execute('SELECT COUNT(*) AS count FROM usage').fetchone()['count']
        except Exception as e:
            logger.error(f"Error counting usage: {e}", exc_info=True)
            return None

    def get_top_users(self, limit: int = 5) -> Optional[List[Tuple[str, int]]]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    'SELECT user_id, COUNT(*) AS count FROM usage GROUP BY user_id ORDER BY count DESC LIMIT ?', (limit,)
                ).fetchall()
            return [(row['user_id'], row['count']) for row in rows]
        except Exception as e:
            logger.error(f"Error getting usage stats: {e}", exc_info=True)
            return None

    # --- Connection logs, response times, user styles ---

    def log_connection_event(self, event: str, details: str) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT INTO connection_logs (event, timestamp, details) VALUES (?, ?, ?)',
                    (event, utc_now_iso(), details)
                )
            return True
        except Exception as e:
            logger.error(f"Error logging connection event '{event}': {e}")
            return False

    def save_response_time(self, user_id: str, timestamp: float, delay: float) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT INTO response_times (user_id, timestamp, delay) VALUES (?, ?, ?)',
                    (user_id, datetime.fromtimestamp(timestamp, timezone.utc).isoformat(), delay)
                )
            return True
        except Exception as e:
            logger.warning(f"Error saving response time for {user_id}: {e}")
            return False

    def save_user_style(self, user_id: str, style: str) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    'INSERT OR REPLACE INTO user_styles (user_id, style, timestamp) VALUES (?, ?, ?)',
                    (user_id, style, utc_now_iso())
                )
            return True
        except Exception as e:
            logger.warning(f"Error saving style for {user_id}: {e}")
            return False

    def get_user_style(self, user_id: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute('SELECT style FROM user_styles WHERE user_id = ?', (user_id,)).fetchone()
            return row['style'] if row else None
        except Exception as e:
            logger.warning(f"Error reading style for {user_id}: {e}")
            return None

# END OF FILE: botzin/infra/clients/sqlite_repo.py
