"""
Centralized logging service for newsdesk.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
import traceback
from datetime import datetime, timedelta
from flask import request, has_request_context, session
from .database import Database
from .config import Config, get_config_value

logger = logging.getLogger(__name__)


def _logs_db():
    return get_config_value('LOGS_DB', Config.LOGS_DB)


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        db_path = _logs_db()
        Database.ensure_dir(db_path)
        with Database.connect(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.LOGS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    request_path TEXT,
                    user_id TEXT
                )
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                ON {Config.LOGS_TABLE}(timestamp DESC)
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_logs_source
                ON {Config.LOGS_TABLE}(source)
            """)
            conn.commit()

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        user_agent = request.headers.get('User-Agent', '')
        admin_id = session.get('admin_id')

        return ip_address, user_agent, request.path, admin_id

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (news, system, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier, defaults to the session's admin
        """
        level = level.upper()
        try:
            LoggingService._ensure_logs_table()

            ip_address, user_agent, request_path, admin_id = LoggingService._get_request_context()
            if user_id is None and admin_id is not None:
                user_id = str(admin_id)

            if isinstance(details, (dict, list)):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            with Database.connect(_logs_db()) as conn:
                cursor = conn.cursor()
                cursor.execute(f"""
                    INSERT INTO {Config.LOGS_TABLE}
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level, source, message, details,
                    ip_address, user_agent, request_path, user_id
                ))
                conn.commit()

        except Exception as e:
            # Fallback to process logging if database fails
            logger.log(getattr(logging, level, logging.INFO), f"[{source}] {message}")
            if details:
                logger.log(getattr(logging, level, logging.INFO), f"Details: {details}")
            logger.warning(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def get_recent_logs(source=None, limit=100):
        """Fetch the most recent log entries, newest first"""
        try:
            LoggingService._ensure_logs_table()
            with Database.connect(_logs_db()) as conn:
                cursor = conn.cursor()
                if source:
                    cursor.execute(f"""
                        SELECT * FROM {Config.LOGS_TABLE}
                        WHERE source = ?
                        ORDER BY id DESC LIMIT ?
                    """, (source, limit))
                else:
                    cursor.execute(f"""
                        SELECT * FROM {Config.LOGS_TABLE}
                        ORDER BY id DESC LIMIT ?
                    """, (limit,))
                return [dict(row) for row in cursor.fetchall()]
        except Exception as e:
            logger.error(f"Error reading logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        try:
            cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()

            with Database.connect(_logs_db()) as conn:
                cursor = conn.cursor()
                cursor.execute(f"""
                    DELETE FROM {Config.LOGS_TABLE}
                    WHERE timestamp < ?
                """, (cutoff_iso,))
                deleted_count = cursor.rowcount
                conn.commit()

            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count

        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Persist a log entry for a feature module"""
    LoggingService.log(level, source, message, details)
