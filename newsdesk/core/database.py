import os
import sqlite3


class Database:

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def ensure_dir(path):
        """Create the parent directory of a database file (only if there's a directory component)"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
