"""
Newsdesk Core
=============

Core utilities and shared functionality for newsdesk modules.
"""

from .config import Config, get_config_value
from .database import Database
from .logging_service import LoggingService, db_log

__all__ = ['Config', 'get_config_value', 'Database', 'LoggingService', 'db_log']
