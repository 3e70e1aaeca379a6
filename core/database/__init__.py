"""
Database module for Sonar build result storage.
"""

from .database import db_manager, get_db_session, initialize_database
from .models import SonarBuildRecord

__all__ = [
    "db_manager",
    "get_db_session",
    "initialize_database",
    "SonarBuildRecord"
]
