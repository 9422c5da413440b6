"""
MongoDB connection

db is None unless DATABASE_URL and DATABASE_NAME are both set; the JSON
file stores are used in that case.
"""

import logging
import os
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)


def connect(url: Optional[str], name: Optional[str]) -> Optional[Database]:
    if not url or not name:
        return None
    client = MongoClient(url, tz_aware=True)
    logger.info("MongoDB client created for database %s", name)
    return client[name]


db: Optional[Database] = connect(os.getenv("DATABASE_URL"), os.getenv("DATABASE_NAME"))
