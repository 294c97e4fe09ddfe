"""
ranchhand.api.deps — FastAPI dependency injection
===================================================
"""

from __future__ import annotations

import os
from functools import lru_cache

from sqlalchemy import Engine

from ranchhand.config import RanchConfig, load_config
from ranchhand.database.engine import create_db_engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> RanchConfig:
    return load_config(os.getenv("RANCHHAND_CONFIG", "config.yaml"))
