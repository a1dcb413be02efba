"""Shared FastAPI dependencies."""

from reputation.database import get_session as _get_session
from reputation.redis_client import get_redis as _get_redis

get_db = _get_session
get_redis_dep = _get_redis
