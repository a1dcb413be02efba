"""arq worker settings module.

Import path for arq CLI: arq reputation.workers.settings.WorkerSettings
"""

from __future__ import annotations

from arq.connections import RedisSettings

from reputation.config import get_settings
from reputation.workers.badge_worker import BadgeWorkerSettings


class WorkerSettings(BadgeWorkerSettings):
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)


__all__ = ["WorkerSettings"]
