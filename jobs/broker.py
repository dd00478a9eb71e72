"""
Dramatiq broker configuration.

Redis-based message broker for background jobs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from vipledger.config.settings import settings
from vipledger.utils.exceptions import is_retryable


MAX_RETRIES = 3


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """Retry transient storage failures only; validation errors are final."""
    return retries_so_far < MAX_RETRIES and is_retryable(exception)


redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications: Allows workers to gracefully shutdown
# CurrentMessage: Provides access to current message in actors
# Retries: Exponential backoff for transient failures
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=MAX_RETRIES,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
        retry_when=should_retry,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
