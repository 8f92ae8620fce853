"""
User monthly ceiling lookup (read-only view over the Valkey/Redis cache)

Records are written by the user service under ``user:<id>`` as JSON with a
``monthlyBudget`` field.
"""
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Protocol

import redis

from babybudget.config import Settings
from babybudget.domain.errors import CeilingNotFoundError


logger = logging.getLogger(__name__)


class KeyValueReader(Protocol):
    def get(self, name: str) -> str | bytes | None: ...


def build_cache_client(settings: Settings) -> redis.Redis:
    """Create the cache client from settings (connects lazily)"""
    return redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        password=settings.REDIS_PASSWORD,
        db=settings.REDIS_DB,
        ssl=settings.REDIS_TLS,
        decode_responses=True,
    )


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


class UserCeilingLookup:
    """
    Reads a user's monthly spending ceiling

    Never writes to the cache.
    """

    def __init__(self, client: KeyValueReader):
        self.client = client

    def get_ceiling(self, user_id: str) -> Decimal:
        """
        Get the user's monthly ceiling

        Raises:
            CeilingNotFoundError: no record, or the record has no usable monthlyBudget
        """
        raw = self.client.get(user_key(user_id))
        if not raw:
            logger.warning("No cached user record for user_id=%s", user_id)
            raise CeilingNotFoundError("User data not found in cache")

        try:
            record = json.loads(raw)
        except ValueError:
            logger.warning("Cached user record is not valid JSON for user_id=%s", user_id)
            raise CeilingNotFoundError("User data not found in cache")

        value = record.get("monthlyBudget") if isinstance(record, dict) else None
        if not value:
            raise CeilingNotFoundError("User budget (monthlyBudget) not found in cache")

        try:
            ceiling = Decimal(str(value))
        except InvalidOperation:
            ceiling = None

        if ceiling is None or not ceiling.is_finite():
            logger.warning("Cached monthlyBudget is not a number for user_id=%s: %r", user_id, value)
            raise CeilingNotFoundError("User budget (monthlyBudget) not found in cache")
        return ceiling
