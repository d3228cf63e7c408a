import logging
from typing import Optional
from functools import lru_cache

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class TokenBlocklist:
    """Redis-backed denylist of revoked session token ids.

    Entries expire together with the token they revoke. When Redis is not
    reachable the blocklist is inert and sessions stay purely stateless.
    """

    KEY_PREFIX = "revoked_token:"

    def __init__(self, redis_client=None):
        self.redis_client = redis_client

    @classmethod
    def from_url(cls, redis_url: str = None, password: Optional[str] = None) -> "TokenBlocklist":
        redis_url = redis_url or settings.redis_url
        password = password or settings.redis_password

        try:
            client = redis.from_url(
                redis_url,
                password=password,
                decode_responses=True,
                socket_timeout=settings.redis_socket_timeout,
                socket_connect_timeout=settings.redis_socket_connect_timeout,
            )

            # Test connection
            client.ping()
            logger.info("Redis connection established successfully")

        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, token revocation disabled: {str(e)}")
            client = None

        return cls(client)

    def is_available(self) -> bool:
        """Check if Redis is available"""
        return self.redis_client is not None

    def _key(self, jti: str) -> str:
        return f"{self.KEY_PREFIX}{jti}"

    def revoke(self, jti: str, ttl_seconds: int) -> bool:
        """Denylist a token id for ttl_seconds. Returns False if nothing was stored."""
        if not self.is_available() or not jti:
            return False
        if ttl_seconds <= 0:
            # already expired, verification rejects it anyway
            return True

        try:
            self.redis_client.setex(self._key(jti), ttl_seconds, "1")
            logger.info(f"Revoked session token {jti} for {ttl_seconds}s")
            return True
        except redis.RedisError as e:
            logger.error(f"Error revoking session token {jti}: {str(e)}")
            return False

    def is_revoked(self, jti: str) -> bool:
        if not self.is_available() or not jti:
            return False

        try:
            return bool(self.redis_client.exists(self._key(jti)))
        except redis.RedisError as e:
            logger.error(f"Error checking revoked token {jti}: {str(e)}")
            return False


@lru_cache()
def get_token_blocklist() -> TokenBlocklist:
    """Dependency returning the shared blocklist, connected on first use."""
    if not settings.enable_token_revocation:
        return TokenBlocklist(None)
    return TokenBlocklist.from_url()
