# storefront/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis

from storefront.domain.errors import CartBusy
from storefront.utils.retry import lock_poll, redis_retry
from storefront.utils.settings import CART_LOCK_TTL_SECONDS, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL


class LockService:
    """
    -lock na sesje na czas modyfikacji koszyka (read-modify-write bloba)
    -zwalnianie locka tylko przez wlasciciela (token)
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}:cart-lock"

    @redis_retry()
    def acquire_session_lock(self, session_id: str, token: str, ttl: int) -> bool:
        key = self._key(session_id)
        logger.debug(f"Acquire lock {key}")
        #SET session:<id>:cart-lock "<token>" NX EX 10
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_session_lock(self, session_id: str, token: str) -> bool:
        key = self._key(session_id)
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def session_lock(self, session_id: str, ttl: int = CART_LOCK_TTL_SECONDS):
        token = uuid.uuid4().hex

        @lock_poll()
        def _acquire():
            return self.acquire_session_lock(session_id, token, ttl)

        if not _acquire():
            logger.warning(f"Cart lock for session {session_id} is held by another request")
            raise CartBusy(session_id)

        try:
            yield
        finally:
            try:
                self.release_session_lock(session_id, token)
            except redis.RedisError as e:
                # lock i tak wygasnie po ttl, nie psujemy wyniku operacji
                logger.warning(f"Failed to release cart lock for session {session_id}: {e}")
