"""Cache Redis des versions actives, partagé entre processus.

Clés:
- `{prefix}{section}`: version active sérialisée en JSON;
- `{prefix}epoch:{section}`: compteur d'invalidations de la section.

Le remplissage conditionnel est un script Lua (comparaison d'époque + SET atomiques),
l'invalidation une transaction MULTI/EXEC (DEL + INCR). Une panne Redis en lecture ou en
remplissage dégrade en miss (le stockage durable reste la source de vérité); une panne à
l'invalidation est remontée.
"""

from __future__ import annotations

import json

import redis
import structlog
from redis.exceptions import RedisError

from cms.domain.content_version import ContentVersion
from cms.domain.errors import CacheInvalidationError

from .base import ContentCache

log = structlog.get_logger(__name__)

# Script Lua: SET de l'entrée seulement si l'époque n'a pas bougé depuis la lecture
GUARDED_SET_SCRIPT = """
local current = redis.call('GET', KEYS[2])
if not current then
    current = '0'
end
if ARGV[2] == '' or current == ARGV[2] then
    redis.call('SET', KEYS[1], ARGV[1])
    return 1
end
return 0
"""


class RedisContentCache(ContentCache):
    """Cache de versions actives adossé à Redis."""

    backend_name = "redis"

    def __init__(
        self,
        url: str | None = None,
        *,
        client: redis.Redis | None = None,
        key_prefix: str = "content:",
        socket_timeout_s: float = 1.0,
    ) -> None:
        """Crée (ou reçoit) un client Redis et vérifie la connexion.

        Lève `redis.exceptions.RedisError` si Redis est injoignable à la construction, pour que
        l'appelant puisse se replier sur un cache mémoire.
        """
        if client is None:
            if not url:
                raise ValueError("RedisContentCache requires a url or a client")
            client = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=socket_timeout_s,
                socket_timeout=socket_timeout_s,
                health_check_interval=30,
            )
            client.ping()
            log.info("content_cache_redis_connected")
        self.client = client
        self.key_prefix = key_prefix
        self._guarded_set = client.register_script(GUARDED_SET_SCRIPT)

    def _key(self, section: str) -> str:
        return f"{self.key_prefix}{section}"

    def _epoch_key(self, section: str) -> str:
        return f"{self.key_prefix}epoch:{section}"

    def get(self, section: str) -> ContentVersion | None:
        try:
            raw = self.client.get(self._key(section))
        except RedisError as e:
            log.warning("content_cache_get_failed", section=section, error=str(e))
            return None
        if not raw:
            return None
        try:
            return ContentVersion.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            log.warning("content_cache_entry_undecodable", section=section)
            return None

    def set(self, section: str, version: ContentVersion, epoch: int | None = None) -> bool:
        raw = json.dumps(version.to_dict(), separators=(",", ":"))
        epoch_arg = "" if epoch is None else str(epoch)
        try:
            result = self._guarded_set(
                keys=[self._key(section), self._epoch_key(section)],
                args=[raw, epoch_arg],
            )
        except RedisError as e:
            log.warning("content_cache_set_failed", section=section, error=str(e))
            return False
        return bool(result)

    def invalidate(self, section: str) -> None:
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(self._key(section))
            pipe.incr(self._epoch_key(section))
            pipe.execute()
        except RedisError as e:
            log.error("content_cache_invalidate_failed", section=section, error=str(e))
            raise CacheInvalidationError(section, detail=type(e).__name__) from e

    def epoch(self, section: str) -> int:
        try:
            raw = self.client.get(self._epoch_key(section))
        except RedisError as e:
            log.warning("content_cache_epoch_failed", section=section, error=str(e))
            # Époque impossible à lire: le remplissage qui suivra sera refusé
            return -1
        return int(raw) if raw else 0

    def close(self) -> None:
        """Ferme la connexion Redis."""
        self.client.close()
