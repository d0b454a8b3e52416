"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQL, dépôt de versions, cache, registre de
validation, service de contenu) et expose un singleton `container` utilisé par les routes.
Les tests construisent leur propre `ContentService` et le substituent via les dépendances FastAPI.
"""

import functools

import structlog
from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError

from cms.app.metrics import record_content_signal
from cms.core.settings import Settings, get_settings
from cms.domain.content_service import ContentService
from cms.domain.validation import ValidationRegistry
from cms.infra.cache.base import ContentCache
from cms.infra.cache.memory_cache import InMemoryContentCache
from cms.infra.cache.redis_cache import RedisContentCache
from cms.infra.repo.admin_user_repo import AdminUserRepo
from cms.infra.repo.content_version_repo import ContentVersionRepo
from cms.infra.repo.db import get_engine
from cms.infra.repo.models import Base

log = structlog.get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        s = self.settings
        self.engine = get_engine(s.DATABASE_URL, connect_timeout_s=s.DB_CONNECT_TIMEOUT_S)
        if s.DB_AUTO_CREATE:
            try:
                Base.metadata.create_all(self.engine)
            except OperationalError as err:
                # Base indisponible au démarrage: /health le signalera, les écritures échoueront
                log.warning("db_auto_create_failed", error=type(err).__name__)

        self.registry = ValidationRegistry(s.section_schemas())
        self.content_store = ContentVersionRepo(
            self.engine,
            lock_timeout_s=s.CONTENT_WRITE_LOCK_TIMEOUT_S,
            max_attempts=s.CONTENT_WRITE_MAX_ATTEMPTS,
            history_default_limit=s.CONTENT_HISTORY_DEFAULT_LIMIT,
            history_max_limit=s.CONTENT_HISTORY_MAX_LIMIT,
        )
        self.user_repo = AdminUserRepo(self.engine)
        self.cache, self.cache_backend = self._build_cache()
        self.content_service = ContentService(
            self.content_store,
            self.cache,
            self.registry,
            signal_sink=functools.partial(
                record_content_signal, allowed_sections=tuple(self.registry.sections())
            ),
        )

    def _build_cache(self) -> tuple[ContentCache, str]:
        """Cache Redis si configuré et joignable, sinon cache mémoire (sauf REQUIRE_REDIS)."""
        s = self.settings
        if s.REDIS_URL:
            try:
                return RedisContentCache(s.REDIS_URL, key_prefix=s.CACHE_KEY_PREFIX), "redis"
            except (RedisError, ValueError) as err:
                if s.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                log.warning("content_cache_memory_fallback", error=type(err).__name__)
                return InMemoryContentCache(s.CACHE_MAX_ENTRIES), "memory-fallback"
        if s.REQUIRE_REDIS:
            raise RuntimeError("Redis required but REDIS_URL not set")
        return InMemoryContentCache(s.CACHE_MAX_ENTRIES), "memory"


container = Container()
