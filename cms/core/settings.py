"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Valider la table de schémas de sections fournie en JSON (`CONTENT_SECTION_SCHEMAS_JSON`)
"""

import json
import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "cms-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    API_PREFIX: str = "/api/v1"

    # Stockage durable
    DATABASE_URL: str = "sqlite+pysqlite:///./cms.db"
    DB_CONNECT_TIMEOUT_S: float = 5.0
    DB_AUTO_CREATE: bool = True

    # Cache
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    CACHE_MAX_ENTRIES: int = 256
    CACHE_KEY_PREFIX: str = "content:"

    # Versions de contenu
    CONTENT_HISTORY_DEFAULT_LIMIT: int = 10
    CONTENT_HISTORY_MAX_LIMIT: int = 100
    CONTENT_WRITE_LOCK_TIMEOUT_S: float = 5.0
    CONTENT_WRITE_MAX_ATTEMPTS: int = 3
    # Table {section: [champs requis]} au format JSON; vide = table par défaut
    CONTENT_SECTION_SCHEMAS_JSON: str = ""

    # JWT/Auth
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MIN: int = 60

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("CONTENT_SECTION_SCHEMAS_JSON")
    @classmethod
    def _check_schemas_json(cls, value: str) -> str:
        """Refuse une table de schémas mal formée dès le chargement."""
        if not value or not value.strip():
            return ""
        try:
            raw = json.loads(value)
        except json.JSONDecodeError as err:
            raise ValueError(f"CONTENT_SECTION_SCHEMAS_JSON invalide: {err.msg}") from err
        if not isinstance(raw, dict):
            raise ValueError("CONTENT_SECTION_SCHEMAS_JSON doit être un objet JSON")
        for section, fields in raw.items():
            if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
                raise ValueError(
                    f"CONTENT_SECTION_SCHEMAS_JSON: la section {section!r} doit lister des champs"
                )
        return value

    def section_schemas(self) -> dict[str, list[str]] | None:
        """Retourne la table de schémas configurée, ou None pour la table par défaut."""
        if not self.CONTENT_SECTION_SCHEMAS_JSON:
            return None
        return json.loads(self.CONTENT_SECTION_SCHEMAS_JSON)


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
