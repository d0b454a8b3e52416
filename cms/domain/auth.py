"""
Module d'authentification des éditeurs de contenu.

Ce module fournit le hachage des mots de passe administrateurs et la création/validation des tokens
JWT dont le `sub` identifie l'auteur enregistré sur chaque version de contenu.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, ValidationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenData(BaseModel):
    """Données contenues dans un token JWT d'administrateur."""

    sub: str
    email: EmailStr

    @property
    def actor_id(self) -> int | None:
        """Identifiant numérique de l'auteur, ou None si `sub` n'est pas un entier."""
        return int(self.sub) if self.sub.isdigit() else None


def hash_password(p: str) -> str:
    """Hache un mot de passe en utilisant PBKDF2."""
    return pwd_context.hash(p)


def verify_password(p: str, h: str) -> bool:
    """Vérifie un mot de passe contre son hash (False si le hash est illisible)."""
    if not h:
        return False
    try:
        return pwd_context.verify(p, h)
    except ValueError:
        return False


def create_access_token(secret: str, alg: str, expires_min: int, payload: dict[str, Any]) -> str:
    """Crée un token JWT d'accès avec expiration."""
    to_encode = payload.copy()
    expire = datetime.now(UTC) + timedelta(minutes=expires_min)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str) -> TokenData | None:
    """Décode et valide un token JWT; None si invalide, expiré ou incomplet."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg])
        return TokenData(**data)
    except (InvalidTokenError, ValidationError, TypeError):
        return None
