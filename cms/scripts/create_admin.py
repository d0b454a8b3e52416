"""
Création d'un compte administrateur autorisé à éditer les contenus.

Le mot de passe est lu sur l'entrée standard (sans écho) s'il n'est pas passé en option.
"""

from __future__ import annotations

import argparse
import getpass

from sqlalchemy.exc import IntegrityError

from cms.domain.auth import hash_password
from cms.infra.repo.admin_user_repo import AdminUserRepo


def create_admin(users: AdminUserRepo, email: str, password: str) -> dict:
    """Crée le compte; lève ValueError si le mot de passe est vide ou l'email déjà pris."""
    if not password:
        raise ValueError("empty_password")
    try:
        user = users.create(email, hash_password(password), is_admin=True)
    except IntegrityError as err:
        raise ValueError("email_exists") from err
    user.pop("password_hash", None)
    return user


def main() -> None:
    """Point d'entrée: crée un administrateur dans la base configurée."""
    parser = argparse.ArgumentParser(description="Crée un compte administrateur")
    parser.add_argument("email", help="Email de connexion")
    parser.add_argument("--password", default=None, help="Mot de passe (sinon demandé)")
    args = parser.parse_args()

    from cms.core.container import container  # noqa: PLC0415

    password = args.password or getpass.getpass("Mot de passe: ")
    user = create_admin(container.user_repo, args.email, password)
    print(f"[admin] créé id={user['id']} email={user['email']}")


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
