"""
Script d'initialisation des contenus par défaut (hero, features, faq).

Chaque section est écrite via le `ContentService` (validation, version, audit, invalidation du
cache). Les sections déjà publiées sont laissées intactes: le script est rejouable sans créer de
nouvelles versions.
"""

from __future__ import annotations

import argparse
from typing import Any

from cms.domain.content_service import ContentService

DEFAULT_CONTENT: dict[str, dict[str, Any]] = {
    "hero": {
        "headline": "Welcome to PredictIQ",
        "subheadline": "Decentralized prediction markets",
        "ctaPrimary": "Get Started",
        "ctaSecondary": "Learn More",
    },
    "features": {
        "items": [
            {"title": "Decentralized", "description": "Built on Stellar"},
            {"title": "Secure", "description": "Audited smart contracts"},
        ]
    },
    "faq": {
        "items": [
            {"question": "What is PredictIQ?", "answer": "A prediction market platform"},
        ]
    },
}


def seed(
    service: ContentService,
    actor_id: int | None,
    content: dict[str, dict[str, Any]] | None = None,
) -> list[str]:
    """Publie les contenus par défaut absents; retourne les sections écrites."""
    written: list[str] = []
    for section, payload in (content or DEFAULT_CONTENT).items():
        if service.read(section) is not None:
            continue
        service.update(section, payload, actor_id)
        written.append(section)
    return written


def main() -> None:
    """Point d'entrée: publie les sections par défaut manquantes."""
    parser = argparse.ArgumentParser(description="Initialise les contenus par défaut")
    parser.add_argument("--actor-id", type=int, default=None, help="Auteur enregistré")
    args = parser.parse_args()

    from cms.core.container import container  # noqa: PLC0415

    written = seed(container.content_service, args.actor_id)
    if not written:
        print("[seed] aucune section à initialiser")
        return
    print(f"[seed] sections publiées: {', '.join(written)}")


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
