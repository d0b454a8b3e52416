"""Rendu Markdown -> HTML des champs riches d'un brouillon de contenu.

Fonctions pures: aucun accès au stockage ni au cache.
"""

from __future__ import annotations

from typing import Any

import markdown

# Marqueurs signalant un texte riche (gras, souligné, lien)
RICH_TEXT_MARKERS: tuple[str, ...] = ("**", "__", "](")


def has_rich_text(value: str) -> bool:
    return any(marker in value for marker in RICH_TEXT_MARKERS)


def render(markup: str) -> str:
    """Convertit du Markdown en HTML; renvoie l'entrée inchangée si le rendu échoue."""
    try:
        return markdown.markdown(markup)
    except Exception:
        return markup


def render_payload(payload: Any) -> Any:
    """Retourne une copie de `payload` où les chaînes riches sont rendues en HTML.

    Parcourt récursivement dicts et listes (ex: `items` d'une FAQ).
    """
    if isinstance(payload, str):
        return render(payload) if has_rich_text(payload) else payload
    if isinstance(payload, dict):
        return {key: render_payload(value) for key, value in payload.items()}
    if isinstance(payload, list):
        return [render_payload(item) for item in payload]
    return payload
