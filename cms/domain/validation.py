"""
Registre de validation des contenus par section.

Chaque section connue est associée à une liste fixe de champs requis. Une section inconnue est
toujours rejetée (rejet franc, pas de défaut permissif). Les valeurs ne sont pas typées ici: seule
la présence des champs est vérifiée, des validateurs additionnels pouvant être branchés par section.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# Table par défaut des champs requis
DEFAULT_SECTION_SCHEMAS: dict[str, tuple[str, ...]] = {
    "hero": ("headline", "subheadline", "ctaPrimary", "ctaSecondary"),
    "features": ("items",),
    "faq": ("items",),
    "testimonials": ("items",),
    "announcements": ("message", "type"),
}

FieldValidator = Callable[[Mapping[str, Any]], list[str]]


@dataclass(frozen=True)
class ValidationResult:
    """Résultat d'une validation: `valid` et la liste complète des violations."""

    valid: bool
    errors: list[str] = field(default_factory=list)


class ValidationRegistry:
    """Politique de validation swappable, sans effet de bord."""

    def __init__(
        self,
        schemas: Mapping[str, Sequence[str]] | None = None,
        validators: Mapping[str, FieldValidator] | None = None,
    ) -> None:
        """Construit le registre.

        Paramètres:
        - schemas: table {section: champs requis}; table par défaut si None.
        - validators: contrôles additionnels par section, exécutés une fois les champs présents.
        """
        source = DEFAULT_SECTION_SCHEMAS if schemas is None else schemas
        self._schemas: dict[str, tuple[str, ...]] = {
            str(section): tuple(fields) for section, fields in source.items()
        }
        self._validators: dict[str, FieldValidator] = dict(validators or {})

    def sections(self) -> list[str]:
        """Liste triée des sections connues."""
        return sorted(self._schemas)

    def is_known(self, section: str) -> bool:
        return section in self._schemas

    def required_fields(self, section: str) -> tuple[str, ...]:
        """Champs requis d'une section (tuple vide si inconnue)."""
        return self._schemas.get(section, ())

    def validate(self, section: str, payload: Any) -> ValidationResult:
        """Décide si `payload` est acceptable pour `section`.

        Une erreur par champ requis absent; une unique erreur si la section est inconnue.
        """
        required = self._schemas.get(section)
        if required is None:
            return ValidationResult(valid=False, errors=[f"Unknown section: {section}"])
        if not isinstance(payload, Mapping):
            return ValidationResult(valid=False, errors=["Payload must be an object"])

        errors = [f"Missing required field: {name}" for name in required if name not in payload]
        extra = self._validators.get(section)
        if not errors and extra is not None:
            errors.extend(extra(payload))
        return ValidationResult(valid=not errors, errors=errors)
