"""
Tests du service de contenu.

Ordonnancement validation -> écriture -> invalidation, cohérence du cache (lecture après écriture),
non-mise en cache de l'absence, signaux émis, restauration et aperçu.
"""

from __future__ import annotations

import pytest

from cms.domain.content_service import ContentService, OperationSignal
from cms.domain.errors import (
    CacheInvalidationError,
    ConflictError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
)
from cms.domain.validation import ValidationRegistry
from cms.infra.repo.content_version_repo import ContentVersionRepo
from tests.fakes import BrokenInvalidationCache, DownStore, RecordingCache, ScriptedStore

ADMIN = 1
EDITOR = 2


def _faq(question: str) -> dict:
    return {"items": [{"question": question, "answer": "**Yes**"}]}


def test_write_read_update_scenario(service, cache) -> None:
    """Écriture, lecture (miss puis hit), mise à jour, historique et version précise."""
    first = service.update("faq", _faq("Q1"), actor_id=ADMIN)
    assert first.version == 1

    miss = service.lookup("faq")
    assert miss.cache_hit is False
    assert miss.version.version == 1
    hit = service.lookup("faq")
    assert hit.cache_hit is True
    assert hit.version.version == 1

    second = service.update("faq", _faq("Q2"), actor_id=EDITOR)
    assert second.version == 2
    after = service.read("faq")
    assert after.version == 2
    assert after.payload == _faq("Q2")
    assert after.created_by == EDITOR

    assert [v.version for v in service.history("faq")] == [2, 1]
    v1 = service.version("faq", 1)
    assert v1.payload == _faq("Q1")
    assert v1.is_active is False
    assert service.version("faq", 3) is None
    assert [(e.version, e.user_id) for e in service.audit("faq")] == [(2, EDITOR), (1, ADMIN)]


def test_hero_scenario(service) -> None:
    """Deux éditions successives de `hero`: v1 conservée et inactive, v2 servie."""
    hero_v1 = {
        "headline": "Welcome to PredictIQ",
        "subheadline": "Decentralized prediction markets",
        "ctaPrimary": "Get Started",
        "ctaSecondary": "Learn More",
    }
    hero_v2 = {**hero_v1, "headline": "Predict the future"}

    first = service.update("hero", hero_v1, actor_id=ADMIN)
    assert (first.version, first.is_active, first.created_by) == (1, True, ADMIN)
    assert service.read("hero").version == 1

    second = service.update("hero", hero_v2, actor_id=EDITOR)
    assert (second.version, second.is_active, second.created_by) == (2, True, EDITOR)

    v1 = service.version("hero", 1)
    assert v1.is_active is False
    assert v1.payload == hero_v1
    assert v1.created_by == ADMIN

    current = service.read("hero")
    assert current.version == 2
    assert current.payload == hero_v2
    assert current.created_by == EDITOR
    assert [v.version for v in service.history("hero")] == [2, 1]


def test_mutating_a_read_result_does_not_alter_cached_content(service, store) -> None:
    """Le contenu servi depuis le cache reste celui de la ligne durable."""
    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    miss = service.read("faq")
    miss.payload["items"].append({"question": "injected"})

    hit = service.lookup("faq")
    assert hit.cache_hit is True
    hit.version.payload["items"].clear()

    assert service.read("faq").payload == store.get_active("faq").payload == _faq("Q1")


def test_read_after_write_never_serves_stale_cache(service) -> None:
    """Une lecture après écriture voit la nouvelle version, même si l'ancienne était en cache."""
    for n in range(1, 4):
        service.update("faq", _faq(f"Q{n}"), actor_id=ADMIN)
        service.read("faq")
        assert service.read("faq").version == n


def test_invalidate_happens_after_durable_write(store, signals) -> None:
    """L'invalidation suit le commit: un lecteur voit alors la ligne déjà écrite."""
    seen: list[int | None] = []

    class InspectingCache(RecordingCache):
        def invalidate(self, section: str) -> None:
            active = store.get_active(section)
            seen.append(active.version if active else None)
            super().invalidate(section)

    svc = ContentService(store, InspectingCache(), ValidationRegistry(), signal_sink=signals.append)
    svc.update("faq", _faq("Q1"), actor_id=ADMIN)
    svc.update("faq", _faq("Q2"), actor_id=ADMIN)
    assert seen == [1, 2]


def test_validation_failure_does_not_touch_store_or_cache(service, store, cache, signals) -> None:
    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    service.read("faq")
    cache.calls.clear()

    with pytest.raises(ValidationError) as exc:
        service.update("faq", {"wrong": True}, actor_id=ADMIN)
    assert exc.value.errors == ["Missing required field: items"]
    assert cache.count("invalidate") == 0
    assert store.get_active("faq").version == 1
    assert len(store.list_audit("faq")) == 1
    assert signals[-1] == OperationSignal("update", "faq", "validation_error")


def test_unknown_section_is_rejected(service, store) -> None:
    with pytest.raises(ValidationError) as exc:
        service.update("pricing", {"plans": []}, actor_id=ADMIN)
    assert exc.value.errors == ["Unknown section: pricing"]
    assert store.get_active("pricing") is None


def test_absence_is_not_cached(service, cache, signals) -> None:
    """Une section jamais écrite n'est pas mise en cache: la première écriture est visible."""
    assert service.read("faq") is None
    assert service.read("faq") is None
    assert cache.count("set") == 0
    assert signals[-1] == OperationSignal("read", "faq", "absent")

    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    assert service.read("faq").version == 1


def test_read_signals_hit_and_miss(service, signals) -> None:
    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    signals.clear()
    service.read("faq")
    service.read("faq")
    assert signals == [
        OperationSignal("read", "faq", "miss"),
        OperationSignal("read", "faq", "hit"),
    ]


def test_stale_fill_does_not_survive_concurrent_invalidation(service, store, cache) -> None:
    """Un remplissage démarré avant une écriture concurrente n'écrase pas l'invalidation."""
    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    original_get_active = store.get_active

    def get_active_then_concurrent_write(section):
        old = original_get_active(section)
        # Une écriture aboutit entre la lecture en base et le remplissage du cache
        service.update("faq", _faq("Q2"), actor_id=EDITOR)
        return old

    store.get_active = get_active_then_concurrent_write
    try:
        outcome = service.lookup("faq")
    finally:
        store.get_active = original_get_active

    assert outcome.version.version == 1
    assert cache.get("faq") is None
    assert service.read("faq").version == 2


def test_cached_reads_survive_storage_outage(store, signals) -> None:
    """Stockage en panne: les sections en cache restent servies, les autres échouent."""
    cache = RecordingCache()
    svc = ContentService(store, cache, ValidationRegistry(), signal_sink=signals.append)
    svc.update("faq", _faq("Q1"), actor_id=ADMIN)
    svc.read("faq")

    down = ContentService(DownStore(), cache, ValidationRegistry(), signal_sink=signals.append)
    assert down.read("faq").version == 1
    with pytest.raises(StorageUnavailable):
        down.read("hero")
    assert signals[-1] == OperationSignal("read", "hero", "storage_unavailable")
    with pytest.raises(StorageUnavailable):
        down.update("faq", _faq("Q2"), actor_id=ADMIN)
    assert signals[-1] == OperationSignal("update", "faq", "storage_unavailable")
    with pytest.raises(StorageUnavailable):
        down.history("faq")
    assert cache.get("faq").version == 1


def test_conflict_is_retried_once(store, cache, signals) -> None:
    scripted = ScriptedStore(store, [ConflictError("faq", attempts=3)])
    svc = ContentService(scripted, cache, ValidationRegistry(), signal_sink=signals.append)
    created = svc.update("faq", _faq("Q1"), actor_id=ADMIN)
    assert created.version == 1
    assert scripted.write_calls == 2
    assert signals[-1] == OperationSignal("update", "faq", "ok")


def test_second_conflict_is_raised(store, cache, signals) -> None:
    scripted = ScriptedStore(
        store, [ConflictError("faq", attempts=3), ConflictError("faq", attempts=3)]
    )
    svc = ContentService(scripted, cache, ValidationRegistry(), signal_sink=signals.append)
    with pytest.raises(ConflictError):
        svc.update("faq", _faq("Q1"), actor_id=ADMIN)
    assert scripted.write_calls == 2
    assert cache.count("invalidate") == 0
    assert signals[-1] == OperationSignal("update", "faq", "conflict")


def test_invalidation_failure_is_raised_after_commit(store, signals) -> None:
    """Invalidation impossible: l'erreur remonte, la version reste durablement écrite."""
    svc = ContentService(
        store, BrokenInvalidationCache(), ValidationRegistry(), signal_sink=signals.append
    )
    with pytest.raises(CacheInvalidationError):
        svc.update("faq", _faq("Q1"), actor_id=ADMIN)
    assert store.get_active("faq").version == 1
    assert signals[-1] == OperationSignal("update", "faq", "cache_invalidation_failed")


def test_restore_creates_new_version(service, cache) -> None:
    """Restaurer republie l'ancien contenu comme version N+1, sans réécrire l'historique."""
    service.update("faq", _faq("Q1"), actor_id=ADMIN)
    service.update("faq", _faq("Q2"), actor_id=ADMIN)
    service.read("faq")

    restored = service.restore("faq", 1, actor_id=EDITOR)
    assert restored.version == 3
    assert restored.payload == _faq("Q1")
    assert service.read("faq").version == 3
    assert service.version("faq", 1).is_active is False
    assert service.audit("faq")[0].action == "restore"


def test_restore_missing_version(service, signals) -> None:
    with pytest.raises(NotFoundError) as exc:
        service.restore("faq", 9, actor_id=ADMIN)
    assert exc.value.version == 9
    assert signals[-1] == OperationSignal("restore", "faq", "not_found")


def test_section_removed_from_schema(store, cache) -> None:
    """Section retirée du registre: lecture et historique restent possibles, écriture refusée."""
    ContentService(store, cache, ValidationRegistry()).update(
        "faq", _faq("Q1"), actor_id=ADMIN
    )
    narrowed = ContentService(store, RecordingCache(), ValidationRegistry({"hero": ["headline"]}))
    assert narrowed.read("faq").version == 1
    assert [v.version for v in narrowed.history("faq")] == [1]
    with pytest.raises(ValidationError):
        narrowed.update("faq", _faq("Q2"), actor_id=ADMIN)
    with pytest.raises(ValidationError):
        narrowed.restore("faq", 1, actor_id=ADMIN)


def test_preview_renders_without_side_effects(service, store, cache, signals) -> None:
    draft = _faq("Draft")
    preview = service.preview("faq", draft)
    assert "<strong>Yes</strong>" in preview["items"][0]["answer"]
    assert draft == _faq("Draft")
    assert store.get_active("faq") is None
    assert cache.calls == []
    assert signals == [OperationSignal("preview", "faq", "ok")]


def test_default_signal_sink_discards(engine) -> None:
    svc = ContentService(ContentVersionRepo(engine), RecordingCache(), ValidationRegistry())
    assert svc.update("faq", _faq("Q1"), actor_id=None).created_by is None
