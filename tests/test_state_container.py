from __future__ import annotations

from gestao_eventos.stores.state import StateContainer


def test_set_and_get_notify_subscribers() -> None:
    state = StateContainer({"items": [], "loading": False})
    seen: list[dict] = []
    unsubscribe = state.subscribe(seen.append)

    state.set(loading=True)
    state.update("items", lambda items: items + [1])

    assert state.get("loading") is True
    assert state.get("items") == [1]
    assert [snapshot["loading"] for snapshot in seen] == [True, True]
    assert seen[-1]["items"] == [1]

    unsubscribe()
    state.set(loading=False)
    assert len(seen) == 2


def test_snapshot_is_a_copy() -> None:
    state = StateContainer({"error": None})
    snapshot = state.snapshot()
    snapshot["error"] = "mutated"
    assert state.get("error") is None


def test_unsubscribe_twice_is_harmless() -> None:
    state = StateContainer()
    unsubscribe = state.subscribe(lambda snapshot: None)
    unsubscribe()
    unsubscribe()
    state.set(anything=1)
    assert state.get("anything") == 1
