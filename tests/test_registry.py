"""Unit tests for the save callback registry."""

from __future__ import annotations

import asyncio

import pytest

from df12_cms.save import CallbackRegistry


def _recorder(calls: list[str], label: str):
    async def callback(document: dict) -> None:
        calls.append(label)

    return callback


def test_register_last_registration_wins() -> None:
    """A second registration under the same name replaces the first."""
    registry = CallbackRegistry()
    calls: list[str] = []
    registry.register("cardsDesign", _recorder(calls, "first"))
    registry.register("cardsDesign", _recorder(calls, "second"))

    pending = registry.invoke("cardsDesign", {})
    assert pending is not None, "expected an awaitable from a coroutine callback"
    asyncio.run(pending)

    assert calls == ["second"], f"expected only the newer callback to run, got {calls}"
    assert len(registry) == 1, f"expected one slot, got {len(registry)}"


def test_invoke_missing_name_returns_none() -> None:
    """Absent callbacks are reported as None rather than raising."""
    result = CallbackRegistry().invoke("logosBarDesign", {})

    assert result is None, f"expected None for an unknown name, got {result!r}"


def test_token_release_removes_callback() -> None:
    """Releasing a token withdraws the callback exactly once."""
    registry = CallbackRegistry()
    token = registry.register("clientLogosDesign", _recorder([], "x"))
    assert token.active, "expected a fresh token to be active"

    assert token.release() is True, "expected the first release to remove the slot"
    assert token.release() is False, "expected a second release to do nothing"
    assert "clientLogosDesign" not in registry, "expected the slot to be gone"
    assert token.released and not token.active, "expected the token to report its release"


def test_stale_token_does_not_remove_newer_registration() -> None:
    """An unmounting editor cannot remove the callback of its replacement."""
    registry = CallbackRegistry()
    old = registry.register("cardsDesign", _recorder([], "old"))
    new = registry.register("cardsDesign", _recorder([], "new"))

    assert old.release() is False, "expected a stale release to be ignored"
    assert "cardsDesign" in registry, "expected the newer callback to stay registered"
    assert new.active, "expected the newer token to remain active"


def test_token_context_manager_releases_on_exit() -> None:
    """Using the token as a context manager scopes the registration."""
    registry = CallbackRegistry()
    with registry.register("logosBarDesign", _recorder([], "x")) as token:
        assert token.name == "logosBarDesign", f"unexpected token name {token.name!r}"
        assert registry.names() == ["logosBarDesign"], f"unexpected names {registry.names()}"
    assert len(registry) == 0, "expected the slot to be released on exit"


def test_unsaved_flags_are_tracked_and_cleared() -> None:
    """Editors flag local changes; successful saves clear the flags."""
    registry = CallbackRegistry()
    token = registry.register("cardsDesign", _recorder([], "x"))
    token.mark_unsaved()
    assert registry.is_unsaved("cardsDesign"), "expected the token flag to be visible"

    registry.clear_unsaved(["cardsDesign", "missing"])

    assert not registry.is_unsaved("cardsDesign"), "expected the flag to be cleared"
    assert not registry.is_unsaved("missing"), "unknown names are never unsaved"


def test_registry_mark_unsaved_by_name() -> None:
    """Flags can be set by name; unknown names report False."""
    registry = CallbackRegistry()
    registry.register("valueAddedCardDesign", _recorder([], "x"))

    assert registry.mark_unsaved("valueAddedCardDesign") is True, "expected the flag to be set"
    assert registry.is_unsaved("valueAddedCardDesign"), "expected the flag to be visible"
    assert registry.mark_unsaved("missing") is False, "expected False for an unknown name"


def test_register_rejects_empty_name() -> None:
    """Names must be non-empty."""
    with pytest.raises(ValueError, match="cannot be empty"):
        CallbackRegistry().register("", _recorder([], "x"))


def test_register_rejects_non_callable() -> None:
    """Only callables can be published."""
    with pytest.raises(TypeError):
        CallbackRegistry().register("cardsDesign", "not callable")  # type: ignore[arg-type]
