"""Name-keyed registry of editor-owned persistence callbacks.

Some editors buffer their changes locally and only flush them when the
operator presses save. They publish a callback here when they mount, under a
well-known name, and the save orchestrator invokes it by that name. The
registry is an ordinary object handed to the controller at construction,
not process-wide state.

Registrations are scoped: :meth:`CallbackRegistry.register` returns a
:class:`RegistrationToken` that the editor releases when it unmounts (or
uses as a context manager), so a callback owned by an editor that is gone
can no longer be invoked.

Examples
--------
>>> registry = CallbackRegistry()
>>> async def flush(document):
...     pass
>>> with registry.register("cardsDesign", flush):
...     "cardsDesign" in registry
True
>>> "cardsDesign" in registry
False
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import typing as typ

if typ.TYPE_CHECKING:
    import types

    from ..document import Document

logger = logging.getLogger(__name__)

SaveCallback = typ.Callable[["Document"], "typ.Awaitable[None] | None"]


@dc.dataclass(slots=True, eq=False)
class Registration:
    """A callback currently published under ``name``.

    Attributes
    ----------
    name : str
        Registry key the orchestrator resolves through its save plan.
    callback : SaveCallback
        Callable receiving the current document. Coroutine functions are
        awaited by the orchestrator; plain functions run synchronously.
    unsaved : bool
        Editor-maintained indicator that local changes are waiting for a
        save. Cleared by the orchestrator after a successful save.
    """

    name: str
    callback: SaveCallback
    unsaved: bool = False


class RegistrationToken:
    """Handle returned by :meth:`CallbackRegistry.register`."""

    def __init__(self, registry: CallbackRegistry, registration: Registration) -> None:
        self._registry = registry
        self._registration = registration
        self._released = False

    @property
    def name(self) -> str:
        return self._registration.name

    @property
    def released(self) -> bool:
        return self._released

    @property
    def active(self) -> bool:
        """Whether this token's callback is still the one published under its name."""
        return not self._released and self._registry._slots.get(self.name) is self._registration

    def mark_unsaved(self, unsaved: bool = True) -> None:
        """Flag (or unflag) local changes that still need a save."""
        self._registration.unsaved = unsaved

    def release(self) -> bool:
        """Withdraw the callback.

        Returns ``True`` when the slot was removed. A token whose callback
        was already replaced by a newer registration leaves the newer one in
        place and returns ``False``.
        """
        if self._released:
            return False
        self._released = True
        return self._registry._release(self._registration)

    def __enter__(self) -> RegistrationToken:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.release()


class CallbackRegistry:
    """Registry of save callbacks keyed by name; the last registration wins.

    Thread safety: Not thread-safe (all operations expected on the event
    loop thread).
    """

    def __init__(self) -> None:
        self._slots: dict[str, Registration] = {}

    def register(self, name: str, callback: SaveCallback) -> RegistrationToken:
        """Publish ``callback`` under ``name`` and return its release token."""
        if not name:
            msg = "Callback name cannot be empty."
            raise ValueError(msg)
        if not callable(callback):
            msg = f"Callback for '{name}' must be callable."
            raise TypeError(msg)

        if name in self._slots:
            logger.warning(f"Overwriting save callback: {name}")
        registration = Registration(name=name, callback=callback)
        self._slots[name] = registration
        logger.debug(f"Registered save callback: {name}")
        return RegistrationToken(self, registration)

    def _release(self, registration: Registration) -> bool:
        if self._slots.get(registration.name) is not registration:
            logger.debug(f"Ignoring stale release for save callback: {registration.name}")
            return False
        del self._slots[registration.name]
        logger.debug(f"Released save callback: {registration.name}")
        return True

    def invoke(self, name: str, document: Document) -> typ.Awaitable[None] | None:
        """Start the callback registered under ``name``.

        Returns the awaitable produced by a coroutine callback. ``None`` is
        returned both when nothing is registered and when a plain callback
        finished; check ``name in registry`` to tell them apart.
        """
        registration = self._slots.get(name)
        if registration is None:
            return None
        return registration.callback(document)

    def get(self, name: str) -> Registration | None:
        return self._slots.get(name)

    def mark_unsaved(self, name: str, unsaved: bool = True) -> bool:
        """Set the unsaved indicator for ``name``; ``False`` when nothing is registered."""
        registration = self._slots.get(name)
        if registration is None:
            return False
        registration.unsaved = unsaved
        return True

    def is_unsaved(self, name: str) -> bool:
        registration = self._slots.get(name)
        return bool(registration and registration.unsaved)

    def clear_unsaved(self, names: cabc.Iterable[str]) -> None:
        """Reset the unsaved indicator of every registration in ``names``."""
        for name in names:
            registration = self._slots.get(name)
            if registration is not None:
                registration.unsaved = False

    def names(self) -> list[str]:
        return list(self._slots)

    def __contains__(self, name: object) -> bool:
        return name in self._slots

    def __len__(self) -> int:
        return len(self._slots)


__all__ = ["CallbackRegistry", "Registration", "RegistrationToken", "SaveCallback"]
