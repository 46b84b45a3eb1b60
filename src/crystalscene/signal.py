"""Synchronous publish/subscribe signal.

A :class:`Signal` decouples a producer (e.g. the orbit controller) from
any number of listeners (e.g. the axis overlay).  Publication is a
direct fan-out on the caller's stack: there is no queue and no
threading.

Handlers come in two shapes and both may be subscribed to the same
signal::

    sig = Signal()
    sig.subscribe(lambda: print("changed"))
    sig.subscribe(lambda value: print("changed to", value))
    sig.publish(42)

The calling convention is chosen per handler from its signature, so
zero-argument handlers never receive the payload.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: A signal handler: either ``handler(payload)`` or ``handler()``.
Handler = Union[Callable[[T], Any], Callable[[], Any]]

# Sentinel distinguishing ``publish()`` from ``publish(None)``.
_NO_PAYLOAD: Any = object()

_POSITIONAL_KINDS = frozenset({
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.VAR_POSITIONAL,
})


def _accepts_payload(handler: Callable[..., Any]) -> bool:
    """Return ``True`` if *handler* can be called with one positional argument."""
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError):
        # Some builtins and C callables expose no signature.
        return True
    return any(p.kind in _POSITIONAL_KINDS for p in sig.parameters.values())


class _Slot:
    """One registration of a handler on a signal."""

    __slots__ = ("handler", "once", "takes_payload")

    def __init__(self, handler: Callable[..., Any], once: bool) -> None:
        self.handler = handler
        self.once = once
        self.takes_payload = _accepts_payload(handler)


class Signal(Generic[T]):
    """A single-event-type publish/subscribe primitive.

    Removal is safe during dispatch.  When :meth:`unsubscribe` or
    :meth:`clear` is called from inside a handler, the affected
    registrations are skipped for the rest of the dispatch and removed
    once the outermost :meth:`publish` returns.  Every handler that was
    registered when :meth:`publish` was called therefore runs at most
    once per dispatch, and never after its removal was requested.

    Handlers registered during a dispatch are not called by that
    dispatch; they receive the next one.

    Args:
        name: Optional label used in log messages.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._slots: list[_Slot] = []
        self._pending_removal: set[_Slot] = set()
        self._depth = 0

    def __len__(self) -> int:
        return sum(1 for s in self._slots if s not in self._pending_removal)

    def __repr__(self) -> str:
        return f"Signal(name={self.name!r}, handlers={len(self)})"

    @property
    def dispatching(self) -> bool:
        """Whether a :meth:`publish` call is currently in progress."""
        return self._depth > 0

    def subscribe(self, handler: Handler[T]) -> None:
        """Register *handler* for every subsequent publication."""
        self._slots.append(_Slot(handler, once=False))

    def subscribe_once(self, handler: Handler[T]) -> None:
        """Register *handler* for the next publication only."""
        self._slots.append(_Slot(handler, once=True))

    def unsubscribe(self, handler: Handler[T]) -> None:
        """Remove the earliest active registration of *handler*.

        Unknown handlers are ignored.  Bound methods are matched by
        equality, so ``sig.unsubscribe(obj.method)`` works.
        """
        for slot in self._slots:
            if slot in self._pending_removal:
                continue
            if slot.handler == handler:
                if self._depth:
                    self._pending_removal.add(slot)
                else:
                    self._slots.remove(slot)
                return
        logger.debug("%r: unsubscribe of unknown handler %r ignored", self, handler)

    def clear(self) -> None:
        """Remove every handler."""
        if self._depth:
            self._pending_removal.update(self._slots)
        else:
            self._slots.clear()

    def has_handlers(self) -> bool:
        """Return ``True`` if at least one handler is registered."""
        return len(self) > 0

    def publish(self, payload: T = _NO_PAYLOAD) -> None:
        """Call every registered handler synchronously.

        Args:
            payload: Value passed to handlers that take an argument.
                When omitted, such handlers receive ``None``;
                zero-argument handlers are always called bare.

        Exceptions raised by a handler propagate to the caller after
        the dispatch state has been restored.
        """
        arg = None if payload is _NO_PAYLOAD else payload
        snapshot = list(self._slots)
        self._depth += 1
        try:
            for slot in snapshot:
                if slot in self._pending_removal:
                    continue
                if slot.once:
                    # Mark before calling so a nested publish cannot
                    # run the same once-handler a second time.
                    self._pending_removal.add(slot)
                if slot.takes_payload:
                    slot.handler(arg)
                else:
                    slot.handler()
        finally:
            self._depth -= 1
            if self._depth == 0 and self._pending_removal:
                self._slots = [
                    s for s in self._slots if s not in self._pending_removal
                ]
                self._pending_removal.clear()
