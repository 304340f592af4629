from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import EmitError, InvalidArgument, MaxListenersRangeError, MaxListenersTypeError
from .settings import DEFAULT_MAX_LISTENERS, ErrorPolicy, RegistrySettings

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]

# Meta-event fired after a listener is removed from a name that keeps other listeners
REMOVE_LISTENER_EVENT = "removeListener"


@dataclass(frozen=True, eq=False)
class Registration:
    """A single listener registration.

    Attributes:
        original: The callable supplied by the caller; used for removal and
            reported by ``listeners()``.
        invocable: The callable that emit invokes. Same as ``original`` unless
            the registration was made through ``once``.
        once: Whether the registration removes itself after firing.
    """

    original: Listener
    invocable: Listener
    once: bool = False

    def matches(self, listener: Listener) -> bool:
        return self.original == listener or self.invocable == listener


def _describe(listener: Listener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class EventRegistry:
    """In-process synchronous publish/subscribe registry.

    Listeners are registered against one or more event names and invoked in
    registration order when the event is emitted. Several names can be given at
    once as a whitespace-separated string::

        registry = EventRegistry()
        registry.on("saved closed", handler)
        registry.emit("saved", path)
    """

    DEFAULT_MAX_LISTENERS = DEFAULT_MAX_LISTENERS

    def __init__(self, settings: Optional[RegistrySettings] = None) -> None:
        settings = settings or RegistrySettings()
        self._listeners_by_name: Dict[str, List[Registration]] = {}
        self._max_listeners: Union[int, float] = DEFAULT_MAX_LISTENERS
        self.max_listeners = settings.max_listeners
        self.error_policy = ErrorPolicy(settings.error_policy)

    # ------------------------ Registration ------------------------
    def add_listener(self, names: str, listener: Listener, prepend: bool = False) -> None:
        """Register ``listener`` under every name in ``names``.

        Args:
            names: One or more event names separated by whitespace.
            listener: Callable invoked with the arguments passed to ``emit``.
            prepend: Insert at the front of each sequence instead of the back.

        Raises:
            InvalidArgument: If ``listener`` is not callable.
        """
        _require_callable(listener)
        self._add(names, Registration(original=listener, invocable=listener), prepend)

    on = add_listener

    def prepend_listener(self, names: str, listener: Listener) -> None:
        self.add_listener(names, listener, prepend=True)

    def once(self, names: str, listener: Listener, prepend: bool = False) -> None:
        """Register ``listener`` to run on the next emit only.

        The listener is called first and its registration is removed from all
        of ``names`` afterwards. Passing the same ``listener`` to
        ``remove_listener`` before it fires cancels it.
        """
        _require_callable(listener)

        def once_adapter(*args: Any, **kwargs: Any) -> Any:
            result = listener(*args, **kwargs)
            self._remove(names, lambda reg: reg is registration, listener)
            return result

        registration = Registration(original=listener, invocable=once_adapter, once=True)
        self._add(names, registration, prepend)

    def prepend_once(self, names: str, listener: Listener) -> None:
        self.once(names, listener, prepend=True)

    def _add(self, names: str, registration: Registration, prepend: bool) -> None:
        for event_name in _split_names(names):
            count = self.listener_count(event_name)
            if count == self._max_listeners:
                logger.warning(
                    "Possible EventRegistry memory leak detected. %d %s listeners added. "
                    "Set registry.max_listeners to increase limit.",
                    count,
                    event_name,
                )
            sequence = self._listeners_by_name.setdefault(event_name, [])
            if prepend:
                sequence.insert(0, registration)
            else:
                sequence.append(registration)
            logger.debug(
                "Registered %s for '%s'%s%s",
                _describe(registration.original),
                event_name,
                " (once)" if registration.once else "",
                " at front" if prepend else "",
            )

    # ------------------------ Removal ------------------------
    def remove_listener(self, names: str, listener: Listener) -> None:
        """Remove every registration of ``listener`` from each name in ``names``.

        When a name keeps other listeners afterwards, ``"removeListener"`` is
        emitted with ``(event_name, listener)``. Unknown names and listeners are
        ignored.

        Raises:
            InvalidArgument: If ``listener`` is not callable.
        """
        _require_callable(listener)
        self._remove(names, lambda reg: reg.matches(listener), listener)

    off = remove_listener

    def _remove(self, names: str, predicate: Callable[[Registration], bool], listener: Listener) -> None:
        for event_name in _split_names(names):
            current = self._listeners_by_name.get(event_name, [])
            remaining = [reg for reg in current if not predicate(reg)]
            if not remaining:
                self.remove_all_listeners(event_name)
                continue
            if len(remaining) != len(current):
                self._listeners_by_name[event_name] = remaining
                logger.debug("Removed %s from '%s'", _describe(listener), event_name)
                self.emit(REMOVE_LISTENER_EVENT, event_name, listener)

    def remove_all_listeners(self, name: str) -> None:
        """Drop every listener for ``name``. No ``"removeListener"`` events are fired."""
        if self._listeners_by_name.pop(name, None) is not None:
            logger.debug("Removed all listeners for '%s'", name)

    # ------------------------ Dispatch ------------------------
    def emit(self, name: str, *args: Any, **kwargs: Any) -> bool:
        """Invoke every listener registered for ``name`` in order.

        The listener sequence is copied before the first call, so listeners
        added or removed while emitting only affect later emits.

        Returns:
            False if no listener was registered for ``name``, True otherwise.

        Raises:
            EmitError: Under ``ErrorPolicy.COLLECT`` when at least one listener
                raised. Under ``ErrorPolicy.RAISE`` the listener's own exception
                propagates and the remaining listeners are skipped.
        """
        snapshot = list(self._listeners_by_name.get(name, ()))
        if not snapshot:
            logger.debug("Emitting '%s' with no listeners", name)
            return False
        logger.debug("Emitting '%s' to %d listeners", name, len(snapshot))

        if self.error_policy is ErrorPolicy.RAISE:
            for reg in snapshot:
                reg.invocable(*args, **kwargs)
            return True

        errors: List[Exception] = []
        for reg in snapshot:
            try:
                reg.invocable(*args, **kwargs)
            except Exception as exc:
                logger.exception("Listener %s failed for '%s'", _describe(reg.original), name)
                errors.append(exc)
        if errors:
            raise EmitError(name, errors) from errors[0]
        return True

    # ------------------------ Introspection ------------------------
    def event_names(self) -> List[str]:
        return list(self._listeners_by_name)

    def listeners(self, name: str) -> List[Listener]:
        """Return a copy of the listeners for ``name`` as they were registered."""
        return [reg.original for reg in self._listeners_by_name.get(name, ())]

    def raw_listeners(self, name: str) -> List[Listener]:
        """Like ``listeners`` but returns the callables emit invokes, once-adapters included."""
        return [reg.invocable for reg in self._listeners_by_name.get(name, ())]

    def listener_count(self, name: str) -> int:
        return len(self._listeners_by_name.get(name, ()))

    @property
    def max_listeners(self) -> Union[int, float]:
        """Listener count per name that triggers the leak warning; ``math.inf`` when unbounded."""
        return self._max_listeners

    @max_listeners.setter
    def max_listeners(self, n: Union[int, float]) -> None:
        if isinstance(n, bool) or not isinstance(n, numbers.Real) or not math.isfinite(n):
            raise MaxListenersTypeError("max_listeners must be a number.")
        if n < 0:
            raise MaxListenersRangeError("max_listeners cannot be set to a negative value.")
        self._max_listeners = math.inf if n == 0 else n


def _require_callable(listener: Any) -> None:
    if not callable(listener):
        raise InvalidArgument("listener must be callable")


def _split_names(names: str) -> List[str]:
    if not isinstance(names, str):
        raise InvalidArgument(f"event names must be a string, got {type(names).__name__}")
    return names.split()
