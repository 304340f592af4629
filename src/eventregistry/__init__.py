"""In-process synchronous publish/subscribe registry."""

from .emitter import REMOVE_LISTENER_EVENT, EventRegistry, Listener
from .errors import (
    EmitError,
    EventRegistryError,
    InvalidArgument,
    MaxListenersRangeError,
    MaxListenersTypeError,
)
from .logging_config import configure_logging
from .settings import DEFAULT_MAX_LISTENERS, ErrorPolicy, RegistrySettings

__all__ = [
    "DEFAULT_MAX_LISTENERS",
    "EmitError",
    "ErrorPolicy",
    "EventRegistry",
    "EventRegistryError",
    "InvalidArgument",
    "Listener",
    "MaxListenersRangeError",
    "MaxListenersTypeError",
    "REMOVE_LISTENER_EVENT",
    "RegistrySettings",
    "configure_logging",
]
