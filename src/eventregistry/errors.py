class EventRegistryError(Exception):
    """Base error for event registry exceptions."""


class InvalidArgument(EventRegistryError, TypeError):
    """Raised when a listener is not callable or event names are not a string."""


class MaxListenersTypeError(EventRegistryError, TypeError):
    """Raised when max_listeners is assigned something other than a finite number."""


class MaxListenersRangeError(EventRegistryError, ValueError):
    """Raised when max_listeners is assigned a negative value."""


class EmitError(EventRegistryError):
    """Raised by emit under the collect policy when one or more listeners failed.

    Attributes:
        event_name: The event that was being emitted.
        errors: Exceptions raised by listeners, in invocation order.
    """

    def __init__(self, event_name: str, errors: list) -> None:
        self.event_name = event_name
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} listener(s) failed while emitting '{event_name}'")
