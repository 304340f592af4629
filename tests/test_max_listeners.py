import logging
import math

import pytest

from eventregistry import (
    DEFAULT_MAX_LISTENERS,
    EventRegistry,
    MaxListenersRangeError,
    MaxListenersTypeError,
    RegistrySettings,
)

LOGGER = "eventregistry.emitter"


def _leak_warnings(caplog: pytest.LogCaptureFixture):
    return [r for r in caplog.records if r.name == LOGGER and r.levelno == logging.WARNING]


def test_default_value(registry: EventRegistry):
    assert registry.max_listeners == DEFAULT_MAX_LISTENERS == 10


def test_can_be_set_above_zero(registry: EventRegistry):
    registry.max_listeners = 1
    assert registry.max_listeners == 1


def test_zero_means_unbounded(registry: EventRegistry):
    registry.max_listeners = 0
    assert registry.max_listeners == math.inf


def test_negative_is_rejected_and_value_kept(registry: EventRegistry):
    registry.max_listeners = 5
    with pytest.raises(MaxListenersRangeError, match="cannot be set to a negative value"):
        registry.max_listeners = -1
    assert registry.max_listeners == 5


def test_range_error_is_a_value_error(registry: EventRegistry):
    with pytest.raises(ValueError):
        registry.max_listeners = -3


@pytest.mark.parametrize("value", ["3", None, float("nan"), float("inf"), True])
def test_non_numbers_are_rejected_and_value_kept(registry: EventRegistry, value):
    with pytest.raises(MaxListenersTypeError, match="must be a number"):
        registry.max_listeners = value
    assert registry.max_listeners == DEFAULT_MAX_LISTENERS


def test_type_error_is_a_type_error(registry: EventRegistry):
    with pytest.raises(TypeError):
        registry.max_listeners = "ten"


def test_seeded_from_settings():
    registry = EventRegistry(RegistrySettings(max_listeners=3))
    assert registry.max_listeners == 3

    unbounded = EventRegistry(RegistrySettings(max_listeners=0))
    assert unbounded.max_listeners == math.inf


def test_leak_warning_when_count_reaches_limit(registry: EventRegistry, caplog: pytest.LogCaptureFixture):
    registry.max_listeners = 2
    with caplog.at_level(logging.WARNING, logger=LOGGER):
        registry.on("event", lambda: None)
        registry.on("event", lambda: None)
        assert _leak_warnings(caplog) == []

        registry.on("event", lambda: None)
        warnings = _leak_warnings(caplog)
        assert len(warnings) == 1
        assert "memory leak" in warnings[0].getMessage()
        assert "2 event listeners" in warnings[0].getMessage()

        # Only the add that hits the threshold warns
        registry.on("event", lambda: None)
        assert len(_leak_warnings(caplog)) == 1

    # Registration is never blocked
    assert registry.listener_count("event") == 4


def test_leak_warning_per_name(registry: EventRegistry, caplog: pytest.LogCaptureFixture):
    registry.max_listeners = 1
    with caplog.at_level(logging.WARNING, logger=LOGGER):
        registry.on("a b", lambda: None)
        registry.on("a b", lambda: None)
    messages = [r.getMessage() for r in _leak_warnings(caplog)]
    assert len(messages) == 2
    assert any(" a listeners" in m for m in messages)
    assert any(" b listeners" in m for m in messages)


def test_unbounded_never_warns(registry: EventRegistry, caplog: pytest.LogCaptureFixture):
    registry.max_listeners = 0
    with caplog.at_level(logging.WARNING, logger=LOGGER):
        for _ in range(50):
            registry.on("event", lambda: None)
    assert _leak_warnings(caplog) == []
    assert registry.listener_count("event") == 50
