from __future__ import annotations

import dataclasses
import logging
import math
import os
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_MAX_LISTENERS = 10

# Section name accepted in TOML/YAML settings files
SECTION = "registry"


class ErrorPolicy(str, Enum):
    """How emit treats an exception raised by a listener."""

    # Propagate immediately; later listeners in the same emit are skipped
    RAISE = "raise"
    # Run every listener, then raise a single EmitError listing the failures
    COLLECT = "collect"


def _as_max_listeners(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"max_listeners must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number) or number != int(number):
        raise ValueError(f"max_listeners must be a whole number, got {value!r}")
    return int(number)


@dataclass
class RegistrySettings:
    """Defaults applied to every new EventRegistry.

    Settings can be constructed/overridden from:
    - Environment variables (prefix: EVREG_)
    - A TOML or YAML file (env EVREG_SETTINGS_FILE, or an explicit path)

    Keys may sit at the top level of the file or under a ``[registry]`` section.
    """

    max_listeners: int = DEFAULT_MAX_LISTENERS
    error_policy: ErrorPolicy = ErrorPolicy.RAISE

    def validate(self) -> None:
        """Validate and normalize settings to safe values."""
        try:
            self.max_listeners = _as_max_listeners(self.max_listeners)
        except (TypeError, ValueError) as exc:
            logger.warning("Invalid max_listeners %r (%s); resetting to %d", self.max_listeners, exc, DEFAULT_MAX_LISTENERS)
            self.max_listeners = DEFAULT_MAX_LISTENERS
        if self.max_listeners < 0:
            logger.warning("Negative max_listeners %d; resetting to %d", self.max_listeners, DEFAULT_MAX_LISTENERS)
            self.max_listeners = DEFAULT_MAX_LISTENERS
        try:
            self.error_policy = ErrorPolicy(str(getattr(self.error_policy, "value", self.error_policy)).strip().lower())
        except ValueError:
            logger.warning("Unknown error_policy %r; using '%s'", self.error_policy, ErrorPolicy.RAISE.value)
            self.error_policy = ErrorPolicy.RAISE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "max_listeners": self.max_listeners,
            "error_policy": self.error_policy.value,
        }

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistrySettings":
        allowed = {f.name for f in dataclasses.fields(cls)}
        filtered = {k: v for k, v in data.items() if k in allowed}
        obj = cls(**filtered)
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "EVREG_MAX_LISTENERS": ("max_listeners", _as_max_listeners),
            "EVREG_ERROR_POLICY": ("error_policy", ErrorPolicy),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            if env.get(env_key, "") != "":
                try:
                    out[field_name] = caster(env[env_key].strip().lower())
                except ValueError as exc:
                    logger.error("Invalid env for %s=%r: %s", env_key, env[env_key], exc)
        return out

    @classmethod
    def from_file(cls, path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.debug("Settings file not found: %s", path)
            return {}
        try:
            if path.suffix.lower() in {".yaml", ".yml"}:
                doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            else:
                with path.open("rb") as f:
                    doc = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
            logger.error("Failed to read settings file %s: %s", path, exc)
            return {}
        if not isinstance(doc, dict):
            logger.warning("Settings file %s does not contain a mapping; ignoring", path)
            return {}
        flat: Dict[str, Any] = {k: v for k, v in doc.items() if not isinstance(v, dict)}
        if isinstance(doc.get(SECTION), dict):
            flat.update(doc[SECTION])
        logger.debug("Loaded registry settings from %s: %s", path, flat)
        return flat

    @classmethod
    def discover_config_path(cls, env: Optional[Dict[str, str]] = None) -> Optional[Path]:
        env = os.environ if env is None else env
        env_path = env.get("EVREG_SETTINGS_FILE")
        if env_path:
            return Path(env_path).expanduser().resolve()
        return None

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Dict[str, str]] = None,
        file_path: Optional[Path | str] = None,
    ) -> "RegistrySettings":
        # Order of precedence (lowest to highest): defaults < file < env
        data: Dict[str, Any] = {}
        if file_path is not None:
            chosen_path: Optional[Path] = Path(file_path).expanduser().resolve()
        else:
            chosen_path = cls.discover_config_path(env)
        if chosen_path is not None:
            data.update(cls.from_file(chosen_path))
        data.update(cls.from_env(env))
        return cls.from_dict(data)
