"""Load, validate, and serialise YAML configuration files."""

from __future__ import annotations

import copy
import types
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, get_args, get_origin, get_type_hints

import yaml

from labelmia.config.schema import LabelMIAConfig


def load_config(path: str | Path) -> LabelMIAConfig:
    """Load a YAML file and return a validated ``LabelMIAConfig``.

    Parameters
    ----------
    path:
        Path to the YAML configuration file.

    Returns
    -------
    LabelMIAConfig
        Fully populated configuration with defaults for missing fields.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the YAML content is invalid, contains unknown keys, or a value
        has the wrong type.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Expected top-level mapping in {path}, got {type(raw).__name__}")

    return _dict_to_dataclass(LabelMIAConfig, raw)


def default_config() -> LabelMIAConfig:
    """Return a ``LabelMIAConfig`` with all defaults."""
    return LabelMIAConfig()


def config_to_dict(cfg: LabelMIAConfig) -> dict[str, Any]:
    """Serialise a ``LabelMIAConfig`` back to a plain dict (YAML-friendly)."""
    return _dataclass_to_dict(cfg)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _dict_to_dataclass(cls: type, data: dict[str, Any]) -> Any:
    """Recursively convert a raw dict into a dataclass instance.

    Unknown keys raise ``ValueError`` so typos in configs are caught early.
    """
    if not is_dataclass(cls):
        raise TypeError(f"{cls} is not a dataclass")

    known_fields = {f.name for f in fields(cls)}
    # get_type_hints() resolves stringified annotations from __future__
    resolved_hints = get_type_hints(cls)
    unknown = set(data.keys()) - known_fields
    if unknown:
        raise ValueError(
            f"Unknown config keys for {cls.__name__}: {sorted(unknown)}. "
            f"Valid keys: {sorted(known_fields)}"
        )

    kwargs = {
        name: _coerce_value(resolved_hints[name], value, field_name=name)
        for name, value in data.items()
    }
    return cls(**kwargs)


def _coerce_value(type_hint: Any, value: Any, *, field_name: str) -> Any:
    """Coerce a raw YAML value to the expected Python type."""

    # --- Optional[...] ---
    if _is_optional(type_hint):
        if value is None:
            return None
        return _coerce_value(_unwrap_optional(type_hint), value, field_name=field_name)

    # --- Enum ---
    if isinstance(type_hint, type) and issubclass(type_hint, Enum):
        try:
            return type_hint(value)
        except ValueError:
            valid = [e.value for e in type_hint]
            raise ValueError(
                f"Invalid value {value!r} for {field_name}. Must be one of {valid}"
            ) from None

    # --- Dataclass (nested section) ---
    if is_dataclass(type_hint):
        if not isinstance(value, dict):
            raise ValueError(f"Expected mapping for {field_name}, got {type(value).__name__}")
        return _dict_to_dataclass(type_hint, value)

    # --- list[...] ---
    if get_origin(type_hint) is list:
        if not isinstance(value, list):
            raise ValueError(f"Expected list for {field_name}, got {type(value).__name__}")
        args = get_args(type_hint)
        if args:
            return [_coerce_value(args[0], v, field_name=f"{field_name}[]") for v in value]
        return list(value)

    # --- Scalars ---
    # YAML reads "1" as int; accept it where a float is expected.
    if type_hint is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if type_hint in (int, float, str, bool):
        if not isinstance(value, type_hint) or (type_hint is int and isinstance(value, bool)):
            raise ValueError(
                f"Expected {type_hint.__name__} for {field_name}, got {type(value).__name__}"
            )
    return value


def _is_optional(tp: Any) -> bool:
    """Check if a type hint is ``Optional[X]`` (i.e. ``Union[X, None]``)."""
    origin = get_origin(tp)
    if origin is types.UnionType or (origin is not None and origin is not list):
        return type(None) in get_args(tp)
    return False


def _unwrap_optional(tp: Any) -> Any:
    """Return the inner type from ``Optional[X]``."""
    return next(a for a in get_args(tp) if a is not type(None))


def _dataclass_to_dict(obj: Any) -> Any:
    """Recursively convert a dataclass to a plain dict."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, list):
        return [_dataclass_to_dict(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    return copy.deepcopy(obj)
