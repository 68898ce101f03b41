"""
Configuration system for the ecosystem simulator.

Five sections, each a dataclass: world (grid and seed), population (initial
animals), disasters (per-tick odds and duration range), events (event log
outputs) and run (length, KPI sampling, output directory). Sections declare
their numeric bounds in `_BOUNDS`; `SimConfig.validate()` checks every
section and returns a list of error strings (empty = valid).

JSON files may omit any key; missing values keep their defaults. Values are
coerced to the declared field type, so `"width": 30.0` loads as 30.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import MISSING, asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, ClassVar


SPECIES_NAMES = ("rabbit", "fluffles")

Bounds = dict[str, tuple[float | None, float | None]]


class _Section:
    """Mixin: bounds-driven validation for one config section."""

    _NAME: ClassVar[str] = ""
    _BOUNDS: ClassVar[Bounds] = {}

    def validate(self) -> list[str]:
        errors = []
        for key, (low, high) in self._BOUNDS.items():
            value = getattr(self, key)
            if low is not None and value < low:
                errors.append(f"{self._NAME}.{key} must be >= {low}, got {value}")
            elif high is not None and value > high:
                errors.append(f"{self._NAME}.{key} must be <= {high}, got {value}")
        return errors + self._extra_checks()

    def _extra_checks(self) -> list[str]:
        return []


@dataclass
class WorldConfig(_Section):
    """Grid and seeding settings."""
    _NAME: ClassVar[str] = "world"
    _BOUNDS: ClassVar[Bounds] = {"width": (1, 1000), "height": (1, 1000)}

    width: int = 30
    height: int = 15
    seed: int = 42


@dataclass
class PopulationConfig(_Section):
    """Animals seeded at the start of a run."""
    _NAME: ClassVar[str] = "population"
    _BOUNDS: ClassVar[Bounds] = {"initial_count": (0, None)}

    initial_count: int = 5
    species: str = "fluffles"

    def _extra_checks(self) -> list[str]:
        if self.species in SPECIES_NAMES:
            return []
        return [f"population.species must be one of {', '.join(SPECIES_NAMES)}, got '{self.species}'"]


@dataclass
class DisasterConfig(_Section):
    """
    Per-tick odds and duration range.

    challenge_chance: odds of a single-tick minor challenge.
    disaster_chance: odds of a multi-tick major disaster.
    A disaster lasts min_duration + integers(0, duration_spread) ticks.
    """
    _NAME: ClassVar[str] = "disasters"
    _BOUNDS: ClassVar[Bounds] = {
        "challenge_chance": (0.0, 1.0),
        "disaster_chance": (0.0, 1.0),
        "min_duration": (1, None),
        "duration_spread": (1, None),
    }

    challenge_chance: float = 0.005
    disaster_chance: float = 0.001
    min_duration: int = 20
    duration_spread: int = 30


@dataclass
class EventConfig(_Section):
    """Event log outputs."""
    _NAME: ClassVar[str] = "events"
    _BOUNDS: ClassVar[Bounds] = {"history_size": (1, None)}

    console: bool = False
    to_file: bool = True
    history_size: int = 500


@dataclass
class RunConfig(_Section):
    _NAME: ClassVar[str] = "run"
    _BOUNDS: ClassVar[Bounds] = {"max_ticks": (1, None), "stats_every_n_ticks": (1, None)}

    max_ticks: int = 1000
    stats_every_n_ticks: int = 1
    output_dir: str = "runs"


@dataclass
class SimConfig:
    """
    Top-level simulation configuration.

    Load from JSON with `load_config()`, check with `validate()`.
    """
    world: WorldConfig = field(default_factory=WorldConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    disasters: DisasterConfig = field(default_factory=DisasterConfig)
    events: EventConfig = field(default_factory=EventConfig)
    run: RunConfig = field(default_factory=RunConfig)

    def sections(self) -> list[_Section]:
        return [getattr(self, f.name) for f in fields(self)]

    def validate(self) -> list[str]:
        """All errors across every section (empty = valid)."""
        return [error for section in self.sections() for error in section.validate()]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        """Build a config from a nested dict, keeping defaults for missing keys."""
        config = cls()
        _merge_into_dataclass(config, data)
        return config

    def copy(self) -> SimConfig:
        return deepcopy(self)


# ---------------------------------------------------------------------------
# Merging and coercion
# ---------------------------------------------------------------------------

def _field_default(f) -> Any:
    if f.default is not MISSING:
        return f.default
    return f.default_factory()


def _coerce(value: Any, like: Any, where: str) -> Any:
    """Convert a JSON value to the type of the default it replaces."""
    if isinstance(like, bool):
        if isinstance(value, bool):
            return value
        raise ValueError(f"{where} must be true or false, got {value!r}")
    if isinstance(like, int):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value):
            raise ValueError(f"{where} must be an integer, got {value!r}")
        return int(value)
    if isinstance(like, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{where} must be a number, got {value!r}")
        return float(value)
    if isinstance(like, str):
        return str(value)
    return value


def _merge_into_dataclass(target: Any, source: dict[str, Any], path: str = "") -> None:
    """
    Recursively merge a dict into a dataclass instance.

    Unknown keys emit a UserWarning and are skipped.

    Raises:
        ValueError: If a value cannot be coerced to its field's type.
    """
    if not isinstance(source, dict):
        return

    by_name = {f.name: f for f in fields(target)}
    for key, value in source.items():
        where = f"{path}{key}"
        if key not in by_name:
            warnings.warn(
                f"Unknown config key '{where}' in {type(target).__name__}, ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)
        if is_dataclass(current):
            _merge_into_dataclass(current, value, f"{where}.")
        else:
            setattr(target, key, _coerce(value, _field_default(by_name[key]), where))


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------

def load_config(path: str | Path) -> SimConfig:
    """
    Load a config from JSON. Missing fields use defaults.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If the JSON is malformed.
        ValueError: If a value has the wrong type or is out of range.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    config = SimConfig.from_dict(data)

    errors = config.validate()
    if errors:
        raise ValueError("Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors))
    return config


def save_config(config: SimConfig, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")


def get_default_config() -> SimConfig:
    """A fresh config holding every default."""
    config = SimConfig()
    errors = config.validate()
    if errors:
        raise ValueError(f"Default configuration is invalid: {errors}")
    return config


def apply_param_override(config: SimConfig, dotted_key: str, value: Any) -> None:
    """
    Set one parameter by dotted path, coercing to the field's type.

    Example:
        apply_param_override(config, "disasters.disaster_chance", 0.01)

    Raises:
        KeyError: If the path doesn't name a config field.
        ValueError: If the value has the wrong type.
    """
    section_name, _, key = dotted_key.partition(".")
    section = getattr(config, section_name, None)
    if not is_dataclass(section) or not key:
        raise KeyError(f"Config path '{dotted_key}' invalid: no section '{section_name}'")

    by_name = {f.name: f for f in fields(section)}
    if key not in by_name:
        raise KeyError(f"Config path '{dotted_key}' invalid: '{key}' not in {type(section).__name__}")
    setattr(section, key, _coerce(value, _field_default(by_name[key]), dotted_key))
