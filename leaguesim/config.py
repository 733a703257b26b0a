"""Configuration loader for the simulation engine.

Every tuning constant the engine uses (league outcome rates, times through
the order penalties, platoon size, fatigue scale, squash magnitude, hook
thresholds, RE24 blend weights) is read from ``data/sim_defaults.json`` and
exposed through the :class:`SimConfig` dataclass.  An optional JSON file may
supply override values without touching the defaults.  Configurations carry a
``version`` string so results can be traced back to the values that produced
them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, make_dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping
import copy
import json
import logging

from utils.exceptions import ConfigurationError
from utils.path_utils import get_base_dir, get_data_dir

logger = logging.getLogger(__name__)

DEFAULTS_PATH = get_data_dir() / "sim_defaults.json"


@dataclass
class SimConfig:
    """Container for the engine's tuning sections.

    Each section is converted into its own dataclass where every key becomes
    a typed attribute, so ``cfg.Hook.starter_ceiling`` and
    ``cfg.get("Hook", "starter_ceiling")`` are equivalent.  The raw values are
    kept in :attr:`raw` for serialization and overrides.
    """

    sections: Dict[str, Any]
    version: str = "1.0"
    raw: Dict[str, Dict[str, Any]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Turn plain section dictionaries into dataclass instances."""

        self.raw = {name: dict(values) for name, values in self.sections.items()}
        typed_sections: Dict[str, Any] = {}
        for name, values in self.raw.items():
            fields = [(k, type(v), field(default=v)) for k, v in values.items()]
            SectionCls = make_dataclass(name, fields, frozen=True)
            section_obj = SectionCls(**values)
            setattr(self, name, section_obj)
            typed_sections[name] = section_obj
        self.sections = typed_sections

    # ------------------------------------------------------------------
    # Access helpers
    # ------------------------------------------------------------------
    def get(self, section: str, key: str, default: Any | None = None) -> Any:
        """Return a configuration value from ``section`` or ``default``."""

        sect = self.sections.get(section)
        return getattr(sect, key, default) if sect else default

    def section(self, name: str) -> Dict[str, Any]:
        """Return a copy of section ``name`` as a plain dictionary."""

        if name not in self.raw:
            raise ConfigurationError(f"Unknown config section '{name}'")
        return dict(self.raw[name])

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "sections": copy.deepcopy(self.raw)}

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def default(cls) -> "SimConfig":
        """Return the bundled default configuration."""

        data = _load_defaults()
        return cls(copy.deepcopy(data["sections"]), version=str(data["version"]))

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> "SimConfig":
        """Create a configuration from defaults updated with ``data``.

        ``data`` maps section names to partial dictionaries.  Unknown sections
        or keys are rejected so a typo never silently falls back to a default.
        """

        return cls.default().with_overrides(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "SimConfig":
        """Return defaults updated with the JSON overrides stored at ``path``."""

        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                overrides = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"Override file {path} must contain an object")
        version = overrides.pop("version", None)
        cfg = cls.default().with_overrides(overrides.get("sections", overrides))
        if version is not None:
            cfg.version = str(version)
        return cfg

    def with_overrides(
        self, overrides: Mapping[str, Mapping[str, Any]], version: str | None = None
    ) -> "SimConfig":
        """Return a new configuration with ``overrides`` merged in.

        The version is bumped (``1.0`` -> ``1.0+1``) unless ``version`` is
        given explicitly.
        """

        sections = copy.deepcopy(self.raw)
        problems: list[str] = []
        for sect, values in overrides.items():
            if sect not in sections:
                problems.append(f"unknown section '{sect}'")
                continue
            if not isinstance(values, Mapping):
                problems.append(f"section '{sect}' must be a mapping")
                continue
            unknown = set(values) - set(sections[sect])
            if unknown:
                unknown_list = ", ".join(sorted(unknown))
                problems.append(f"unknown keys for section '{sect}': {unknown_list}")
                continue
            for key, value in values.items():
                current = sections[sect][key]
                if isinstance(current, (int, float)) and not isinstance(value, (int, float)):
                    problems.append(f"{sect}.{key} must be numeric")
                    continue
                sections[sect][key] = value
        if problems:
            raise ConfigurationError("Invalid configuration overrides", problems)
        if version is None:
            version = _bump_version(self.version)
        return SimConfig(sections, version=version)


def _bump_version(version: str) -> str:
    base, _, revision = version.partition("+")
    if revision.isdigit():
        return f"{base}+{int(revision) + 1}"
    return f"{base}+1"


@lru_cache(maxsize=1)
def _load_defaults() -> Dict[str, Any]:
    with DEFAULTS_PATH.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_config(overrides_path: str | Path | None = None) -> SimConfig:
    """Load the default configuration and optional JSON overrides.

    Relative override paths are resolved against the project root so the
    configuration loads the same way regardless of the working directory.
    """

    if overrides_path is None:
        return SimConfig.default()
    overrides_path = Path(overrides_path)
    if not overrides_path.is_absolute():
        overrides_path = get_base_dir() / overrides_path
    cfg = SimConfig.from_file(overrides_path)
    logger.info("Loaded config %s from %s", cfg.version, overrides_path)
    return cfg


__all__ = ["SimConfig", "load_config", "DEFAULTS_PATH"]
