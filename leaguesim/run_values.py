"""RE24 run expectancy model.

The table maps the 24 base/out states to the runs a team is expected to score
from that state to the end of the half-inning.  States are indexed
``outs * 8 + mask`` where ``mask`` has bit 1 for a runner on first, bit 2 for
second and bit 4 for third.

Starting values come from real major league data (``data/re24_anchor.csv``).
Every few simulated seasons the table is recalibrated by blending the mean
runs actually observed in the simulation with the anchor, so the table tracks
the simulated talent pool without drifting away from reality.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple
import csv
import logging

from leaguesim.config import SimConfig
from utils.exceptions import ConfigurationError
from utils.path_utils import get_data_dir

logger = logging.getLogger(__name__)

ANCHOR_PATH = get_data_dir() / "re24_anchor.csv"
STATE_COUNT = 24


def state_index(outs: int, mask: int) -> int:
    if not 0 <= outs <= 2 or not 0 <= mask <= 7:
        raise ValueError(f"invalid base/out state outs={outs} mask={mask}")
    return outs * 8 + mask


def bases_label(mask: int) -> str:
    """Return the ``1-3`` style label for a base mask."""
    return "".join(str(i + 1) if mask & (1 << i) else "-" for i in range(3))


def _mask_from_label(label: str) -> int:
    if len(label) != 3:
        raise ValueError(f"bad base label '{label}'")
    mask = 0
    for i, char in enumerate(label):
        if char == str(i + 1):
            mask |= 1 << i
        elif char != "-":
            raise ValueError(f"bad base label '{label}'")
    return mask


@lru_cache(maxsize=4)
def load_anchor(path: str | Path | None = None) -> Tuple[float, ...]:
    """Return the 24 anchor run expectancies from ``path``."""

    path = Path(path) if path is not None else ANCHOR_PATH
    values: List[float | None] = [None] * STATE_COUNT
    with path.open(newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            try:
                index = state_index(int(row["outs"]), _mask_from_label(row["bases"].strip()))
                values[index] = float(row["runs"])
            except (KeyError, ValueError) as exc:
                raise ConfigurationError(f"Malformed RE24 row in {path}: {row}") from exc
    missing = [i for i, v in enumerate(values) if v is None]
    if missing:
        raise ConfigurationError(
            f"RE24 anchor {path} is incomplete",
            [f"outs={i // 8} bases={bases_label(i % 8)}" for i in missing],
        )
    return tuple(values)  # type: ignore[arg-type]


@dataclass
class RunValueObservations:
    """Running sums of runs scored to the end of the inning per state."""

    runs: List[float] = field(default_factory=lambda: [0.0] * STATE_COUNT)
    counts: List[int] = field(default_factory=lambda: [0] * STATE_COUNT)

    def add(self, index: int, runs: float) -> None:
        self.runs[index] += runs
        self.counts[index] += 1

    def extend(self, observations: Iterable[Tuple[int, int]]) -> None:
        for index, runs in observations:
            self.runs[index] += runs
            self.counts[index] += 1

    def merge(self, other: "RunValueObservations") -> None:
        for i in range(STATE_COUNT):
            self.runs[i] += other.runs[i]
            self.counts[i] += other.counts[i]

    @property
    def total(self) -> int:
        return sum(self.counts)

    def means(self) -> List[float | None]:
        return [r / c if c else None for r, c in zip(self.runs, self.counts)]


@dataclass(frozen=True)
class RunValueModel:
    """Immutable RE24 table.

    ``generation`` counts recalibrations applied since the anchor.
    """

    values: Tuple[float, ...]
    generation: int = 0

    def __post_init__(self) -> None:
        if len(self.values) != STATE_COUNT:
            raise ValueError(f"RE24 table needs {STATE_COUNT} values, got {len(self.values)}")

    @classmethod
    def anchor(cls) -> "RunValueModel":
        return cls(load_anchor())

    def expected_runs(self, outs: int, mask: int) -> float:
        """Expected runs from ``outs``/``mask`` to the end of the inning."""
        if outs >= 3:
            return 0.0
        return self.values[outs * 8 + mask]

    def recalibrate(
        self,
        observations: RunValueObservations,
        cfg: SimConfig | None = None,
        anchor: Sequence[float] | None = None,
    ) -> "RunValueModel":
        """Return ``sim_weight * observed + anchor_weight * anchor`` per state.

        States observed fewer than ``RunValue.min_observations`` times keep
        the current table's value as their simulated estimate.
        """

        cfg = cfg or SimConfig.default()
        rv = cfg.RunValue
        anchor = tuple(anchor) if anchor is not None else load_anchor()
        means = observations.means()
        blended = []
        for i in range(STATE_COUNT):
            simulated = means[i]
            if simulated is None or observations.counts[i] < rv.min_observations:
                simulated = self.values[i]
            blended.append(rv.simulated_weight * simulated + rv.anchor_weight * anchor[i])
        model = RunValueModel(tuple(blended), self.generation + 1)
        logger.info(
            "Recalibrated RE24 table (generation %d, %d observations); empty-bases 0 outs %.3f -> %.3f",
            model.generation,
            observations.total,
            self.values[0],
            model.values[0],
        )
        logger.debug("RE24 table: %s", ", ".join(f"{v:.3f}" for v in model.values))
        return model

    def rows(self) -> List[Tuple[int, str, float]]:
        """Return ``(outs, bases, runs)`` rows for reporting."""
        return [(i // 8, bases_label(i % 8), v) for i, v in enumerate(self.values)]


__all__ = [
    "STATE_COUNT",
    "RunValueModel",
    "RunValueObservations",
    "load_anchor",
    "state_index",
    "bases_label",
]
