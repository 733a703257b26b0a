"""Calibration gate ingestion.

``data/calibration_gates.csv`` holds the accepted ``low``/``high`` range for
every calibration metric.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple
import csv

from utils.exceptions import ConfigurationError
from utils.path_utils import get_data_dir

GATES_CSV = get_data_dir() / "calibration_gates.csv"


def load_gate_ranges(path: str | Path = GATES_CSV) -> Dict[str, Tuple[float, float]]:
    """Return ``{metric_key: (low, high)}`` from ``path``.

    Every row must parse; a broken gate file would silently weaken
    validation.
    """
    path = Path(path)
    gates: Dict[str, Tuple[float, float]] = {}
    with path.open(newline="") as fh:
        for row in csv.DictReader(fh):
            try:
                low, high = float(row["low"]), float(row["high"])
                key = row["metric_key"]
            except (KeyError, ValueError) as exc:
                raise ConfigurationError(f"Malformed gate row in {path}: {row}") from exc
            if low > high:
                raise ConfigurationError(f"Gate {key} in {path} has low > high")
            gates[key] = (low, high)
    return gates


__all__ = ["load_gate_ranges", "GATES_CSV"]
