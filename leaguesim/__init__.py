"""Baseball league simulation engine.

Seeded player generation, a fixed 162-game schedule, plate appearance level
game simulation and season orchestration with calibration gates.  Identical
seeds and inputs reproduce identical results.
"""

from .config import SimConfig, load_config  # noqa: F401
from .rng import RandomStream, create, derive_seed  # noqa: F401
from .player_generator import PlayerGenerator, assign_rosters, generate_league  # noqa: F401
from .schedule_generator import (  # noqa: F401
    ScheduleEntry,
    clear_schedule_cache,
    generate_schedule_template,
    validate_schedule,
)
from .run_values import RunValueModel, RunValueObservations  # noqa: F401
from .state import BattingLine, BoxScore, PitchingLine  # noqa: F401
from .simulation import PlayerPool, simulate  # noqa: F401
from .season_simulator import (  # noqa: F401
    PlayerSeasonStat,
    SeasonResult,
    SeasonSimulator,
    TeamSeasonRecord,
    simulate_season,
)
from .league import LeagueSimulator  # noqa: F401
from .postseason import PlayoffBracket, simulate_postseason  # noqa: F401
from .validation import GateResult, evaluate_gates  # noqa: F401

__all__ = [
    "SimConfig",
    "load_config",
    "RandomStream",
    "create",
    "derive_seed",
    "PlayerGenerator",
    "assign_rosters",
    "generate_league",
    "ScheduleEntry",
    "clear_schedule_cache",
    "generate_schedule_template",
    "validate_schedule",
    "RunValueModel",
    "RunValueObservations",
    "BattingLine",
    "BoxScore",
    "PitchingLine",
    "PlayerPool",
    "simulate",
    "PlayerSeasonStat",
    "SeasonResult",
    "SeasonSimulator",
    "TeamSeasonRecord",
    "simulate_season",
    "LeagueSimulator",
    "PlayoffBracket",
    "simulate_postseason",
    "GateResult",
    "evaluate_gates",
]
