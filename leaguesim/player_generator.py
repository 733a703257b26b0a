"""Seeded generation of a league's worth of players.

Every value is drawn from the :class:`~leaguesim.rng.RandomStream` handed to
:func:`generate_league`, so the same seed, team list and configuration always
produce identical players.  Attributes are sampled from clamped gaussians
around positional priors, scaled by roster level and shifted by a per-team
quality offset which creates the spread between good and bad clubs.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, List, Sequence, Tuple
import csv
import logging

from leaguesim.config import SimConfig
from leaguesim.ratings import hitter_overall, pitcher_overall
from leaguesim.rng import RandomStream
from models.player import (
    ATTRIBUTE_MAX,
    SERVICE_DAYS_PER_YEAR,
    HitterAttributes,
    PitcherAttributes,
    Player,
)
from models.roster import Roster
from models.team import Team
from utils.exceptions import ConfigurationError
from utils.path_utils import get_data_dir

logger = logging.getLogger(__name__)

NAME_PATH = get_data_dir() / "names.csv"

# Roster composition by level.  Hitters are listed by position; pitchers by
# role count.
MLB_HITTERS = (
    "C", "C",
    "1B", "1B",
    "2B", "2B",
    "3B", "3B",
    "SS", "SS",
    "LF", "LF", "LF",
    "CF", "CF", "CF",
    "RF", "RF", "RF",
    "DH",
)
AAA_HITTERS = ("C", "1B", "2B", "3B", "SS", "CF", "RF", "LF")
ROOKIE_HITTERS = ("C", "SS", "CF", "3B", "LF", "RF")

LEVEL_PITCHERS: Dict[str, Tuple[Tuple[str, int], ...]] = {
    "MLB": (("SP", 5), ("RP", 7), ("CL", 1)),
    "AAA": (("SP", 4), ("RP", 3)),
    "ROOKIE": (("SP", 3), ("RP", 1)),
}
LEVEL_HITTERS = {"MLB": MLB_HITTERS, "AAA": AAA_HITTERS, "ROOKIE": ROOKIE_HITTERS}

# mean, sigma, low, high
AGE_DISTRIBUTIONS = {
    "MLB": (27.5, 3.5, 22, 40),
    "AAA": (24.0, 2.0, 20, 30),
    "ROOKIE": (20.5, 1.5, 18, 24),
}

ACTIVE_PITCHERS = 13
ACTIVE_HITTERS = 13
FORTY_MAN = 40
MAX_SERVICE_YEARS = 12
SERVICE_START_AGE = 22

NATIONALITY_WEIGHTS = {"USA": 0.60, "LATIN": 0.28, "ASIA": 0.12}

# Positional priors on the latent scale, chosen so that lineup regulars land
# close to the 400 league average.
HITTER_PRIORS: Dict[str, Dict[str, float]] = {
    "C": {"contact": 370, "power": 360, "eye": 370, "speed": 300, "fielding": 400,
          "arm": 410, "durability": 380, "baserunning": 340},
    "1B": {"contact": 385, "power": 430, "eye": 390, "speed": 320, "fielding": 360,
           "arm": 350, "durability": 390, "baserunning": 340},
    "2B": {"contact": 390, "power": 350, "eye": 380, "speed": 400, "fielding": 400,
           "arm": 380, "durability": 380, "baserunning": 390},
    "3B": {"contact": 380, "power": 400, "eye": 375, "speed": 350, "fielding": 395,
           "arm": 420, "durability": 385, "baserunning": 360},
    "SS": {"contact": 385, "power": 345, "eye": 370, "speed": 410, "fielding": 420,
           "arm": 415, "durability": 380, "baserunning": 390},
    "LF": {"contact": 385, "power": 405, "eye": 385, "speed": 385, "fielding": 360,
           "arm": 360, "durability": 385, "baserunning": 380},
    "CF": {"contact": 390, "power": 370, "eye": 375, "speed": 430, "fielding": 400,
           "arm": 385, "durability": 380, "baserunning": 410},
    "RF": {"contact": 380, "power": 420, "eye": 380, "speed": 370, "fielding": 375,
           "arm": 420, "durability": 385, "baserunning": 370},
    "DH": {"contact": 395, "power": 440, "eye": 400, "speed": 300, "fielding": 300,
           "arm": 300, "durability": 380, "baserunning": 330},
}

PITCHER_PRIORS: Dict[str, Dict[str, float]] = {
    "SP": {"stuff": 390, "movement": 390, "command": 395, "stamina": 420,
           "hold_runners": 370, "durability": 400, "recovery": 360, "gb_tendency": 45},
    "RP": {"stuff": 410, "movement": 380, "command": 370, "stamina": 280,
           "hold_runners": 350, "durability": 370, "recovery": 410, "gb_tendency": 45},
    "CL": {"stuff": 440, "movement": 395, "command": 385, "stamina": 250,
           "hold_runners": 350, "durability": 370, "recovery": 420, "gb_tendency": 43},
}

STARTER_ARSENALS = (3, 4, 4, 5, 5)
RELIEVER_ARSENALS = (2, 2, 3, 3, 4)


@lru_cache(maxsize=1)
def load_name_pools() -> Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]]:
    """Return ``{nationality: (first_names, last_names)}`` from ``names.csv``."""

    firsts: Dict[str, List[str]] = {}
    lasts: Dict[str, List[str]] = {}
    with NAME_PATH.open(newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            nationality = (row.get("nationality") or "").strip()
            first = (row.get("first_name") or "").strip()
            last = (row.get("last_name") or "").strip()
            if not (nationality and first and last):
                continue
            for pool, name in ((firsts, first), (lasts, last)):
                names = pool.setdefault(nationality, [])
                if name not in names:
                    names.append(name)
    return {nat: (tuple(firsts[nat]), tuple(lasts[nat])) for nat in firsts}


class PlayerGenerator:
    """Create players for one league using a single random stream.

    Parameters
    ----------
    rng:
        Source of every random draw.
    season:
        Season the players are generated for.  Only affects bookkeeping.
    config:
        Tuning values; :meth:`SimConfig.default` when omitted.
    """

    def __init__(
        self, rng: RandomStream, season: int, config: SimConfig | None = None
    ) -> None:
        self.rng = rng
        self.season = season
        self.config = config or SimConfig.default()
        self.gen = self.config.Generation
        self.name_pools = load_name_pools()
        missing = set(NATIONALITY_WEIGHTS) - set(self.name_pools)
        if missing:
            raise ConfigurationError(
                "Name pools missing nationalities", sorted(missing)
            )
        self._next_id = 1

    # ------------------------------------------------------------------
    # Biographical draws
    # ------------------------------------------------------------------
    def _name(self, nationality: str) -> str:
        first_names, last_names = self.name_pools[nationality]
        first = first_names[self.rng.randint(0, len(first_names) - 1)]
        last = last_names[self.rng.randint(0, len(last_names) - 1)]
        return f"{first} {last}"

    def _age(self, level: str) -> int:
        mean, sigma, low, high = AGE_DISTRIBUTIONS[level]
        return int(self.rng.clamped_gaussian(mean, sigma, low, high))

    def _throws(self, position: str) -> str:
        if position == "C":
            return "R"
        if position in ("SP", "RP", "CL"):
            share = self.gen.lefty_pitcher_share
        else:
            share = self.gen.lefty_fielder_share
        return "L" if self.rng.next() < share else "R"

    def _bats(self) -> str:
        roll = self.rng.next()
        if roll < 0.68:
            return "R"
        if roll < 0.98:
            return "L"
        return "S"

    # ------------------------------------------------------------------
    # Attribute draws
    # ------------------------------------------------------------------
    def _level_multiplier(self, level: str) -> float:
        return getattr(self.gen, f"{level.lower()}_multiplier")

    def _age_penalty(self, age: int, peak: float) -> float:
        distance = abs(age - peak)
        grace = self.gen.age_grace_years
        if distance <= grace:
            return 0.0
        return (distance - grace) * self.gen.age_penalty_per_year

    def _hitter_attributes(
        self, position: str, level: str, age: int, offset: float
    ) -> HitterAttributes:
        gen = self.gen
        prior = HITTER_PRIORS[position]
        mult = self._level_multiplier(level)
        sigma = getattr(gen, f"hitter_sigma_{level.lower()}")
        penalty = self._age_penalty(age, gen.hitter_peak_age)
        attrs = HitterAttributes()
        for name in HitterAttributes.graded:
            value = self.rng.clamped_gaussian(
                prior[name] * mult - penalty + offset,
                sigma,
                gen.attribute_floor,
                gen.attribute_ceiling,
            )
            setattr(attrs, name, value)
        platoon = self.rng.gaussian(0.0, gen.platoon_sensitivity_sd)
        attrs.platoon_sensitivity = max(-1.0, min(1.0, platoon))
        attrs.offensive_iq = self.rng.clamped_gaussian(prior["contact"] * mult * 0.9, 40, 150, 550)
        attrs.defensive_iq = self.rng.clamped_gaussian(prior["fielding"] * mult * 0.9, 40, 150, 550)
        attrs.work_ethic = self.rng.clamped_gaussian(60, 15, 10, 100)
        attrs.mental_toughness = self.rng.clamped_gaussian(55, 15, 10, 100)
        return attrs

    def _pitcher_attributes(
        self, position: str, level: str, age: int, offset: float
    ) -> PitcherAttributes:
        gen = self.gen
        prior = PITCHER_PRIORS[position]
        mult = self._level_multiplier(level)
        sigma = getattr(gen, f"pitcher_sigma_{level.lower()}")
        penalty = self._age_penalty(age, gen.pitcher_peak_age)
        attrs = PitcherAttributes()
        for name in PitcherAttributes.graded:
            value = self.rng.clamped_gaussian(
                prior[name] * mult - penalty + offset,
                sigma,
                gen.attribute_floor,
                gen.attribute_ceiling,
            )
            setattr(attrs, name, value)

        arsenals = STARTER_ARSENALS if position == "SP" else RELIEVER_ARSENALS
        attrs.arsenal = self.rng.choice(arsenals)
        attrs.gb_tendency = self.rng.clamped_gaussian(
            prior["gb_tendency"], gen.gb_tendency_sd, 25, 75
        )
        platoon_sd = gen.starter_platoon_sd if position == "SP" else gen.reliever_platoon_sd
        attrs.platoon_tendency = max(-1.0, min(1.0, self.rng.gaussian(0.0, platoon_sd)))

        fastball = self.rng.uniform(0.40, 0.65)
        breaking = self.rng.uniform(0.20, 0.40)
        attrs.fastball_pct = fastball
        attrs.breaking_pct = breaking
        attrs.offspeed_pct = max(0.05, 1.0 - fastball - breaking)

        attrs.pitching_iq = self.rng.clamped_gaussian(prior["command"] * mult * 0.9, 40, 150, 550)
        attrs.work_ethic = self.rng.clamped_gaussian(60, 15, 10, 100)
        attrs.mental_toughness = self.rng.clamped_gaussian(55, 15, 10, 100)
        return attrs

    # ------------------------------------------------------------------
    # Players and rosters
    # ------------------------------------------------------------------
    def generate_player(
        self, team_id: int, position: str, level: str, offset: float = 0
    ) -> Player:
        """Return one new player for ``team_id`` at ``position`` and ``level``."""

        if level not in AGE_DISTRIBUTIONS:
            raise ValueError(f"Unknown level: {level}")
        player_id = self._next_id
        self._next_id += 1

        nationality = self.rng.weighted_pick(NATIONALITY_WEIGHTS)
        name = self._name(nationality)
        age = self._age(level)
        is_pitcher = position in PITCHER_PRIORS
        throws = self._throws(position)
        bats = self._bats()
        if is_pitcher and throws == "L":
            if self.rng.next() < self.gen.lefty_pitcher_bats_left:
                bats = "L"

        hitting = pitching = None
        if is_pitcher:
            pitching = self._pitcher_attributes(position, level, age, offset)
            overall = pitcher_overall(pitching, position)
        else:
            hitting = self._hitter_attributes(position, level, age, offset)
            overall = hitter_overall(hitting, position)

        # Young players project further above their current level.
        young_bonus = max(0, (25 - age) * 8)
        potential = int(
            self.rng.clamped_gaussian(overall + young_bonus + 20, 35, 0, ATTRIBUTE_MAX)
        )

        service_days = 0
        if level == "MLB":
            years = max(0, age - SERVICE_START_AGE)
            service_days = min(years * SERVICE_DAYS_PER_YEAR, MAX_SERVICE_YEARS * SERVICE_DAYS_PER_YEAR)

        return Player(
            player_id=player_id,
            team_id=team_id,
            name=name,
            age=age,
            position=position,
            bats=bats,
            throws=throws,
            level=level,
            nationality=nationality,
            hitting=hitting,
            pitching=pitching,
            overall=overall,
            potential=potential,
            service_days=service_days,
            on_forty_man=level == "MLB",
        )

    def team_quality_offset(self) -> int:
        gen = self.gen
        raw = self.rng.gaussian(0.0, gen.team_quality_sd)
        cap = gen.team_quality_cap
        return max(-cap, min(cap, round(raw)))

    def generate_team(self, team_id: int) -> List[Player]:
        """Return the MLB, AAA and Rookie players of one organisation."""

        offset = self.team_quality_offset()
        offsets = {
            "MLB": offset,
            "AAA": round(offset * self.gen.aaa_offset_share),
            "ROOKIE": round(offset * self.gen.rookie_offset_share),
        }
        players: List[Player] = []
        for level in ("MLB", "AAA", "ROOKIE"):
            for position in LEVEL_HITTERS[level]:
                players.append(self.generate_player(team_id, position, level, offsets[level]))
            for role, count in LEVEL_PITCHERS[level]:
                for _ in range(count):
                    players.append(self.generate_player(team_id, role, level, offsets[level]))
        logger.debug("Generated %d players for team %d (offset %+d)", len(players), team_id, offset)
        return players


def assign_rosters(players: Sequence[Player]) -> Dict[int, Roster]:
    """Fill active and 40-man rosters for every team in ``players``.

    The active roster holds all thirteen MLB pitchers and the thirteen best
    MLB hitters by overall rating, always including at least one catcher.
    The 40-man roster holds every MLB-level player plus the best AAA players
    until it is full.  ``active`` and ``on_forty_man`` are updated on the
    players and a :class:`Roster` per team is returned.
    """

    by_team: Dict[int, List[Player]] = {}
    for player in players:
        by_team.setdefault(player.team_id, []).append(player)

    rosters: Dict[int, Roster] = {}
    for team_id, members in by_team.items():
        mlb = [p for p in members if p.level == "MLB"]
        pitchers = sorted(
            (p for p in mlb if p.is_pitcher), key=lambda p: (-p.overall, p.player_id)
        )[:ACTIVE_PITCHERS]
        hitters = sorted(
            (p for p in mlb if not p.is_pitcher), key=lambda p: (-p.overall, p.player_id)
        )
        active_hitters = hitters[:ACTIVE_HITTERS]
        if hitters and not any(p.position == "C" for p in active_hitters):
            catcher = next((p for p in hitters if p.position == "C"), None)
            if catcher is not None:
                active_hitters[-1] = catcher

        active = pitchers + active_hitters
        active_ids = {p.player_id for p in active}
        forty_man = list(mlb)
        aaa = sorted(
            (p for p in members if p.level == "AAA"), key=lambda p: (-p.overall, p.player_id)
        )
        forty_man.extend(aaa[: max(0, FORTY_MAN - len(forty_man))])
        forty_ids = {p.player_id for p in forty_man}

        for player in members:
            player.active = player.player_id in active_ids
            player.on_forty_man = player.player_id in forty_ids
        rosters[team_id] = Roster(
            team_id,
            active=[p.player_id for p in active],
            forty_man=[p.player_id for p in forty_man],
            aaa=[p.player_id for p in members if p.level == "AAA"],
            rookie=[p.player_id for p in members if p.level == "ROOKIE"],
        )
    return rosters


def generate_league(
    rng: RandomStream,
    teams: Iterable[Team],
    season: int,
    config: SimConfig | None = None,
) -> List[Player]:
    """Generate and roster every player for ``teams``.

    Players are numbered from 1 in team order.  The returned list is a pure
    function of the stream's seed, the team ids and ``config``.
    """

    generator = PlayerGenerator(rng, season, config)
    players: List[Player] = []
    for team in sorted(teams, key=lambda t: t.team_id):
        players.extend(generator.generate_team(team.team_id))
    assign_rosters(players)
    logger.info("Generated %d players for season %d", len(players), season)
    return players


__all__ = [
    "PlayerGenerator",
    "generate_league",
    "assign_rosters",
    "load_name_pools",
    "HITTER_PRIORS",
    "PITCHER_PRIORS",
    "NATIONALITY_WEIGHTS",
]
