"""Batter versus pitcher resolution.

A plate appearance is resolved in three stages:

1. **Non-contact gate** - strikeout, walk, hit by pitch and home run rates of
   the batter and pitcher are combined with log5 against the league rate,
   adjusted by the contextual modifier and park, and the remainder is a ball
   in play.
2. **Batted-ball type** - ground ball, fly ball, line drive or pop up, from a
   blend of the pitcher's and batter's ground-ball tendencies.
3. **Hit or out** - a per-type hit rate scaled by the batter's BABIP skill,
   the pitcher's movement and team defense, with extra-base splits, double
   plays, sacrifice flies, fielder's choices and errors.

Latent attributes are turned into *raw* per-player rates first.  A
:class:`LeagueEnvironment` then rescales every raw rate so that the league's
lineup regulars and active pitchers average exactly the configured
``LeagueRates``.  The generator decides who is good or bad; the environment
decides how much offense the league as a whole produces.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Sequence, Tuple

from leaguesim.config import SimConfig
from leaguesim.probability import clamp, log5
from models.player import HitterAttributes, PitcherAttributes, Player

# Outcome codes.
STRIKEOUT = "K"
WALK = "BB"
HIT_BY_PITCH = "HBP"
HOME_RUN = "HR"
SINGLE = "1B"
DOUBLE = "2B"
TRIPLE = "3B"
GROUND_OUT = "GB_OUT"
FLY_OUT = "FB_OUT"
LINE_OUT = "LD_OUT"
POP_OUT = "PU_OUT"
DOUBLE_PLAY = "GDP"
SAC_FLY = "SF"
FIELDERS_CHOICE = "FC"
REACHED_ON_ERROR = "ROE"

HITS = frozenset({SINGLE, DOUBLE, TRIPLE, HOME_RUN})

# Stage 1 events in sampling order.
EVENTS = ("k", "bb", "hbp", "hr")


@dataclass(slots=True)
class HitterProfile:
    player_id: int
    k: float
    bb: float
    hbp: float
    hr: float
    babip: float
    gb: float
    fb: float
    speed: float
    bats: str
    sensitivity: float


@dataclass(slots=True)
class PitcherProfile:
    player_id: int
    k: float
    bb: float
    hbp: float
    hr: float
    babip_factor: float
    gb: float
    stamina: float
    fastball_pct: float
    arsenal: int
    throws: str
    tendency: float
    economy: float = 1.0  # pitches-per-batter multiplier
    hold: float = 400.0  # holding runners


# ---------------------------------------------------------------------------
# Raw attribute -> rate conversion
# ---------------------------------------------------------------------------
def raw_hitter_rates(attrs: HitterAttributes, cfg: SimConfig) -> Dict[str, float]:
    """Return unnormalised rates for a hitter; 400 attributes give league rates."""

    lg = cfg.LeagueRates
    hit = cfg.Hitter
    contact = attrs.contact / 400.0
    power = attrs.power / 400.0
    eye = attrs.eye / 400.0
    return {
        "k": max(hit.k_floor, lg.k_pct * (2.0 - contact)),
        "bb": max(hit.bb_floor, lg.bb_pct * eye),
        "hbp": lg.hbp_pct,
        "hr": max(hit.hr_floor, lg.hr_pct * power ** hit.hr_power_exponent),
        "babip": clamp(
            lg.babip * (1.0 - hit.babip_contact_weight + hit.babip_contact_weight * contact),
            hit.babip_floor,
            hit.babip_ceiling,
        ),
        "gb": clamp(
            hit.gb_base - (attrs.power - 400) * hit.gb_power_slope, hit.gb_min, hit.gb_max
        ),
        "fb": clamp(0.35 + (attrs.power - 400) * hit.gb_power_slope, 0.25, 0.55),
    }


def raw_pitcher_rates(attrs: PitcherAttributes, cfg: SimConfig) -> Dict[str, float]:
    """Return unnormalised rates for a pitcher; 400 attributes give league rates."""

    lg = cfg.LeagueRates
    pit = cfg.Pitcher
    stuff = attrs.stuff / 400.0
    command = attrs.command / 400.0
    movement = attrs.movement / 400.0
    gb = attrs.gb_tendency / 100.0
    return {
        "k": clamp(lg.k_pct * stuff ** pit.k_stuff_exponent, pit.k_min, pit.k_max),
        "bb": max(pit.bb_floor, lg.bb_pct * (2.0 - command)),
        "hbp": max(0.002, lg.hbp_pct * (2.0 - command * pit.hbp_command_weight)),
        "hr": max(
            pit.hr_floor,
            lg.hr_pct
            * (2.0 - stuff)
            * (2.0 - command)
            * (1.0 - (attrs.gb_tendency - 50) / 100.0 * pit.gb_hr_weight),
        ),
        "babip": max(0.5, 1.0 - (movement - 1.0) * pit.movement_babip_weight),
        "gb": gb,
    }


def pitch_economy(attrs: PitcherAttributes, cfg: SimConfig) -> float:
    """Return the multiplier applied to the pitches a pitcher needs per batter.

    Pitchers with command above ``Pitcher.economy_pivot`` work ahead in the
    count and need fewer pitches; wild pitchers need more.
    """

    pit = cfg.Pitcher
    spread = (attrs.command - pit.economy_pivot) / 550.0
    return clamp(1.0 - pit.economy_scale * spread, pit.economy_floor, pit.economy_ceiling)


# ---------------------------------------------------------------------------
# League environment
# ---------------------------------------------------------------------------
def _weighted_means(
    rows: Sequence[Tuple[Mapping[str, float], float]], keys: Iterable[str]
) -> Dict[str, float]:
    total = sum(weight for _, weight in rows)
    if total <= 0:
        raise ValueError("cannot average an empty population")
    return {key: sum(r[key] * w for r, w in rows) / total for key in keys}


@dataclass(frozen=True)
class LeagueEnvironment:
    """Per-event scale factors mapping raw rates onto the league targets."""

    hitter_scale: Mapping[str, float]
    pitcher_scale: Mapping[str, float]
    babip_scale: float
    pitcher_babip_scale: float

    @classmethod
    def neutral(cls) -> "LeagueEnvironment":
        ones = {key: 1.0 for key in EVENTS}
        return cls(ones, ones, 1.0, 1.0)

    @classmethod
    def build(
        cls,
        hitters: Sequence[HitterAttributes],
        pitchers: Sequence[Tuple[PitcherAttributes, float]],
        cfg: SimConfig,
    ) -> "LeagueEnvironment":
        """Fit scale factors to a population.

        Parameters
        ----------
        hitters:
            Attribute blocks of the everyday lineup players.
        pitchers:
            ``(attributes, weight)`` pairs, the weight reflecting the share of
            batters each pitcher is expected to face.
        """

        lg = cfg.LeagueRates
        targets = {"k": lg.k_pct, "bb": lg.bb_pct, "hbp": lg.hbp_pct, "hr": lg.hr_pct}
        h_rows = [(raw_hitter_rates(a, cfg), 1.0) for a in hitters]
        p_rows = [(raw_pitcher_rates(a, cfg), w) for a, w in pitchers]
        h_mean = _weighted_means(h_rows, list(EVENTS) + ["babip"])
        p_mean = _weighted_means(p_rows, list(EVENTS) + ["babip"])
        return cls(
            hitter_scale={key: targets[key] / h_mean[key] for key in EVENTS},
            pitcher_scale={key: targets[key] / p_mean[key] for key in EVENTS},
            babip_scale=lg.babip / h_mean["babip"],
            pitcher_babip_scale=1.0 / p_mean["babip"],
        )

    def hitter_profile(self, player: Player, cfg: SimConfig) -> HitterProfile:
        attrs = player.hitting
        if attrs is None:
            raise ValueError(f"Player {player.player_id} has no hitting attributes")
        raw = raw_hitter_rates(attrs, cfg)
        hs = self.hitter_scale
        return HitterProfile(
            player_id=player.player_id,
            k=clamp(raw["k"] * hs["k"], 0.01, 0.60),
            bb=clamp(raw["bb"] * hs["bb"], 0.005, 0.30),
            hbp=clamp(raw["hbp"] * hs["hbp"], 0.001, 0.05),
            hr=clamp(raw["hr"] * hs["hr"], 0.001, 0.15),
            babip=clamp(raw["babip"] * self.babip_scale, 0.15, 0.45),
            gb=raw["gb"],
            fb=raw["fb"],
            speed=attrs.speed,
            bats=player.bats,
            sensitivity=attrs.platoon_sensitivity,
        )

    def pitcher_profile(self, player: Player, cfg: SimConfig) -> PitcherProfile:
        attrs = player.pitching
        if attrs is None:
            raise ValueError(f"Player {player.player_id} has no pitching attributes")
        raw = raw_pitcher_rates(attrs, cfg)
        ps = self.pitcher_scale
        return PitcherProfile(
            player_id=player.player_id,
            k=clamp(raw["k"] * ps["k"], 0.01, 0.60),
            bb=clamp(raw["bb"] * ps["bb"], 0.005, 0.30),
            hbp=clamp(raw["hbp"] * ps["hbp"], 0.001, 0.05),
            hr=clamp(raw["hr"] * ps["hr"], 0.001, 0.15),
            babip_factor=raw["babip"] * self.pitcher_babip_scale,
            gb=raw["gb"],
            stamina=attrs.stamina,
            fastball_pct=attrs.fastball_pct,
            arsenal=attrs.arsenal,
            throws=player.throws,
            tendency=attrs.platoon_tendency,
            economy=pitch_economy(attrs, cfg),
            hold=attrs.hold_runners,
        )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
class PlateAppearanceModel:
    """Resolve plate appearances for one configuration.

    Base (unmodified) stage 1 probabilities depend only on the batter and
    pitcher, so they are memoised per matchup.
    """

    def __init__(self, cfg: SimConfig) -> None:
        self.cfg = cfg
        lg = cfg.LeagueRates
        self.league = (lg.k_pct, lg.bb_pct, lg.hbp_pct, lg.hr_pct)
        self.league_babip = lg.babip
        bb = cfg.BattedBall
        self.bb = bb
        mods = cfg.Modifiers
        self.hr_weight = mods.hr_weight
        self.babip_weight = mods.babip_weight
        self.bb_cap = mods.bb_cap
        self.hr_cap = mods.hr_cap
        self.gb_fb_interaction = mods.gb_fb_interaction
        self._matchups: Dict[Tuple[int, int], Tuple[float, float, float, float]] = {}

    def matchup(
        self, hitter: HitterProfile, pitcher: PitcherProfile
    ) -> Tuple[float, float, float, float]:
        """Return log5 strikeout, walk, HBP and home run probabilities."""

        key = (hitter.player_id, pitcher.player_id)
        cached = self._matchups.get(key)
        if cached is None:
            k_lg, bb_lg, hbp_lg, hr_lg = self.league
            cached = (
                log5(hitter.k, pitcher.k, k_lg),
                log5(hitter.bb, pitcher.bb, bb_lg),
                log5(hitter.hbp, pitcher.hbp, hbp_lg),
                log5(hitter.hr, pitcher.hr, hr_lg),
            )
            self._matchups[key] = cached
        return cached

    def stage_one(
        self,
        u: float,
        hitter: HitterProfile,
        pitcher: PitcherProfile,
        modifier: float,
        hr_factor: float,
    ) -> str | None:
        """Return a non-contact outcome code, or ``None`` for a ball in play."""

        k, bb, hbp, hr = self.matchup(hitter, pitcher)
        hr *= hr_factor
        if modifier:
            k *= 1.0 - modifier
            bb = min(self.bb_cap, bb * (1.0 + modifier))
            hr = min(self.hr_cap, hr * (1.0 + modifier * self.hr_weight))
        if u < k:
            return STRIKEOUT
        u -= k
        if u < bb:
            return WALK
        u -= bb
        if u < hbp:
            return HIT_BY_PITCH
        u -= hbp
        if u < hr:
            return HOME_RUN
        return None

    def batted_ball_type(self, u: float, hitter: HitterProfile, pitcher: PitcherProfile) -> str:
        bb = self.bb
        p_gb = pitcher.gb
        gb = p_gb * bb.pitcher_gb_weight + hitter.gb * bb.hitter_gb_weight
        fb = 1.0 - gb - bb.ld_share - bb.pu_share
        if p_gb > 0.50 and hitter.fb > 0.40:
            delta = abs(p_gb - hitter.fb) * self.gb_fb_interaction
            gb *= 1.0 + delta
            fb *= 1.0 - delta
        gb = max(bb.gb_floor, gb)
        fb = max(bb.fb_floor, fb)
        u *= gb + fb + bb.ld_share + bb.pu_share
        if u < gb:
            return "GB"
        u -= gb
        if u < fb:
            return "FB"
        u -= fb
        if u < bb.ld_share:
            return "LD"
        return "PU"

    def in_play(
        self,
        rand: Callable[[], float],
        batted: str,
        hitter: HitterProfile,
        pitcher: PitcherProfile,
        modifier: float,
        hit_factor: float,
        defense: float,
        first_occupied: bool,
        third_occupied: bool,
        outs: int,
    ) -> str:
        """Resolve a ball in play of type ``batted`` into an outcome code."""

        bb = self.bb
        ratio = hitter.babip * pitcher.babip_factor / self.league_babip
        if modifier:
            ratio *= 1.0 + modifier * self.babip_weight
        def_mod = (defense - 400.0) / 550.0 * bb.defense_scale
        if batted == "GB":
            base = bb.gb_hit
        elif batted == "FB":
            base = bb.fb_hit
        elif batted == "LD":
            base = bb.ld_hit
        else:
            base = bb.pu_hit
        hit_chance = clamp((base * ratio - def_mod) * hit_factor, 0.0, 0.95)

        if rand() < hit_chance:
            u = rand()
            if batted == "LD":
                if u < bb.ld_triple:
                    return TRIPLE
                return DOUBLE if u < bb.ld_triple + bb.ld_double else SINGLE
            if batted == "FB":
                if u < bb.fb_triple:
                    return TRIPLE
                return DOUBLE if u < bb.fb_triple + bb.fb_double else SINGLE
            if batted == "GB":
                return DOUBLE if u < bb.gb_double else SINGLE
            return SINGLE

        error_rate = bb.error_rate_gb if batted == "GB" else bb.error_rate_air
        if rand() < error_rate:
            return REACHED_ON_ERROR
        if batted == "GB":
            if first_occupied and outs < 2:
                u = rand()
                if u < bb.double_play_rate:
                    return DOUBLE_PLAY
                if u < bb.double_play_rate + bb.fielders_choice_rate:
                    return FIELDERS_CHOICE
            return GROUND_OUT
        if batted == "FB":
            if third_occupied and outs < 2 and rand() < bb.sac_fly_rate:
                return SAC_FLY
            return FLY_OUT
        return LINE_OUT if batted == "LD" else POP_OUT

    def resolve(
        self,
        rand: Callable[[], float],
        hitter: HitterProfile,
        pitcher: PitcherProfile,
        modifier: float,
        hr_factor: float,
        hit_factor: float,
        defense: float,
        first_occupied: bool,
        third_occupied: bool,
        outs: int,
    ) -> str:
        """Resolve one plate appearance and return its outcome code.

        ``rand`` is the bound ``next``/``random`` method of the game's
        :class:`~leaguesim.rng.RandomStream`.
        """

        outcome = self.stage_one(rand(), hitter, pitcher, modifier, hr_factor)
        if outcome is not None:
            return outcome
        batted = self.batted_ball_type(rand(), hitter, pitcher)
        return self.in_play(
            rand,
            batted,
            hitter,
            pitcher,
            modifier,
            hit_factor,
            defense,
            first_occupied,
            third_occupied,
            outs,
        )


__all__ = [
    "HitterProfile",
    "PitcherProfile",
    "LeagueEnvironment",
    "PlateAppearanceModel",
    "raw_hitter_rates",
    "raw_pitcher_rates",
    "pitch_economy",
    "STRIKEOUT",
    "WALK",
    "HIT_BY_PITCH",
    "HOME_RUN",
    "SINGLE",
    "DOUBLE",
    "TRIPLE",
    "GROUND_OUT",
    "FLY_OUT",
    "LINE_OUT",
    "POP_OUT",
    "DOUBLE_PLAY",
    "SAC_FLY",
    "FIELDERS_CHOICE",
    "REACHED_ON_ERROR",
    "HITS",
]
