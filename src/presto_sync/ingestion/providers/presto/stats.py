"""Baseball rate stats computed from counting stats.

Innings use baseball notation throughout: 5.2 means five and two-thirds
innings, so arithmetic is done on outs and converted back.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def innings_to_outs(innings: Any) -> int:
    if innings in (None, ""):
        return 0
    value = float(innings)
    whole = int(value)
    partial = int(round((value - whole) * 10))
    if partial not in (0, 1, 2):
        # Decimal thirds (5.333) rather than baseball notation.
        partial = int(round((value - whole) * 3))
    return whole * 3 + partial


def outs_to_innings(outs: int) -> float:
    return float(f"{outs // 3}.{outs % 3}")


def _ratio(numerator: float, denominator: float, digits: int) -> float | None:
    if denominator <= 0:
        return None
    return round(numerator / denominator, digits)


def batting_average(hits: int, at_bats: int) -> float | None:
    return _ratio(hits, at_bats, 3)


def on_base_percentage(
    hits: int, walks: int, hit_by_pitch: int, at_bats: int, sacrifice_flies: int
) -> float | None:
    return _ratio(
        hits + walks + hit_by_pitch,
        at_bats + walks + hit_by_pitch + sacrifice_flies,
        3,
    )


def total_bases(hits: int, doubles: int, triples: int, home_runs: int) -> int:
    return hits + doubles + 2 * triples + 3 * home_runs


def slugging_percentage(
    hits: int, doubles: int, triples: int, home_runs: int, at_bats: int
) -> float | None:
    return _ratio(total_bases(hits, doubles, triples, home_runs), at_bats, 3)


def ops(obp: float | None, slg: float | None) -> float | None:
    if obp is None or slg is None:
        return None
    return round(obp + slg, 3)


def era(earned_runs: int, innings: Any) -> float | None:
    outs = innings_to_outs(innings)
    return _ratio(earned_runs * 27, outs, 2)


def whip(walks_allowed: int, hits_allowed: int, innings: Any) -> float | None:
    outs = innings_to_outs(innings)
    return _ratio((walks_allowed + hits_allowed) * 3, outs, 2)


def fielding_percentage(putouts: int, assists: int, errors: int) -> float | None:
    return _ratio(putouts + assists, putouts + assists + errors, 3)


def fill_season_rates(values: dict[str, Any]) -> dict[str, Any]:
    """Compute any rate stat the provider left empty, in place."""
    v = values

    def n(key: str) -> int:
        return int(v.get(key) or 0)

    if v.get("batting_average") is None:
        v["batting_average"] = batting_average(n("hits"), n("at_bats"))
    if v.get("on_base_percentage") is None:
        v["on_base_percentage"] = on_base_percentage(
            n("hits"), n("walks"), n("hit_by_pitch"), n("at_bats"), n("sacrifice_flies")
        )
    if v.get("slugging_percentage") is None:
        v["slugging_percentage"] = slugging_percentage(
            n("hits"), n("doubles"), n("triples"), n("home_runs"), n("at_bats")
        )
    if v.get("ops") is None:
        v["ops"] = ops(v["on_base_percentage"], v["slugging_percentage"])
    if v.get("era") is None:
        v["era"] = era(n("earned_runs"), v.get("innings_pitched"))
    if v.get("whip") is None:
        v["whip"] = whip(n("walks_allowed"), n("hits_allowed"), v.get("innings_pitched"))
    if v.get("fielding_percentage") is None:
        v["fielding_percentage"] = fielding_percentage(
            n("putouts"), n("assists"), n("errors")
        )
    return v


# season column -> career column
CAREER_SUMS: dict[str, str] = {
    "games_played": "career_games",
    "at_bats": "career_at_bats",
    "runs": "career_runs",
    "hits": "career_hits",
    "doubles": "career_doubles",
    "triples": "career_triples",
    "home_runs": "career_home_runs",
    "rbi": "career_rbi",
    "walks": "career_walks",
    "strikeouts": "career_strikeouts",
    "stolen_bases": "career_stolen_bases",
    "hit_by_pitch": "career_hit_by_pitch",
    "sacrifice_flies": "career_sacrifice_flies",
    "pitching_appearances": "career_pitching_appearances",
    "pitching_wins": "career_wins",
    "pitching_losses": "career_losses",
    "saves": "career_saves",
    "hits_allowed": "career_hits_allowed",
    "walks_allowed": "career_walks_allowed",
    "earned_runs": "career_earned_runs",
    "strikeouts_pitching": "career_strikeouts_pitching",
}


def aggregate_career(seasons: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Sum counting stats across seasons and recompute rates from the sums.

    Per-season rates are never averaged.
    """
    totals = {career: 0 for career in CAREER_SUMS.values()}
    outs = 0
    doubles = triples = 0
    seasons_played = 0

    for season in seasons:
        seasons_played += 1
        for column, career in CAREER_SUMS.items():
            totals[career] += int(season.get(column) or 0)
        outs += innings_to_outs(season.get("innings_pitched"))
        doubles += int(season.get("doubles") or 0)
        triples += int(season.get("triples") or 0)

    innings = outs_to_innings(outs)
    avg = batting_average(totals["career_hits"], totals["career_at_bats"])
    obp = on_base_percentage(
        totals["career_hits"],
        totals["career_walks"],
        totals["career_hit_by_pitch"],
        totals["career_at_bats"],
        totals["career_sacrifice_flies"],
    )
    slg = slugging_percentage(
        totals["career_hits"],
        doubles,
        triples,
        totals["career_home_runs"],
        totals["career_at_bats"],
    )

    return {
        **totals,
        "seasons_played": seasons_played,
        "career_innings_pitched": innings,
        "career_batting_average": avg,
        "career_obp": obp,
        "career_slg": slg,
        "career_ops": ops(obp, slg),
        "career_era": era(totals["career_earned_runs"], innings),
        "career_whip": whip(
            totals["career_walks_allowed"], totals["career_hits_allowed"], innings
        ),
    }
