from __future__ import annotations

import pytest

from presto_sync.db.enums import GameResultEnum, GameStatusEnum
from presto_sync.ingestion.providers.base.errors import ProviderMappingError
from presto_sync.ingestion.providers.presto.boxscore import parse_attributes, parse_box_score
from presto_sync.ingestion.providers.presto.mapping import (
    PLAYER_FIELDS,
    determine_result,
    extract_embedded_splits,
    format_game_summary,
    map_class_year,
    map_event_status,
    map_position,
    parse_height,
    resolve_all,
    split_bats_throws,
)
from presto_sync.ingestion.providers.presto.stats import (
    aggregate_career,
    era,
    fill_season_rates,
    innings_to_outs,
    outs_to_innings,
)

BOX_SCORE_XML = """
<bsgame>
  <team vh="H" id="t100" name="Lamar">
    <player name="Diaz, Sam" uni="7" pos="ss" playerId="p1">
      <hitting ab="4" r="1" h="2" double="1" rbi="2" bb="0" so="1"/>
      <fielding po="2" a="4" e="0"/>
    </player>
    <player name="O&apos;Neil, Kyle" uni="21" pos="p" playerId="p2">
      <pitching ip="5.2" h="4" r="2" er="2" bb="1" so="7" win="1"/>
    </player>
    <player name="No Id" uni="99"/>
  </team>
  <team vh="V" id="t900" name="McNeese">
    <player name="Hill, Ty" uni="3" pos="cf" playerId="p9">
      <hitting ab="3" h="0"/>
    </player>
  </team>
</bsgame>
"""


def test_xml_box_score_yields_one_line_per_identified_player() -> None:
    lines = parse_box_score(BOX_SCORE_XML)

    assert [line.player_id for line in lines] == ["p1", "p2", "p9"]

    batter, pitcher, visitor = lines
    assert batter.name == "Diaz, Sam"
    assert batter.team_side == "H"
    assert batter.hitting["ab"] == "4"
    assert batter.fielding["a"] == "4"
    assert batter.pitched is False

    assert pitcher.name == "O'Neil, Kyle"
    assert pitcher.pitching["ip"] == "5.2"
    assert pitcher.pitched is True

    assert visitor.team_id == "t900"
    assert visitor.team_side == "V"


def test_xml_inside_json_envelope_is_unwrapped() -> None:
    lines = parse_box_score({"data": {"xml": BOX_SCORE_XML}})

    assert len(lines) == 3


STARTERS_XML = """
<bsgame>
  <team vh="H" id="t100" name="Lamar">
    <starters>
      <player playerId="p1" name="Diaz, Sam" spot="1" pos="ss"/>
      <player playerId="p2" name="O'Neil, Kyle" spot="9" pos="p"/>
    </starters>
    <player name="Diaz, Sam" uni="7" pos="ss" playerId="p1">
      <hitting ab="4" h="2"/>
    </player>
    <totals>
      <hitting ab="31" h="9"/>
      <fielding po="27" a="11" e="1"/>
    </totals>
  </team>
</bsgame>
"""


def test_starters_and_totals_sections_do_not_add_lines() -> None:
    lines = parse_box_score(STARTERS_XML)

    assert [line.player_id for line in lines] == ["p1"]
    assert lines[0].hitting == {"ab": "4", "h": "2"}


def test_json_team_blocks_with_flat_rows() -> None:
    payload = {
        "teams": [
            {
                "id": "t100",
                "vh": "H",
                "players": [
                    {"playerId": "p1", "firstName": "Sam", "lastName": "Diaz", "ab": 4, "h": 1},
                    {"playerId": "p2", "name": "Kyle O'Neil", "ip": "6.1", "ha": 3, "kp": 8},
                    {"name": "missing id"},
                ],
            }
        ]
    }

    lines = parse_box_score(payload)

    assert [line.player_id for line in lines] == ["p1", "p2"]
    assert lines[0].name == "Sam Diaz"
    assert lines[0].team_id == "t100"
    assert lines[1].pitching == {"ip": "6.1", "h": 3, "so": 8}


def test_json_nested_groups_keep_their_sections() -> None:
    lines = parse_box_score(
        [{"playerId": 5, "hitting": {"ab": 2}, "pitching": {"ip": "1.0"}}]
    )

    assert lines[0].player_id == "5"
    assert lines[0].hitting == {"ab": 2}
    assert lines[0].fielding == {}
    assert lines[0].pitched is True


def test_unrecognized_box_score_text_raises() -> None:
    with pytest.raises(ProviderMappingError):
        parse_box_score("service unavailable")


def test_empty_box_score_is_empty() -> None:
    assert parse_box_score(None) == []
    assert parse_box_score("   ") == []


def test_attributes_are_lower_cased_and_unescaped() -> None:
    assert parse_attributes('playerId="12" Name=\'A &amp; B\'') == {
        "playerid": "12",
        "name": "A & B",
    }


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("RHP", "P"),
        ("lhp", "P"),
        ("RHP/1B", "P"),
        ("INF", "SS"),
        ("UTL", "OF"),
        ("ss", "SS"),
        ("", "OF"),
        (None, "OF"),
        ("XYZ", "OF"),
    ],
)
def test_positions_normalize(raw, expected) -> None:
    assert map_position(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Jr.", ("JR", False)),
        ("RS-FR", ("FR", True)),
        ("R-So.", ("SO", True)),
        ("Redshirt Junior", ("JR", True)),
        ("Graduate", ("GR", False)),
        ("Sr", ("SR", False)),
        ("5th", (None, False)),
        (None, (None, False)),
    ],
)
def test_class_year_and_redshirt(raw, expected) -> None:
    assert map_class_year(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("6-2", "6-2"), ("6'2\"", "6-2"), ("6 2", "6-2"), (74, "6-2"), ("", None)],
)
def test_height_formats(raw, expected) -> None:
    assert parse_height(raw) == expected


def test_bats_throws_split() -> None:
    assert split_bats_throws("R/R") == ("R", "R")
    assert split_bats_throws("B-R") == ("S", "R")
    assert split_bats_throws("R") == (None, None)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (-1, GameStatusEnum.SCHEDULED),
        (-3, GameStatusEnum.IN_PROGRESS),
        ("-2", GameStatusEnum.IN_PROGRESS),
        (0, GameStatusEnum.COMPLETED),
        (12, GameStatusEnum.COMPLETED),
        ("Final", GameStatusEnum.COMPLETED),
        ("in progress", GameStatusEnum.IN_PROGRESS),
        ("Postponed", GameStatusEnum.POSTPONED),
        ("canceled", GameStatusEnum.CANCELLED),
        (None, GameStatusEnum.SCHEDULED),
        ("something else", GameStatusEnum.SCHEDULED),
    ],
)
def test_event_status_codes(raw, expected) -> None:
    assert map_event_status(raw) == expected


def test_result_and_summary() -> None:
    assert determine_result(5, 3) == GameResultEnum.WIN
    assert determine_result(2, 3) == GameResultEnum.LOSS
    assert determine_result(4, 4) == GameResultEnum.TIE
    assert determine_result(None, 3) is None
    assert format_game_summary(GameResultEnum.WIN, 5, 3) == "W, 5-3"
    assert format_game_summary(None, None, None) is None


def test_player_table_takes_first_non_empty_alias() -> None:
    values = resolve_all(
        {"playerId": "p7", "firstName": "  ", "name": {"first": "Ana", "last": "Ruiz"}},
        PLAYER_FIELDS,
    )

    assert values["external_id"] == "p7"
    assert values["first_name"] == "Ana"
    assert values["last_name"] == "Ruiz"
    assert values["position"] is None


def test_embedded_splits_use_canonical_keys() -> None:
    item = {"stats": {"splits": {"vsLeft": {"avg": ".300"}, "RISP": {"avg": ".250"}, "x": {}}}}

    assert extract_embedded_splits(item) == {
        "vs_lhp": {"avg": ".300"},
        "risp": {"avg": ".250"},
    }


def test_innings_notation_round_trips_through_outs() -> None:
    assert innings_to_outs("5.2") == 17
    assert innings_to_outs(6.1) == 19
    assert innings_to_outs(None) == 0
    assert outs_to_innings(17 + 19) == 12.0
    assert outs_to_innings(20) == 6.2


def test_era_uses_thirds_of_an_inning() -> None:
    assert era(2, "5.2") == 3.18
    assert era(3, 0) is None


def test_missing_rates_are_filled_from_counts() -> None:
    values = fill_season_rates(
        {"at_bats": 10, "hits": 3, "walks": 1, "batting_average": 0.5, "putouts": 9}
    )

    assert values["batting_average"] == 0.5
    assert values["on_base_percentage"] == 0.364
    assert values["slugging_percentage"] == 0.3
    assert values["era"] is None
    assert values["fielding_percentage"] == 1.0


def test_career_rates_come_from_summed_counts() -> None:
    career = aggregate_career(
        [
            {"at_bats": 100, "hits": 30, "innings_pitched": 5.2, "earned_runs": 2},
            {"at_bats": 50, "hits": 20, "innings_pitched": "6.1", "earned_runs": 4},
        ]
    )

    assert career["seasons_played"] == 2
    assert career["career_hits"] == 50
    assert career["career_at_bats"] == 150
    # (.300 + .400) / 2 would be .350
    assert career["career_batting_average"] == 0.333
    assert career["career_innings_pitched"] == 12.0
    assert career["career_era"] == 4.5
    assert career["career_whip"] == 0.0
