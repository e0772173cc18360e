"""Box-score parser for the provider's fixed XML shape.

This is deliberately not a general XML parser. It recognizes exactly the
vendor layout::

    <team vh="H" id="..." name="...">
      <starters><player playerId="123" spot="1" /></starters>
      <player name="..." uni="12" pos="ss" playerId="123">
        <hitting ab="4" r="1" h="2" ... />
        <fielding po="1" a="3" e="0" />
        <pitching ip="5.2" h="4" er="2" ... />
      </player>
      <totals><hitting ab="31" ... /></totals>
    </team>

Some events deliver the same information as JSON instead; both shapes come
out as PlayerStatLine records.
"""

from __future__ import annotations

import html
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from presto_sync.ingestion.providers.base.errors import ProviderMappingError

from .mapping import FLAT_PITCHING_KEYS, FieldChain, to_str

_TEAM_BLOCK = re.compile(r"<team\b([^>]*)>(.*?)</team\s*>", re.S | re.I)
_PLAYER_BLOCK = re.compile(r"<player\b([^>]*?)(?:/>|>(.*?)</player\s*>)", re.S | re.I)
_STAT_ELEMENT = re.compile(r"<(hitting|fielding|pitching)\b([^>]*?)/?>", re.I)
_ATTRIBUTE = re.compile(r"([\w:\-]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
# Lineup and team-total sections reuse <player> and stat tags.
_NON_PLAYER_SECTIONS = re.compile(
    r"<(starters|totals)\b[^>]*?(?:/>|>.*?</\1\s*>)", re.S | re.I
)

_XML_ENVELOPE_KEYS = ("xml", "boxscore", "boxScore", "bsgame")
_JSON_PLAYER_KEYS = ("players", "playerStats")

_JSON_PLAYER_ID = FieldChain.of("playerId", "player_id", "id")
_JSON_NAME = FieldChain.of("name", "displayName", "fullName")
_JSON_POSITION = FieldChain.of("position", "pos")
_JSON_JERSEY = FieldChain.of("jerseyNumber", "uni", "number")
_JSON_HITTING = FieldChain.of("hitting", "batting")


@dataclass(frozen=True)
class PlayerStatLine:
    player_id: str
    name: str | None = None
    position: str | None = None
    jersey: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    team_side: str | None = None  # "H" / "V" when the payload says so
    hitting: Mapping[str, Any] = field(default_factory=dict)
    fielding: Mapping[str, Any] = field(default_factory=dict)
    pitching: Mapping[str, Any] = field(default_factory=dict)

    @property
    def pitched(self) -> bool:
        return bool(self.pitching)


def parse_attributes(text: str | None) -> dict[str, str]:
    """Attribute map with lower-cased names and unescaped values."""
    if not text:
        return {}
    attrs: dict[str, str] = {}
    for m in _ATTRIBUTE.finditer(text):
        value = m.group(2) if m.group(2) is not None else m.group(3)
        attrs[m.group(1).lower()] = html.unescape(value)
    return attrs


def _player_from_xml(
    attr_text: str, body: str | None, team: Mapping[str, str]
) -> PlayerStatLine | None:
    attrs = parse_attributes(attr_text)
    player_id = attrs.get("playerid") or attrs.get("player_id")
    if not player_id:
        return None

    groups: dict[str, dict[str, str]] = {"hitting": {}, "fielding": {}, "pitching": {}}
    for m in _STAT_ELEMENT.finditer(body or ""):
        groups[m.group(1).lower()].update(parse_attributes(m.group(2)))

    return PlayerStatLine(
        player_id=player_id.strip(),
        name=attrs.get("name") or attrs.get("shortname") or attrs.get("checkname"),
        position=attrs.get("pos") or attrs.get("position"),
        jersey=attrs.get("uni"),
        team_id=team.get("id"),
        team_name=team.get("name"),
        team_side=(team.get("vh") or "").upper() or None,
        hitting=groups["hitting"],
        fielding=groups["fielding"],
        pitching=groups["pitching"],
    )


def parse_box_score_xml(xml: str) -> list[PlayerStatLine]:
    lines: list[PlayerStatLine] = []
    teams = list(_TEAM_BLOCK.finditer(xml))
    blocks: list[tuple[dict[str, str], str]]
    if teams:
        blocks = [(parse_attributes(t.group(1)), t.group(2)) for t in teams]
    else:
        blocks = [({}, xml)]

    for team_attrs, body in blocks:
        body = _NON_PLAYER_SECTIONS.sub("", body)
        for m in _PLAYER_BLOCK.finditer(body):
            line = _player_from_xml(m.group(1), m.group(2), team_attrs)
            if line is not None:
                lines.append(line)
    return lines


def _player_from_json(item: Mapping[str, Any], team: Mapping[str, Any]) -> PlayerStatLine | None:
    player_id = to_str(_JSON_PLAYER_ID.resolve(item))
    if player_id is None:
        return None

    name = to_str(_JSON_NAME.resolve(item))
    if name is None:
        first, last = to_str(item.get("firstName")), to_str(item.get("lastName"))
        name = " ".join(p for p in (first, last) if p) or None

    hitting = _JSON_HITTING.resolve(item)
    pitching = item.get("pitching")
    fielding = item.get("fielding")
    if isinstance(hitting, Mapping) or isinstance(pitching, Mapping):
        hitting = dict(hitting) if isinstance(hitting, Mapping) else {}
        pitching = dict(pitching) if isinstance(pitching, Mapping) else {}
        fielding = dict(fielding) if isinstance(fielding, Mapping) else {}
    else:
        # Flat row: one object carries batting, pitching and fielding keys.
        hitting = dict(item)
        fielding = dict(item)
        pitching = {}
        for key, chain in FLAT_PITCHING_KEYS.items():
            value = chain.resolve(item)
            if value is not None:
                pitching[key] = value

    return PlayerStatLine(
        player_id=player_id,
        name=name,
        position=to_str(_JSON_POSITION.resolve(item)),
        jersey=to_str(_JSON_JERSEY.resolve(item)),
        team_id=to_str(team.get("id") or item.get("teamId")),
        team_name=to_str(team.get("name")),
        team_side=to_str(team.get("vh")),
        hitting=hitting,
        fielding=fielding,
        pitching=pitching,
    )


def _parse_json_players(items: list[Any], team: Mapping[str, Any]) -> list[PlayerStatLine]:
    lines: list[PlayerStatLine] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        line = _player_from_json(item, team)
        if line is not None:
            lines.append(line)
    return lines


def parse_box_score(raw: Any) -> list[PlayerStatLine]:
    """Parse a box score delivered as XML text, a JSON envelope, or a player list.

    Players without a provider id are dropped. Raises ProviderMappingError when
    the payload is not one of the known shapes.
    """
    if raw is None:
        return []

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text.startswith("<") or "<player" in text:
            return parse_box_score_xml(text)
        if text[0] in "[{":
            try:
                decoded = json.loads(text)
            except ValueError as e:
                raise ProviderMappingError(
                    "Box score text is neither XML nor JSON", context={"head": text[:80]}
                ) from e
            return parse_box_score(decoded)
        raise ProviderMappingError(
            "Box score text is neither XML nor JSON", context={"head": text[:80]}
        )

    if isinstance(raw, list):
        return _parse_json_players(raw, {})

    if isinstance(raw, Mapping):
        if "data" in raw:
            return parse_box_score(raw["data"])
        for key in _XML_ENVELOPE_KEYS:
            if isinstance(raw.get(key), str):
                return parse_box_score_xml(raw[key])
        for key in _JSON_PLAYER_KEYS:
            if isinstance(raw.get(key), list):
                return _parse_json_players(raw[key], {})
        teams = raw.get("teams")
        if isinstance(teams, list):
            lines: list[PlayerStatLine] = []
            for team in teams:
                if isinstance(team, Mapping) and isinstance(team.get("players"), list):
                    lines.extend(_parse_json_players(team["players"], team))
            return lines
        return []

    raise ProviderMappingError(
        "Unsupported box score payload", context={"type": type(raw).__name__}
    )
