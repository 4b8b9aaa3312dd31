"""
Game-record snapshots (schema version 1).

A snapshot is a JSON-compatible dict describing an externally stored game:

    {"schemaVersion": 1, "kind": "DB", "gameId": "...", "headers": {...},
     "myColor": "white" | "black", "pgnTags": {...}, "movesSan": [...], "startFen": "...",
     "analysis": {"version": 1, "byPly": [{"ply", "evalCp", "mateIn", "bestSan"}]},
     "importMeta": {...}}

Unknown extra fields are kept as-is (producers only ever add fields).
"""
from __future__ import annotations

import copy
from typing import Any, Optional, TypedDict

from .errors import ErrorCode, ExplorerError, make_error
from .pgn_text import map_pgn_tags_to_headers, normalize_pgn_text, parse_pgn_tags
from .rules import parse_movetext

SCHEMA_VERSION = 1
SNAPSHOT_KIND = "DB"


class PlyAnalysis(TypedDict, total=False):
    ply: int
    evalCp: int
    mateIn: int
    bestSan: str


class GameAnalysis(TypedDict, total=False):
    version: int
    byPly: list[PlyAnalysis]


class GameSnapshot(TypedDict, total=False):
    schemaVersion: int
    kind: str
    gameId: str
    headers: dict[str, Any]
    myColor: str
    pgnTags: dict[str, str]
    movesSan: list[str]
    startFen: str  # absent for games from the standard start position
    analysis: GameAnalysis
    importMeta: dict[str, Any]


def validate_snapshot(data: Any) -> Optional[ExplorerError]:
    """Return the first problem with data, or None if it is a loadable v1 snapshot."""
    if not isinstance(data, dict) or data.get("schemaVersion") != SCHEMA_VERSION or data.get("kind") != SNAPSHOT_KIND:
        version = data.get("schemaVersion") if isinstance(data, dict) else None
        kind = data.get("kind") if isinstance(data, dict) else None
        return make_error(ErrorCode.INTERNAL_ERROR, "Invalid game snapshot.", schemaVersion=version, kind=kind)
    game_id = data.get("gameId")
    if not isinstance(game_id, str) or not game_id.strip():
        return make_error(ErrorCode.INTERNAL_ERROR, "Missing gameId for snapshot load.")
    if not isinstance(data.get("headers"), dict):
        return make_error(ErrorCode.INTERNAL_ERROR, "Missing headers for snapshot load.")
    moves = data.get("movesSan")
    if not isinstance(moves, list) or not moves:
        return make_error(ErrorCode.INVALID_PGN, "Game snapshot contains no moves.")
    return None


def clone_snapshot(data: GameSnapshot) -> GameSnapshot:
    cloned = copy.deepcopy(data)
    if isinstance(cloned.get("gameId"), str):
        cloned["gameId"] = cloned["gameId"].strip()
    return cloned


def build_snapshot_from_pgn(
    game_id: str,
    pgn_text: str,
    my_color: Optional[str] = None,
    import_meta: Optional[dict] = None,
) -> tuple[Optional[GameSnapshot], Optional[ExplorerError]]:
    """Parse one PGN document into a v1 snapshot. Returns (snapshot, None) or (None, error)."""
    if not (game_id or "").strip():
        return None, make_error(ErrorCode.INTERNAL_ERROR, "Missing gameId for snapshot.")
    normalized = normalize_pgn_text(pgn_text)
    parsed = parse_movetext(normalized)
    if not parsed.ok:
        return None, make_error(ErrorCode.INVALID_PGN, "Failed to parse PGN.", reason=parsed.reason)
    if not parsed.moves_san:
        return None, make_error(ErrorCode.INVALID_PGN, "PGN contains no moves.")

    tags = parse_pgn_tags(normalized)
    snap: GameSnapshot = {
        "schemaVersion": SCHEMA_VERSION,
        "kind": SNAPSHOT_KIND,
        "gameId": game_id.strip(),
        "headers": map_pgn_tags_to_headers(tags),
        "pgnTags": tags,
        "movesSan": list(parsed.moves_san),
    }
    if parsed.start_fen:
        snap["startFen"] = parsed.start_fen
    if my_color in ("white", "black"):
        snap["myColor"] = my_color
    if import_meta:
        snap["importMeta"] = copy.deepcopy(import_meta)
    return snap, None
