"""
Loaders: state transitions that (re)populate the tree.

Mode machine:
- FREE -> PGN_LOADED (load_pgn) / DB_LOADED (load_moves_san, load_snapshot)
- FREE -> FREE (load_fen)
- any -> FREE only through reset_to_initial

Every loader except reset_to_initial returns RESET_REQUIRED outside FREE and
leaves the state untouched. Validation and the tree rebuild happen before any
write; the only partial-failure path is a replay that hits an illegal move,
which hard-resets the session to the initial position.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .config import SETTINGS
from .errors import ErrorCode, ExplorerResult, failure, success
from .model import DbSource, ExplorerMode, FenSource, FreeSource, PgnSource
from .pgn_text import normalize_pgn_text
from .rules import canonical_fen, parse_movetext
from .snapshot import GameSnapshot, clone_snapshot, validate_snapshot
from .state import SessionState
from .tree import build_tree_from_san_moves, reset_tree_to_root_fen

log = logging.getLogger(__name__)


def _reset_required(what: str) -> ExplorerResult:
    return failure(ErrorCode.RESET_REQUIRED, f"Loading {what} is only allowed in FREE mode. Please reset the session first.")


def reset_to_initial(state: SessionState) -> None:
    state.mode = ExplorerMode.FREE
    state.source = FreeSource()
    state.game_snapshot = None
    reset_tree_to_root_fen(state, canonical_fen(None))


def load_fen(state: SessionState, fen: str) -> ExplorerResult:
    if state.mode != ExplorerMode.FREE:
        return _reset_required("a FEN position")
    try:
        canonical = canonical_fen(fen if isinstance(fen, str) else "")
    except ValueError as exc:
        log.info("Rejected FEN %r: %s", fen, exc)
        return failure(ErrorCode.INVALID_FEN, "Invalid FEN.", fen=fen, reason=str(exc))

    reset_tree_to_root_fen(state, canonical)
    state.mode = ExplorerMode.FREE
    state.source = FenSource(fen=canonical)
    state.game_snapshot = None
    log.info("Loaded FEN %s", canonical)
    return success()


def _replay_mainline(state: SessionState, moves_san: list[str], start_fen: Optional[str]) -> ExplorerResult:
    """Rebuild the tree from a SAN mainline and commit it; hard reset on an illegal move."""
    rebuilt = build_tree_from_san_moves(moves_san, start_fen)
    if rebuilt.tree is None:
        log.warning("Illegal move %r at index %s during replay; resetting session", rebuilt.illegal_san, rebuilt.illegal_index)
        reset_to_initial(state)
        return failure(ErrorCode.INVALID_PGN, "Game contains an illegal move.", san=rebuilt.illegal_san, index=rebuilt.illegal_index)

    state.id_factory = rebuilt.id_factory
    state.tree = rebuilt.tree
    state.current_node_id = rebuilt.last_node_id
    return success()


def _has_moves(moves_san: Any) -> bool:
    return isinstance(moves_san, list) and any(isinstance(m, str) and m.strip() for m in moves_san)


def load_pgn(state: SessionState, pgn: str, name: Optional[str] = None) -> ExplorerResult:
    if state.mode != ExplorerMode.FREE:
        return _reset_required("a PGN")

    trimmed = (pgn or "").strip() if isinstance(pgn, str) else ""
    if not trimmed:
        return failure(ErrorCode.INVALID_PGN, "PGN is empty.")

    normalized = normalize_pgn_text(trimmed)
    parsed = parse_movetext(normalized)
    if not parsed.ok:
        log.info("PGN parse failed: %s", parsed.reason)
        return failure(
            ErrorCode.INVALID_PGN,
            "Failed to parse PGN.",
            reason=parsed.reason,
            preview=normalized[: SETTINGS.pgn_preview_chars],
        )
    if not parsed.moves_san:
        return failure(ErrorCode.INVALID_PGN, "PGN contains no moves.")

    result = _replay_mainline(state, parsed.moves_san, parsed.start_fen)
    if not result.ok:
        return result

    state.mode = ExplorerMode.PGN_LOADED
    state.source = PgnSource(name=name)
    state.game_snapshot = None
    log.info("Loaded PGN %r (%d plies)", name, len(parsed.moves_san))
    return success()


def load_moves_san(
    state: SessionState,
    moves_san: list[str],
    game_id: str,
    start_fen: Optional[str] = None,
) -> ExplorerResult:
    """Load an already-parsed SAN mainline for a stored game (DB_LOADED)."""
    if state.mode != ExplorerMode.FREE:
        return _reset_required("a stored game")

    gid = game_id.strip() if isinstance(game_id, str) else ""
    if not gid:
        return failure(ErrorCode.INTERNAL_ERROR, "Missing gameId for stored game load.")
    if not _has_moves(moves_san):
        return failure(ErrorCode.INVALID_PGN, "Stored game contains no moves.")

    root_fen = None
    if start_fen is not None:
        try:
            root_fen = canonical_fen(start_fen)
        except ValueError as exc:
            return failure(ErrorCode.INTERNAL_ERROR, "Invalid start position for stored game.", fen=start_fen, reason=str(exc))

    result = _replay_mainline(state, moves_san, root_fen)
    if not result.ok:
        return result

    state.mode = ExplorerMode.DB_LOADED
    state.source = DbSource(game_id=gid)
    state.game_snapshot = None
    log.info("Loaded stored game %s (%d plies)", gid, len(moves_san))
    return success()


def load_snapshot(state: SessionState, snapshot: GameSnapshot) -> ExplorerResult:
    """Load a schema-v1 game snapshot (DB_LOADED) and keep a private deep copy of it."""
    if state.mode != ExplorerMode.FREE:
        return _reset_required("a game snapshot")

    problem = validate_snapshot(snapshot)
    if problem is not None:
        log.info("Rejected snapshot: %s", problem.message)
        return ExplorerResult(ok=False, error=problem)

    start_fen = snapshot.get("startFen")
    if start_fen is not None and not isinstance(start_fen, str):
        return failure(ErrorCode.INTERNAL_ERROR, "Invalid startFen in game snapshot.")

    result = load_moves_san(state, snapshot["movesSan"], snapshot["gameId"], start_fen=start_fen)
    if not result.ok:
        return result

    state.game_snapshot = clone_snapshot(snapshot)
    return success()
