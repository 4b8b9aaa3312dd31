"""
Move application against the cursor position.

Flow: validate squares -> rules engine at cursor -> promotion options ->
promotion gating -> apply -> UCI from the engine-confirmed promotion ->
upsert into the tree (an already explored move reuses its node).
"""
from __future__ import annotations

import logging
from typing import Optional

from .errors import ApplyMoveResult, ErrorCode, move_failure
from .rules import is_square, normalize_promotion_piece
from .state import SessionState, rules_at_cursor
from .tree import build_uci, upsert_child

log = logging.getLogger(__name__)


def apply_move(state: SessionState, from_square: str, to_square: str, promotion: Optional[str] = None) -> ApplyMoveResult:
    src = (from_square or "").lower() if isinstance(from_square, str) else ""
    dst = (to_square or "").lower() if isinstance(to_square, str) else ""
    if not is_square(src) or not is_square(dst):
        return move_failure(ErrorCode.ILLEGAL_MOVE, "Invalid square coordinates.", from_square=src, to_square=dst)

    rules = rules_at_cursor(state)
    if rules is None:
        log.error("Cursor FEN rejected by rules engine at node %s", state.current_node_id)
        return move_failure(ErrorCode.INTERNAL_ERROR, "Failed to initialize rules engine from current FEN.")

    options = rules.promotion_options(src, dst)
    if options is None:
        log.debug("Illegal move %s%s", src, dst)
        return move_failure(ErrorCode.ILLEGAL_MOVE, "Illegal move.", from_square=src, to_square=dst, promotion=promotion)

    requires_promotion = bool(options)
    piece = None
    if requires_promotion:
        if not promotion:
            return move_failure(
                ErrorCode.PROMOTION_REQUIRED,
                "Promotion piece is required.",
                from_square=src,
                to_square=dst,
                options=options,
            )
        piece = normalize_promotion_piece(promotion)
        if piece not in options:
            return move_failure(
                ErrorCode.ILLEGAL_MOVE,
                "Invalid promotion piece.",
                from_square=src,
                to_square=dst,
                promotion=promotion,
                allowed=options,
            )

    # a promotion hint on a non-promotion move is dropped, not forwarded
    applied = rules.apply(src, dst, piece)
    if applied is None:
        return move_failure(ErrorCode.ILLEGAL_MOVE, "Illegal move.", from_square=src, to_square=dst, promotion=piece)

    uci = build_uci(src, dst, applied.promotion)
    return upsert_child(
        state,
        from_square=src,
        to_square=dst,
        fen_after=applied.fen,
        uci=uci,
        san=applied.san,
        promotion=applied.promotion,
    )
