"""
Rules-engine collaborator backed by python-chess.

- RulesEngine owns one chess.Board and answers legality questions for it:
  verbose legal moves, promotion options for a square pair, move application
  (SAN computed before the push), FEN output.
- canonical_fen() validates and canonicalizes a position encoding.
- parse_movetext() turns a PGN document into an ordered SAN list.

The explorer never decides legality itself; everything chess-specific goes
through this module. python-chess raises ValueError subclasses for bad FEN /
UCI / SAN input, which are converted to None or failure values here.
"""
from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import chess
import chess.pgn

from .model import PROMOTION_PIECES

log = logging.getLogger(__name__)

SQUARE_RE = re.compile(r"^[a-h][1-8]$")
STARTING_FEN = chess.STARTING_FEN


def is_square(value: str) -> bool:
    return bool(SQUARE_RE.fullmatch(value or ""))


def normalize_promotion_piece(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    p = value.strip().lower()
    return p if p in PROMOTION_PIECES else None


def side_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


@dataclass(frozen=True)
class VerboseMove:
    from_square: str
    to_square: str
    flags: str  # chess.js letters: n b e c p k q
    promotion: Optional[str] = None
    captured: Optional[str] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None or "c" in self.flags or "e" in self.flags


@dataclass(frozen=True)
class AppliedMove:
    san: str
    from_square: str
    to_square: str
    fen: str  # position after the move
    color: str  # side that moved
    promotion: Optional[str] = None
    captured: Optional[str] = None


@dataclass
class ParsedMovetext:
    ok: bool
    moves_san: list[str] = field(default_factory=list)
    start_fen: Optional[str] = None  # set only when the document carries a FEN tag
    reason: Optional[str] = None


def canonical_fen(fen: str | None = None) -> str:
    """Return the full 6-field FEN for fen (the start position for None). Raises ValueError."""
    if fen is None:
        return STARTING_FEN
    board = chess.Board(fen)
    if not board.is_valid():
        raise ValueError(f"invalid position (status {int(board.status())})")
    return board.fen()


class RulesEngine:
    """Legality oracle around a python-chess Board."""

    def __init__(self, fen: str | None = None):
        self.board = chess.Board(fen) if fen else chess.Board()

    @classmethod
    def try_create(cls, fen: str | None = None) -> "RulesEngine | None":
        try:
            return cls(fen)
        except ValueError:
            log.debug("Rules engine rejected FEN %r", fen)
            return None

    def fen(self) -> str:
        return self.board.fen()

    # ---------------- Queries -----------------
    def _describe(self, mv: chess.Move) -> VerboseMove:
        board = self.board
        captured = None
        if board.is_en_passant(mv):
            captured = "p"
            flags = "e"
        elif board.is_capture(mv):
            victim = board.piece_at(mv.to_square)
            captured = victim.symbol().lower() if victim else None
            flags = "c"
        elif board.is_castling(mv):
            flags = "k" if board.is_kingside_castling(mv) else "q"
        elif board.piece_type_at(mv.from_square) == chess.PAWN and abs(mv.to_square - mv.from_square) == 16:
            flags = "b"
        else:
            flags = "n"
        promotion = chess.piece_symbol(mv.promotion) if mv.promotion else None
        if promotion:
            flags += "p"
        return VerboseMove(
            from_square=chess.square_name(mv.from_square),
            to_square=chess.square_name(mv.to_square),
            flags=flags,
            promotion=promotion,
            captured=captured,
        )

    def legal_moves(self, from_square: str | None = None) -> list[VerboseMove]:
        if from_square is None:
            moves = self.board.legal_moves
        else:
            if not is_square(from_square):
                return []
            mask = chess.BB_SQUARES[chess.parse_square(from_square)]
            moves = self.board.generate_legal_moves(from_mask=mask)
        return [self._describe(mv) for mv in moves]

    def promotion_options(self, from_square: str, to_square: str) -> list[str] | None:
        """None: not a legal move; []: legal, not a promotion; else the legal promotion pieces."""
        candidates = [m for m in self.legal_moves(from_square) if m.to_square == to_square]
        if not candidates:
            return None
        promos = [m for m in candidates if m.promotion or "p" in m.flags]
        if not promos:
            return []
        found = {m.promotion for m in promos if m.promotion}
        if not found:
            return list(PROMOTION_PIECES)
        return [p for p in PROMOTION_PIECES if p in found]

    # ---------------- Move application -----------------
    def _push(self, mv: chess.Move) -> AppliedMove:
        described = self._describe(mv)
        color = side_name(self.board.turn)
        san = self.board.san(mv)
        self.board.push(mv)
        return AppliedMove(
            san=san,
            from_square=described.from_square,
            to_square=described.to_square,
            fen=self.board.fen(),
            color=color,
            promotion=described.promotion,
            captured=described.captured,
        )

    def apply(self, from_square: str, to_square: str, promotion: str | None = None) -> AppliedMove | None:
        if not (is_square(from_square) and is_square(to_square)):
            return None
        promo_type = chess.PIECE_SYMBOLS.index(promotion) if promotion in PROMOTION_PIECES else None
        if promotion is not None and promo_type is None:
            return None
        mv = chess.Move(chess.parse_square(from_square), chess.parse_square(to_square), promotion=promo_type)
        if mv not in self.board.legal_moves:
            return None
        return self._push(mv)

    def apply_san(self, san: str) -> AppliedMove | None:
        """Apply a SAN move; None if it does not parse or is not a legal move (null moves included)."""
        try:
            mv = self.board.parse_san(san)
        except ValueError:
            return None
        # parse_san accepts "--" / "Z0" / "0000" as a null move
        if not mv or mv not in self.board.legal_moves:
            return None
        return self._push(mv)


def parse_movetext(text: str) -> ParsedMovetext:
    """Parse one PGN document (first game only) into its mainline SAN list.

    A FEN tag must describe a valid position; null moves in the mainline are rejected.
    """
    try:
        game = chess.pgn.read_game(io.StringIO(text))
    except ValueError as exc:
        return ParsedMovetext(ok=False, reason=str(exc))
    if game is None:
        return ParsedMovetext(ok=False, reason="no game found in movetext")
    if game.errors:
        return ParsedMovetext(ok=False, reason="; ".join(str(e) for e in game.errors))

    try:
        board = game.board()
        start_fen = canonical_fen(board.fen()) if "FEN" in game.headers else None
    except ValueError as exc:
        return ParsedMovetext(ok=False, reason=f"invalid FEN tag: {exc}")

    sans: list[str] = []
    for ply, mv in enumerate(game.mainline_moves(), start=1):
        if not mv or mv not in board.legal_moves:
            return ParsedMovetext(ok=False, reason=f"null or illegal move at ply {ply}")
        sans.append(board.san(mv))
        board.push(mv)
    return ParsedMovetext(ok=True, moves_san=sans, start_fen=start_fen)
