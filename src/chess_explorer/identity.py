"""Position identity: normalized FEN (first four fields) and its FNV-1a 64-bit key."""
from __future__ import annotations

from typing import NamedTuple

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


class PositionIdentity(NamedTuple):
    normalized_fen: str
    position_key: str


def normalize_fen(fen: str) -> str:
    """Keep placement, side to move, castling and en passant; drop the move counters."""
    parts = (fen or "").split()
    if len(parts) >= 4:
        return " ".join(parts[:4])
    return (fen or "").strip()


def fnv1a64_hex(text: str) -> str:
    """FNV-1a 64-bit over the code points of text, as 16 lowercase hex digits."""
    h = _FNV64_OFFSET
    for ch in text:
        h ^= ord(ch)
        h = (h * _FNV64_PRIME) & _MASK64
    return f"{h:016x}"


def identify(fen: str) -> PositionIdentity:
    normalized = normalize_fen(fen)
    return PositionIdentity(normalized, fnv1a64_hex(normalized))
