"""
Explorer data model.

The session is a tree of positions stored as an arena: Tree.nodes_by_id maps
ids to Node records and every cross-reference (parent, children, active
child) is an id, never an object reference.

- childIds order is insertion order: child_ids[0] is the mainline continuation
  and is never reordered.
- active_child_id is the continuation selected for the "active line"; it is
  independent from the mainline ordering.

Also holds the mode enum, the source tagged union and the read-only view
models produced by selectors.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Literal, Optional, Union

PromotionPiece = Literal["q", "r", "b", "n"]
PROMOTION_PIECES: tuple[str, ...] = ("q", "r", "b", "n")

Side = Literal["white", "black"]


@dataclass(frozen=True)
class Move:
    uci: str  # "e2e4", "e7e8q": identity key for branch dedup
    san: str
    from_square: str
    to_square: str
    promotion: Optional[str] = None


@dataclass
class Node:
    id: str
    ply: int
    fen: str
    normalized_fen: str
    position_key: str
    parent_id: Optional[str] = None
    incoming_move: Optional[Move] = None
    child_ids: list[str] = field(default_factory=list)
    active_child_id: Optional[str] = None


@dataclass
class Tree:
    root_id: str
    nodes_by_id: dict[str, Node] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"root_id": self.root_id, "nodes_by_id": {k: asdict(v) for k, v in self.nodes_by_id.items()}}


class IdFactory:
    """Monotonic node ids ("n0", "n1", ...) for one tree generation."""

    def __init__(self) -> None:
        self._next = 0

    def next_node_id(self) -> str:
        node_id = f"n{self._next}"
        self._next += 1
        return node_id


class ExplorerMode(str, Enum):
    FREE = "FREE"
    DB_LOADED = "DB_LOADED"
    PGN_LOADED = "PGN_LOADED"


# ---------------- Source (tagged union on `kind`) -----------------
@dataclass(frozen=True)
class FreeSource:
    kind: Literal["FREE"] = "FREE"


@dataclass(frozen=True)
class FenSource:
    fen: str
    kind: Literal["FEN"] = "FEN"


@dataclass(frozen=True)
class PgnSource:
    name: Optional[str] = None
    kind: Literal["PGN"] = "PGN"


@dataclass(frozen=True)
class DbSource:
    game_id: str
    kind: Literal["DB"] = "DB"


Source = Union[FreeSource, FenSource, PgnSource, DbSource]


# ---------------- View models -----------------
@dataclass(frozen=True)
class MainlineMove:
    move: Move
    node_id: str
    ply: int
    variation_count: int  # alternatives at the parent (siblings minus this mainline child)


@dataclass(frozen=True)
class MoveToken:
    node_id: str
    ply: int
    move: Move
    variation_count: int  # alternatives after this move
    active_child_is_mainline: bool
    label: str  # "5.O-O", "5...c5" or bare "c5"


@dataclass(frozen=True)
class MoveListRow:
    move_number: int
    white: Optional[MoveToken] = None
    black: Optional[MoveToken] = None


@dataclass(frozen=True)
class VariationLine:
    start_node_id: str
    tokens: list[MoveToken]


@dataclass(frozen=True)
class MoveListViewModel:
    rows: list[MoveListRow]
    variations_by_node_id: dict[str, list[VariationLine]]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class VariationInfo:
    index: int
    count: int


PieceCounts = dict[str, int]  # keys p n b r q


def empty_piece_counts() -> PieceCounts:
    return {"p": 0, "n": 0, "b": 0, "r": 0, "q": 0}


@dataclass(frozen=True)
class CapturedPieces:
    """by_side["white"]["p"] = black pawns captured by White. None when not applicable."""

    availability: Literal["available", "not_applicable"]
    by_side: Optional[dict[str, PieceCounts]] = None


@dataclass(frozen=True)
class Material:
    by_side: dict[str, PieceCounts]
    score_by_side: dict[str, int]
    diff: int
    leading_side: Optional[Side] = None


@dataclass(frozen=True)
class DestinationHints:
    destinations: list[str]
    captures: list[str]
