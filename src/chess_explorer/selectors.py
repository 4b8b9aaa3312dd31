"""
Session selectors.

Pure read-only derivations from SessionState: line/path enumeration, the
move-list view model, variation info, captured pieces, material and legal
destination hints.

- Selectors never mutate state and never fail: when the tree is unexpectedly
  inconsistent they stop at the first missing node and return what they have
  (or a zeroed / empty default).
- The only exception is the cursor accessor in state.get_current_node, which
  treats a missing cursor node as an invariant violation.
"""
from __future__ import annotations

import copy
from typing import Optional

from .model import (
    CapturedPieces,
    DestinationHints,
    FenSource,
    MainlineMove,
    Material,
    Move,
    MoveListRow,
    MoveListViewModel,
    MoveToken,
    Node,
    VariationInfo,
    VariationLine,
    empty_piece_counts,
)
from .rules import RulesEngine, is_square
from .snapshot import GameSnapshot
from .state import SessionState, get_current_fen, rules_at_cursor
from .variation import variation_context

PIECE_VALUES = {"p": 1, "n": 3, "b": 3, "r": 5, "q": 9}


# ---------------- Lines and paths -----------------
def get_path_node_ids(state: SessionState) -> list[str]:
    """Root -> cursor; the longest valid prefix if the parent chain is broken."""
    nodes = state.tree.nodes_by_id
    path: list[str] = []
    cursor: Optional[str] = state.current_node_id
    while cursor is not None and cursor in nodes and cursor not in path:
        path.append(cursor)
        cursor = nodes[cursor].parent_id
    path.reverse()
    return path


def _follow(state: SessionState, pick) -> list[str]:
    nodes = state.tree.nodes_by_id
    line: list[str] = []
    seen: set[str] = set()
    cursor: Optional[str] = state.tree.root_id
    while cursor is not None and cursor in nodes and cursor not in seen:
        seen.add(cursor)
        line.append(cursor)
        cursor = pick(nodes[cursor])
    return line


def get_active_line_node_ids(state: SessionState) -> list[str]:
    return _follow(state, lambda n: n.active_child_id)


def get_mainline_node_ids(state: SessionState) -> list[str]:
    return _follow(state, lambda n: n.child_ids[0] if n.child_ids else None)


def _moves_of(state: SessionState, ids: list[str]) -> list[Move]:
    nodes = state.tree.nodes_by_id
    return [nodes[i].incoming_move for i in ids[1:] if i in nodes and nodes[i].incoming_move is not None]


def get_active_line_moves(state: SessionState) -> list[Move]:
    return _moves_of(state, get_active_line_node_ids(state))


def get_path_moves(state: SessionState) -> list[Move]:
    return _moves_of(state, get_path_node_ids(state))


def get_mainline_moves_with_meta(state: SessionState) -> list[MainlineMove]:
    """Mainline moves (root excluded) with the number of alternatives at their parent."""
    nodes = state.tree.nodes_by_id
    out: list[MainlineMove] = []
    for node_id in get_mainline_node_ids(state)[1:]:
        node = nodes[node_id]
        if node.incoming_move is None:
            continue
        parent = nodes.get(node.parent_id) if node.parent_id else None
        siblings = len(parent.child_ids) if parent else 0
        out.append(MainlineMove(move=node.incoming_move, node_id=node_id, ply=node.ply, variation_count=max(0, siblings - 1)))
    return out


def get_variation_info(state: SessionState) -> Optional[VariationInfo]:
    ctx = variation_context(state)
    if ctx is None:
        return None
    return VariationInfo(index=ctx.index, count=len(ctx.siblings))


# ---------------- Move list view model -----------------
def _mover_and_number(state: SessionState, node: Node) -> tuple[bool, int]:
    """(white_moved, full-move number) for the move leading to node, read from the parent FEN."""
    parent = state.tree.nodes_by_id.get(node.parent_id) if node.parent_id else None
    if parent is not None:
        fields = parent.fen.split()
        if len(fields) >= 6 and fields[1] in ("w", "b") and fields[5].isdigit():
            return fields[1] == "w", int(fields[5])
    return node.ply % 2 == 1, (node.ply + 1) // 2


def format_move_label(san: str, white_moved: bool, move_number: int, is_line_start: bool) -> str:
    if white_moved:
        return f"{move_number}.{san}"
    return f"{move_number}...{san}" if is_line_start else san


def _node_to_token(state: SessionState, node_id: str, is_line_start: bool) -> Optional[MoveToken]:
    node = state.tree.nodes_by_id.get(node_id)
    if node is None or node.incoming_move is None:
        return None
    mainline_child = node.child_ids[0] if node.child_ids else None
    active = node.active_child_id
    white_moved, number = _mover_and_number(state, node)
    return MoveToken(
        node_id=node_id,
        ply=node.ply,
        move=node.incoming_move,
        variation_count=max(0, len(node.child_ids) - 1),
        active_child_is_mainline=True if not active or not mainline_child else active == mainline_child,
        label=format_move_label(node.incoming_move.san, white_moved, number, is_line_start),
    )


def _mainline_rows(state: SessionState) -> list[MoveListRow]:
    rows: list[dict] = []
    for idx, node_id in enumerate(get_mainline_node_ids(state)[1:]):
        token = _node_to_token(state, node_id, is_line_start=idx == 0)
        if token is None:
            break
        white_moved, number = _mover_and_number(state, state.tree.nodes_by_id[node_id])
        if white_moved:
            rows.append({"move_number": number, "white": token})
        elif rows and rows[-1]["move_number"] == number and "black" not in rows[-1]:
            rows[-1]["black"] = token
        else:
            rows.append({"move_number": number, "black": token})
    return [MoveListRow(**row) for row in rows]


def _variation_line(state: SessionState, start_id: str) -> VariationLine:
    """Tokens along start_id's own mainline (child_ids[0] chain)."""
    tokens: list[MoveToken] = []
    seen: set[str] = set()
    cursor: Optional[str] = start_id
    while cursor is not None and cursor not in seen:
        seen.add(cursor)
        token = _node_to_token(state, cursor, is_line_start=not tokens)
        if token is None:
            break
        tokens.append(token)
        node = state.tree.nodes_by_id[cursor]
        cursor = node.child_ids[0] if node.child_ids else None
    return VariationLine(start_node_id=start_id, tokens=tokens)


def _variation_lines_from_node(state: SessionState, node: Node) -> list[VariationLine]:
    if len(node.child_ids) <= 1:
        return []
    return [_variation_line(state, child_id) for child_id in node.child_ids[1:]]


def get_move_list_view_model(state: SessionState) -> MoveListViewModel:
    variations = {node_id: _variation_lines_from_node(state, node) for node_id, node in state.tree.nodes_by_id.items()}
    return MoveListViewModel(rows=_mainline_rows(state), variations_by_node_id=variations)


# ---------------- Material / captures -----------------
def get_captured_pieces(state: SessionState) -> CapturedPieces:
    """Captures along the cursor path, replayed from the root.

    by_side["white"]["q"] is the number of black queens White has taken.
    Not applicable for FEN sources (there is no history to replay).
    """
    if isinstance(state.source, FenSource):
        return CapturedPieces(availability="not_applicable")

    by_side = {"white": empty_piece_counts(), "black": empty_piece_counts()}
    nodes = state.tree.nodes_by_id
    root = nodes.get(state.tree.root_id)
    rules = RulesEngine.try_create(root.fen) if root is not None else None
    if rules is None:
        return CapturedPieces(availability="available", by_side=by_side)

    zeroed = CapturedPieces(availability="available", by_side={"white": empty_piece_counts(), "black": empty_piece_counts()})
    for node_id in get_path_node_ids(state)[1:]:
        move = nodes[node_id].incoming_move
        if move is None:
            return zeroed
        applied = rules.apply(move.from_square.lower(), move.to_square.lower(), move.promotion)
        if applied is None:
            return zeroed
        if applied.captured in PIECE_VALUES:
            by_side[applied.color][applied.captured] += 1
    return CapturedPieces(availability="available", by_side=by_side)


def get_material(state: SessionState) -> Material:
    """Material on the board at the cursor (kings ignored); promotion-safe by construction."""
    placement = get_current_fen(state).split(" ")[0].strip()
    by_side = {"white": empty_piece_counts(), "black": empty_piece_counts()}
    for ch in placement:
        piece = ch.lower()
        if piece not in PIECE_VALUES:
            continue
        by_side["white" if ch.isupper() else "black"][piece] += 1

    scores = {side: sum(PIECE_VALUES[p] * n for p, n in counts.items()) for side, counts in by_side.items()}
    signed = scores["white"] - scores["black"]
    leading = None if signed == 0 else "white" if signed > 0 else "black"
    return Material(by_side=by_side, score_by_side=scores, diff=abs(signed), leading_side=leading)


# ---------------- Hints -----------------
def get_destination_hints(state: SessionState, from_square: str) -> DestinationHints:
    """Legal destinations from from_square at the cursor, plus the capturing subset (en passant included)."""
    src = from_square.lower() if isinstance(from_square, str) else ""
    if not is_square(src):
        return DestinationHints(destinations=[], captures=[])
    rules = rules_at_cursor(state)
    if rules is None:
        return DestinationHints(destinations=[], captures=[])
    moves = rules.legal_moves(src)
    return DestinationHints(
        destinations=sorted({m.to_square for m in moves}),
        captures=sorted({m.to_square for m in moves if m.is_capture}),
    )


def get_legal_destinations(state: SessionState, from_square: str) -> list[str]:
    return get_destination_hints(state, from_square).destinations


def get_legal_capture_destinations(state: SessionState, from_square: str) -> list[str]:
    return get_destination_hints(state, from_square).captures


def get_game_snapshot(state: SessionState) -> Optional[GameSnapshot]:
    """A fresh deep copy so callers can't mutate the retained record."""
    return copy.deepcopy(state.game_snapshot) if state.game_snapshot is not None else None
