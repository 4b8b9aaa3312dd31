"""
Tree mutations: reset to a single root, rebuild from a SAN mainline, and
upsert a child for an applied move.

Node ids come from the state's IdFactory; whenever a tree is replaced the
factory is replaced with it, so ids never leak across tree generations.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ApplyMoveResult
from .identity import identify
from .model import IdFactory, Move, Node, Tree
from .rules import RulesEngine
from .state import SessionState, get_current_node

log = logging.getLogger(__name__)


def build_uci(from_square: str, to_square: str, promotion: Optional[str] = None) -> str:
    return f"{from_square}{to_square}{promotion or ''}"


def make_root(node_id: str, fen: str) -> Node:
    ident = identify(fen)
    return Node(id=node_id, ply=0, fen=fen, normalized_fen=ident.normalized_fen, position_key=ident.position_key)


def make_child(node_id: str, parent: Node, fen: str, move: Move) -> Node:
    ident = identify(fen)
    return Node(
        id=node_id,
        parent_id=parent.id,
        ply=parent.ply + 1,
        fen=fen,
        normalized_fen=ident.normalized_fen,
        position_key=ident.position_key,
        incoming_move=move,
    )


def reset_tree_to_root_fen(state: SessionState, root_fen: str) -> None:
    """Fresh id factory, single root at root_fen, cursor on the root."""
    state.id_factory = IdFactory()
    root = make_root(state.id_factory.next_node_id(), root_fen)
    state.tree = Tree(root_id=root.id, nodes_by_id={root.id: root})
    state.current_node_id = root.id


@dataclass
class RebuiltTree:
    tree: Optional[Tree] = None
    id_factory: Optional[IdFactory] = None
    last_node_id: Optional[str] = None
    illegal_san: Optional[str] = None  # set when replay stopped on a rejected move
    illegal_index: Optional[int] = None


def build_tree_from_san_moves(moves_san: list[str], start_fen: Optional[str] = None) -> RebuiltTree:
    """Replay moves_san from start_fen (standard start if None) into a brand-new linear tree.

    Nothing is written to any session here; callers commit the result or recover.
    Blank entries are skipped.
    """
    rules = RulesEngine(start_fen)
    ids = IdFactory()
    root = make_root(ids.next_node_id(), rules.fen())
    tree = Tree(root_id=root.id, nodes_by_id={root.id: root})

    parent = root
    for idx, raw in enumerate(moves_san):
        san = (raw or "").strip() if isinstance(raw, str) else ""
        if not san:
            continue
        applied = rules.apply_san(san)
        if applied is None:
            return RebuiltTree(illegal_san=san, illegal_index=idx)
        move = Move(
            uci=build_uci(applied.from_square, applied.to_square, applied.promotion),
            san=applied.san,
            from_square=applied.from_square,
            to_square=applied.to_square,
            promotion=applied.promotion,
        )
        child = make_child(ids.next_node_id(), parent, applied.fen, move)
        tree.nodes_by_id[child.id] = child
        parent.child_ids.append(child.id)
        parent.active_child_id = child.id
        parent = child

    return RebuiltTree(tree=tree, id_factory=ids, last_node_id=parent.id)


def upsert_child(
    state: SessionState,
    *,
    from_square: str,
    to_square: str,
    fen_after: str,
    uci: str,
    san: str,
    promotion: Optional[str] = None,
) -> ApplyMoveResult:
    """Reuse the cursor's child reached by uci, or append a new one; select it and move the cursor."""
    parent = get_current_node(state)

    for child_id in parent.child_ids:
        existing = state.tree.nodes_by_id.get(child_id)
        if existing is not None and existing.incoming_move is not None and existing.incoming_move.uci == uci:
            parent.active_child_id = child_id
            state.current_node_id = child_id
            log.debug("Reused node %s for %s", child_id, uci)
            return ApplyMoveResult(ok=True, node_id=child_id, fen=existing.fen, san=existing.incoming_move.san, uci=uci)

    move = Move(uci=uci, san=san, from_square=from_square, to_square=to_square, promotion=promotion)
    child = make_child(state.id_factory.next_node_id(), parent, fen_after, move)
    state.tree.nodes_by_id[child.id] = child
    parent.child_ids.append(child.id)  # first child ever appended stays the mainline
    parent.active_child_id = child.id
    state.current_node_id = child.id
    log.debug("Created node %s (%s) under %s", child.id, uci, parent.id)
    return ApplyMoveResult(ok=True, node_id=child.id, fen=fen_after, san=san, uci=uci)
