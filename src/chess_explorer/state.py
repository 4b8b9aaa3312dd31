"""
SessionState: the single mutable aggregate owned by one ExplorerSession.

Loaders, move application and navigation receive it by reference and mutate
it in place; selectors only read it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .errors import ExplorerInvariantError
from .model import ExplorerMode, FreeSource, IdFactory, Node, Source, Tree
from .rules import RulesEngine
from .snapshot import GameSnapshot


@dataclass
class SessionState:
    mode: ExplorerMode = ExplorerMode.FREE
    source: Source = field(default_factory=FreeSource)
    id_factory: IdFactory = field(default_factory=IdFactory)
    tree: Tree = field(default_factory=lambda: Tree(root_id="n0"))
    current_node_id: str = "n0"
    game_snapshot: Optional[GameSnapshot] = None


def get_node(state: SessionState, node_id: str) -> Node:
    node = state.tree.nodes_by_id.get(node_id)
    if node is None:
        raise ExplorerInvariantError(f"ExplorerSession invariant violated: missing node {node_id!r}.")
    return node


def get_current_node(state: SessionState) -> Node:
    return get_node(state, state.current_node_id)


def get_current_fen(state: SessionState) -> str:
    return get_current_node(state).fen


def rules_at_cursor(state: SessionState) -> RulesEngine | None:
    """Rules engine at the cursor FEN; None only if the stored FEN is unusable."""
    return RulesEngine.try_create(get_current_fen(state))
