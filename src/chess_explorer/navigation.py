"""
Cursor navigation.

Two traversals coexist:
- mainline: root -> child_ids[0] -> ... (fixed once established)
- active line: root -> active_child_id -> ... (changes with moves / variation selection)

Linear moves (prev/next/start/end/ply) only touch the cursor. Variation
cycling also sets the parent's active_child_id.
"""
from __future__ import annotations

from typing import Optional

from .selectors import get_mainline_node_ids
from .state import SessionState, get_current_node
from .variation import shift_variation, variation_context


def _next_node_id(state: SessionState) -> Optional[str]:
    node = get_current_node(state)
    if state.current_node_id in get_mainline_node_ids(state):
        return node.child_ids[0] if node.child_ids else None
    return node.active_child_id or (node.child_ids[0] if node.child_ids else None)


def can_go_prev(state: SessionState) -> bool:
    return state.current_node_id != state.tree.root_id


def can_go_next(state: SessionState) -> bool:
    return _next_node_id(state) is not None


def go_prev(state: SessionState) -> None:
    node = get_current_node(state)
    if node.parent_id is None:
        return
    state.current_node_id = node.parent_id


def go_next(state: SessionState) -> None:
    next_id = _next_node_id(state)
    if next_id is not None:
        state.current_node_id = next_id


def go_start(state: SessionState) -> None:
    state.current_node_id = state.tree.root_id


def go_end(state: SessionState) -> None:
    line = get_mainline_node_ids(state)
    state.current_node_id = line[-1] if line else state.tree.root_id


def go_to_ply(state: SessionState, ply: int) -> None:
    """Mainline-only jump; ply is clamped to the mainline. Use go_to_node for variations."""
    try:
        safe = max(0, int(ply))
    except (TypeError, ValueError, OverflowError):
        safe = 0
    line = get_mainline_node_ids(state)
    state.current_node_id = line[min(safe, len(line) - 1)] if line else state.tree.root_id


def go_to_node(state: SessionState, node_id: str) -> None:
    if isinstance(node_id, str) and node_id in state.tree.nodes_by_id:
        state.current_node_id = node_id


# ---------------- Variations -----------------
def can_go_prev_variation(state: SessionState) -> bool:
    return variation_context(state) is not None


def can_go_next_variation(state: SessionState) -> bool:
    return variation_context(state) is not None


def go_prev_variation(state: SessionState) -> None:
    shift_variation(state, -1)


def go_next_variation(state: SessionState) -> None:
    shift_variation(state, 1)
