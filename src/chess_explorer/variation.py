"""Variation context at the cursor: the cursor's siblings under its parent, and sibling rotation."""
from __future__ import annotations

from typing import NamedTuple, Optional

from .model import Node
from .state import SessionState, get_current_node, get_node


class VariationContext(NamedTuple):
    parent: Node
    siblings: list[str]
    index: int


def variation_context(state: SessionState) -> Optional[VariationContext]:
    """None at the root or when the parent offers no alternative."""
    node = get_current_node(state)
    if node.parent_id is None:
        return None
    parent = get_node(state, node.parent_id)
    siblings = parent.child_ids
    if len(siblings) <= 1:
        return None

    # cursor index, else the parent's selection, else the mainline slot
    if state.current_node_id in siblings:
        index = siblings.index(state.current_node_id)
    elif parent.active_child_id in siblings:
        index = siblings.index(parent.active_child_id)
    else:
        index = 0
    return VariationContext(parent, list(siblings), index)


def shift_variation(state: SessionState, delta: int) -> None:
    """Select the sibling delta steps away (wrapping) for the parent and move the cursor there."""
    ctx = variation_context(state)
    if ctx is None:
        return
    next_id = ctx.siblings[(ctx.index + delta) % len(ctx.siblings)]
    ctx.parent.active_child_id = next_id
    state.current_node_id = next_id
