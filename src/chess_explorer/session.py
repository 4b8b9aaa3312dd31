"""
ExplorerSession: one exploration context (one tree, one cursor).

Owns a single SessionState and delegates to the loaders / moves /
navigation / selectors modules. All methods are synchronous and run to
completion; the class is not thread-safe, so callers sharing a session
across threads (see server.py) serialize calls themselves.

Returned Node / Tree objects are the live records, not copies: treat them as
read-only. The game snapshot accessor is the exception and returns a copy.
"""
from __future__ import annotations

import logging
from typing import Optional

from . import loaders, moves, navigation as nav, selectors as sel
from .errors import ApplyMoveResult, ExplorerResult
from .model import (
    CapturedPieces,
    DestinationHints,
    ExplorerMode,
    MainlineMove,
    Material,
    Move,
    MoveListViewModel,
    Node,
    Source,
    Tree,
    VariationInfo,
)
from .snapshot import GameSnapshot
from .state import SessionState, get_current_node


class ExplorerSession:
    def __init__(self) -> None:
        self.log = logging.getLogger("ExplorerSession")
        self.state = SessionState()
        self.reset_to_initial()

    # ---------------- Lifecycle / loaders -----------------
    def reset_to_initial(self) -> None:
        """Hard reset: FREE mode, start position, cursor at the root."""
        loaders.reset_to_initial(self.state)

    def load_initial(self) -> None:
        self.reset_to_initial()

    def load_fen(self, fen: str) -> ExplorerResult:
        return self._logged("load_fen", loaders.load_fen(self.state, fen))

    def load_pgn(self, pgn: str, name: Optional[str] = None) -> ExplorerResult:
        return self._logged("load_pgn", loaders.load_pgn(self.state, pgn, name))

    def load_moves_san(self, moves_san: list[str], game_id: str, start_fen: Optional[str] = None) -> ExplorerResult:
        return self._logged("load_moves_san", loaders.load_moves_san(self.state, moves_san, game_id, start_fen))

    def load_snapshot(self, snapshot: GameSnapshot) -> ExplorerResult:
        return self._logged("load_snapshot", loaders.load_snapshot(self.state, snapshot))

    def _logged(self, op: str, result: ExplorerResult) -> ExplorerResult:
        if not result.ok and result.error is not None:
            self.log.info("%s rejected: %s (%s)", op, result.error.code.value, result.error.message)
        return result

    # ---------------- Moves -----------------
    def apply_move(self, from_square: str, to_square: str, promotion: Optional[str] = None) -> ApplyMoveResult:
        result = moves.apply_move(self.state, from_square, to_square, promotion)
        if not result.ok and result.error is not None:
            self.log.debug("apply_move %s%s rejected: %s", from_square, to_square, result.error.code.value)
        return result

    # ---------------- Navigation -----------------
    def can_go_prev(self) -> bool:
        return nav.can_go_prev(self.state)

    def can_go_next(self) -> bool:
        return nav.can_go_next(self.state)

    def go_prev(self) -> None:
        nav.go_prev(self.state)

    def go_next(self) -> None:
        nav.go_next(self.state)

    def go_start(self) -> None:
        nav.go_start(self.state)

    def go_end(self) -> None:
        nav.go_end(self.state)

    def go_to_ply(self, ply: int) -> None:
        """Mainline only; use go_to_node for variations."""
        nav.go_to_ply(self.state, ply)

    def go_to_node(self, node_id: str) -> None:
        nav.go_to_node(self.state, node_id)

    def can_go_prev_variation(self) -> bool:
        return nav.can_go_prev_variation(self.state)

    def can_go_next_variation(self) -> bool:
        return nav.can_go_next_variation(self.state)

    def go_prev_variation(self) -> None:
        nav.go_prev_variation(self.state)

    def go_next_variation(self) -> None:
        nav.go_next_variation(self.state)

    # ---------------- Accessors / selectors -----------------
    @property
    def mode(self) -> ExplorerMode:
        return self.state.mode

    @property
    def source(self) -> Source:
        return self.state.source

    @property
    def tree(self) -> Tree:
        return self.state.tree

    @property
    def root_id(self) -> str:
        return self.state.tree.root_id

    @property
    def current_node_id(self) -> str:
        return self.state.current_node_id

    def get_current_node(self) -> Node:
        return get_current_node(self.state)

    def get_current_fen(self) -> str:
        return self.get_current_node().fen

    def get_current_normalized_fen(self) -> str:
        return self.get_current_node().normalized_fen

    def get_current_position_key(self) -> str:
        return self.get_current_node().position_key

    def get_current_ply(self) -> int:
        return self.get_current_node().ply

    def get_game_snapshot(self) -> Optional[GameSnapshot]:
        return sel.get_game_snapshot(self.state)

    def get_path_node_ids(self) -> list[str]:
        return sel.get_path_node_ids(self.state)

    def get_path_moves(self) -> list[Move]:
        return sel.get_path_moves(self.state)

    def get_active_line_node_ids(self) -> list[str]:
        return sel.get_active_line_node_ids(self.state)

    def get_active_line_moves(self) -> list[Move]:
        return sel.get_active_line_moves(self.state)

    def get_mainline_node_ids(self) -> list[str]:
        return sel.get_mainline_node_ids(self.state)

    def get_mainline_moves(self) -> list[MainlineMove]:
        return sel.get_mainline_moves_with_meta(self.state)

    def get_variation_info(self) -> Optional[VariationInfo]:
        return sel.get_variation_info(self.state)

    def get_move_list_view_model(self) -> MoveListViewModel:
        return sel.get_move_list_view_model(self.state)

    def get_captured_pieces(self) -> CapturedPieces:
        return sel.get_captured_pieces(self.state)

    def get_material(self) -> Material:
        return sel.get_material(self.state)

    def get_destination_hints(self, from_square: str) -> DestinationHints:
        return sel.get_destination_hints(self.state, from_square)

    def get_legal_destinations(self, from_square: str) -> list[str]:
        return sel.get_legal_destinations(self.state, from_square)

    def get_legal_capture_destinations(self, from_square: str) -> list[str]:
        return sel.get_legal_capture_destinations(self.state, from_square)
