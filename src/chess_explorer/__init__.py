"""
Chess explorer package.

Components:
- session: ExplorerSession, the facade over one exploration tree and cursor
- loaders/moves/navigation/selectors: state transitions and read-only derivations
- tree/state/model/identity: arena tree, session aggregate, data types, position keys
- rules: python-chess backed legality oracle and PGN parsing
- pgn_text/snapshot: PGN tag helpers and schema-v1 game snapshots
- server: Flask HTTP surface over a registry of sessions
"""
from .errors import ErrorCode, ExplorerInvariantError
from .model import ExplorerMode
from .session import ExplorerSession

__all__ = ["ErrorCode", "ExplorerInvariantError", "ExplorerMode", "ExplorerSession"]
