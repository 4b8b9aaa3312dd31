"""
Error codes and result values returned by explorer operations.

Domain failures never raise: loaders and move application hand back an
ExplorerResult / ApplyMoveResult with ok=False and a typed ExplorerError.
The one exception is ExplorerInvariantError, raised when the cursor (or a
node id the session itself produced) is missing from the tree.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    PROMOTION_REQUIRED = "PROMOTION_REQUIRED"
    INVALID_FEN = "INVALID_FEN"
    INVALID_PGN = "INVALID_PGN"
    RESET_REQUIRED = "RESET_REQUIRED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ExplorerInvariantError(RuntimeError):
    """Session state is corrupted (e.g. the cursor points at a missing node)."""


@dataclass(frozen=True)
class ExplorerError:
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message, "details": dict(self.details)}


@dataclass(frozen=True)
class ExplorerResult:
    ok: bool
    error: ExplorerError | None = None


@dataclass(frozen=True)
class ApplyMoveResult:
    """Outcome of one move attempt. On success node_id is the (new or reused) cursor node."""

    ok: bool
    node_id: str | None = None
    fen: str | None = None
    san: str | None = None
    uci: str | None = None
    error: ExplorerError | None = None


def make_error(code: ErrorCode, message: str, **details: Any) -> ExplorerError:
    return ExplorerError(code=code, message=message, details=details)


def success() -> ExplorerResult:
    return ExplorerResult(ok=True)


def failure(code: ErrorCode, message: str, **details: Any) -> ExplorerResult:
    return ExplorerResult(ok=False, error=make_error(code, message, **details))


def move_failure(code: ErrorCode, message: str, **details: Any) -> ApplyMoveResult:
    return ApplyMoveResult(ok=False, error=make_error(code, message, **details))
