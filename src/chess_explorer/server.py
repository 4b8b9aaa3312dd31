"""
Minimal Flask API exposing explorer sessions over HTTP.

Endpoints:
- POST   /api/sessions                      -> create a session (optional fen / pgn to load right away; 409 for a taken session_id)
- GET    /api/sessions/<id>                 -> cursor view: position, nav flags, move list, material
- DELETE /api/sessions/<id>                 -> drop the session
- GET    /api/sessions/<id>/tree            -> full tree (root_id, nodes_by_id)
- POST   /api/sessions/<id>/reset           -> reset to the initial position
- POST   /api/sessions/<id>/load/fen        -> load a FEN position
- POST   /api/sessions/<id>/load/pgn        -> load a PGN document
- POST   /api/sessions/<id>/load/moves      -> load a SAN move list for a stored game
- POST   /api/sessions/<id>/load/snapshot   -> load a schema-v1 game snapshot
- POST   /api/sessions/<id>/move            -> apply a move attempt
- POST   /api/sessions/<id>/navigate        -> prev/next/start/end/ply/node/prev_variation/next_variation
- GET    /api/sessions/<id>/hints?from=e2   -> legal destination hints

Sessions live in memory only. Each session carries its own lock so one call
per session is in flight at a time; idle sessions expire after the TTL.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import asdict
from typing import Dict, Optional

from flask import Flask, jsonify, request

from .config import SETTINGS
from .errors import ApplyMoveResult, ErrorCode, ExplorerError, ExplorerResult
from .session import ExplorerSession

log = logging.getLogger(__name__)

app = Flask(__name__)
registry_lock = threading.Lock()
SESSIONS: Dict[str, dict] = {}

_STATUS_BY_CODE = {
    ErrorCode.RESET_REQUIRED: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}


def _cleanup_stale_sessions(max_age_s: float | None = None) -> None:
    ttl = SETTINGS.session_ttl_s if max_age_s is None else max_age_s
    now = time.time()
    with registry_lock:
        expired = [sid for sid, entry in SESSIONS.items() if now - entry.get("updated_at", now) > ttl]
        for sid in expired:
            SESSIONS.pop(sid, None)
    if expired:
        log.info("Dropped %d idle sessions", len(expired))


def _get_entry(session_id: str) -> Optional[dict]:
    with registry_lock:
        return SESSIONS.get(session_id)


def _error_response(error: ExplorerError):
    return jsonify({"ok": False, "error": error.to_dict()}), _STATUS_BY_CODE.get(error.code, 400)


def _not_found():
    return jsonify({"error": "not_found"}), 404


def _source_dict(session: ExplorerSession) -> dict:
    return asdict(session.source)


def session_view(session: ExplorerSession) -> dict:
    """Everything a board UI needs to render the cursor position."""
    node = session.get_current_node()
    info = session.get_variation_info()
    return {
        "mode": session.mode.value,
        "source": _source_dict(session),
        "current_node_id": node.id,
        "fen": node.fen,
        "normalized_fen": node.normalized_fen,
        "position_key": node.position_key,
        "ply": node.ply,
        "nav": {
            "can_go_prev": session.can_go_prev(),
            "can_go_next": session.can_go_next(),
            "can_go_prev_variation": session.can_go_prev_variation(),
            "can_go_next_variation": session.can_go_next_variation(),
        },
        "variation_info": asdict(info) if info else None,
        "path_node_ids": session.get_path_node_ids(),
        "move_list": session.get_move_list_view_model().to_dict(),
        "material": asdict(session.get_material()),
        "captured": asdict(session.get_captured_pieces()),
        "has_game_snapshot": session.get_game_snapshot() is not None,
    }


def _result_response(session: ExplorerSession, result: ExplorerResult | ApplyMoveResult, extra: dict | None = None):
    if not result.ok:
        return _error_response(result.error)
    payload = {"ok": True, **(extra or {}), "session": session_view(session)}
    return jsonify(payload)


def _with_session(session_id: str, fn):
    """Run fn(session) under the session lock; 404 for unknown ids."""
    _cleanup_stale_sessions()
    entry = _get_entry(session_id)
    if not entry:
        return _not_found()
    with entry["lock"]:
        entry["updated_at"] = time.time()
        return fn(entry["session"])


@app.route("/api/sessions", methods=["POST"])
def create_session():
    _cleanup_stale_sessions()
    data = request.get_json(silent=True) or {}
    session = ExplorerSession()
    if data.get("fen"):
        result = session.load_fen(data["fen"])
        if not result.ok:
            return _error_response(result.error)
    elif data.get("pgn"):
        result = session.load_pgn(data["pgn"], data.get("name"))
        if not result.ok:
            return _error_response(result.error)

    session_id = data.get("session_id") or f"explorer_{int(time.time())}_{uuid.uuid4().hex[:6]}"
    with registry_lock:
        if session_id in SESSIONS:
            return jsonify({"error": "session_exists", "session_id": session_id}), 409
        SESSIONS[session_id] = {
            "session": session,
            "lock": threading.Lock(),
            "created_at": time.time(),
            "updated_at": time.time(),
        }
    log.info("Created session %s", session_id)
    return jsonify({"session_id": session_id, "session": session_view(session)})


@app.route("/api/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str):
    return _with_session(session_id, lambda s: jsonify(session_view(s)))


@app.route("/api/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    with registry_lock:
        entry = SESSIONS.pop(session_id, None)
    if not entry:
        return _not_found()
    return jsonify({"status": "deleted", "session_id": session_id})


@app.route("/api/sessions/<session_id>/tree", methods=["GET"])
def get_tree(session_id: str):
    return _with_session(session_id, lambda s: jsonify({**s.tree.to_dict(), "current_node_id": s.current_node_id}))


@app.route("/api/sessions/<session_id>/reset", methods=["POST"])
def reset_session(session_id: str):
    def _reset(s: ExplorerSession):
        s.reset_to_initial()
        return jsonify({"ok": True, "session": session_view(s)})

    return _with_session(session_id, _reset)


@app.route("/api/sessions/<session_id>/load/fen", methods=["POST"])
def load_fen(session_id: str):
    data = request.get_json(silent=True) or {}
    return _with_session(session_id, lambda s: _result_response(s, s.load_fen(data.get("fen") or "")))


@app.route("/api/sessions/<session_id>/load/pgn", methods=["POST"])
def load_pgn(session_id: str):
    data = request.get_json(silent=True) or {}
    return _with_session(session_id, lambda s: _result_response(s, s.load_pgn(data.get("pgn") or "", data.get("name"))))


@app.route("/api/sessions/<session_id>/load/moves", methods=["POST"])
def load_moves(session_id: str):
    data = request.get_json(silent=True) or {}
    moves = data.get("moves")
    if not isinstance(moves, list):
        return jsonify({"error": "moves must be a list of SAN strings"}), 400
    return _with_session(
        session_id,
        lambda s: _result_response(s, s.load_moves_san(moves, data.get("gameId") or "", data.get("startFen"))),
    )


@app.route("/api/sessions/<session_id>/load/snapshot", methods=["POST"])
def load_snapshot(session_id: str):
    data = request.get_json(silent=True) or {}
    snapshot = data.get("snapshot", data)
    return _with_session(session_id, lambda s: _result_response(s, s.load_snapshot(snapshot)))


@app.route("/api/sessions/<session_id>/move", methods=["POST"])
def apply_move(session_id: str):
    data = request.get_json(silent=True) or {}
    if not data.get("from") or not data.get("to"):
        return jsonify({"error": "from and to are required"}), 400

    def _apply(s: ExplorerSession):
        result = s.apply_move(data["from"], data["to"], data.get("promotion"))
        return _result_response(s, result, {"node_id": result.node_id, "fen": result.fen, "san": result.san, "uci": result.uci})

    return _with_session(session_id, _apply)


_NAV_ACTIONS = {
    "prev": ExplorerSession.go_prev,
    "next": ExplorerSession.go_next,
    "start": ExplorerSession.go_start,
    "end": ExplorerSession.go_end,
    "prev_variation": ExplorerSession.go_prev_variation,
    "next_variation": ExplorerSession.go_next_variation,
}


@app.route("/api/sessions/<session_id>/navigate", methods=["POST"])
def navigate(session_id: str):
    data = request.get_json(silent=True) or {}
    action = str(data.get("action") or "").lower()
    if action not in _NAV_ACTIONS and action not in ("ply", "node"):
        return jsonify({"error": "unknown_action", "action": action}), 400
    if action == "ply" and not isinstance(data.get("ply"), int):
        return jsonify({"error": "ply must be an integer"}), 400

    def _navigate(s: ExplorerSession):
        if action == "ply":
            s.go_to_ply(data["ply"])
        elif action == "node":
            s.go_to_node(data.get("nodeId") or "")
        else:
            _NAV_ACTIONS[action](s)
        return jsonify({"ok": True, "session": session_view(s)})

    return _with_session(session_id, _navigate)


@app.route("/api/sessions/<session_id>/hints", methods=["GET"])
def hints(session_id: str):
    from_square = request.args.get("from", "")
    return _with_session(session_id, lambda s: jsonify({"from": from_square.lower(), **asdict(s.get_destination_hints(from_square))}))


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    # the board view must never be served stale
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return response


@app.route("/api/<path:path>", methods=["OPTIONS"])
def cors_preflight(path: str):
    return app.make_response(("", 204))
