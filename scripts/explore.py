#!/usr/bin/env python3
"""
Interactive terminal explorer.

Start from the initial position, a FEN, a PGN file or a snapshot JSON file,
then play moves (e2e4, e7e8q), walk the tree and cycle variations.
"""
import argparse
import json
import logging
import os
from typing import Optional

import chess

from chess_explorer.config import configure_logging
from chess_explorer.errors import ErrorCode
from chess_explorer.session import ExplorerSession

HELP = ("Commands: <from><to>[q|r|b|n] move | n next | p prev | s start | e end | ] next var | [ prev var "
        "| g <ply> goto | h <sq> hints | reset | q quit")


def clear_screen():
    if os.name == "nt":
        os.system("cls")
    else:
        os.system("clear")


def format_move_list(session: ExplorerSession, max_rows: int = 12) -> str:
    vm = session.get_move_list_view_model()
    cursor = session.current_node_id
    lines = []
    for row in vm.rows[-max_rows:]:
        cells = []
        for tok in (row.white, row.black):
            if tok is None:
                cells.append("...")
                continue
            mark = "*" if tok.node_id == cursor else ""
            extra = f" (+{tok.variation_count})" if tok.variation_count else ""
            cells.append(f"{mark}{tok.move.san}{extra}")
        lines.append(f"{row.move_number:>3}. " + "  ".join(cells))
    for node_id, lines_at in vm.variations_by_node_id.items():
        for line in lines_at:
            labels = " ".join(("*" if t.node_id == cursor else "") + t.label for t in line.tokens)
            lines.append(f"     ({node_id}) {labels}")
    return "\n".join(lines) or "(no moves)"


def render(session: ExplorerSession, message: Optional[str]):
    clear_screen()
    source = session.source
    print(f"Mode: {session.mode.value} | Source: {source.kind} | Ply {session.get_current_ply()}")
    print("-")
    print(chess.Board(session.get_current_fen()))
    print("-")
    print(format_move_list(session))
    material = session.get_material()
    lead = f"{material.leading_side} +{material.diff}" if material.leading_side else "even"
    print(f"Material: white {material.score_by_side['white']} / black {material.score_by_side['black']} ({lead})")
    info = session.get_variation_info()
    if info:
        print(f"Variation {info.index + 1}/{info.count}")
    if message:
        print(message)
    print(HELP)


def load_start(session: ExplorerSession, args) -> Optional[str]:
    if args.fen:
        result = session.load_fen(args.fen)
    elif args.pgn:
        with open(args.pgn, "r", encoding="utf-8") as f:
            result = session.load_pgn(f.read(), name=os.path.basename(args.pgn))
    elif args.snapshot:
        with open(args.snapshot, "r", encoding="utf-8") as f:
            result = session.load_snapshot(json.load(f))
    else:
        return None
    if not result.ok:
        return f"Load failed: {result.error.code.value} {result.error.message}"
    return None


def handle_move(session: ExplorerSession, text: str) -> str:
    result = session.apply_move(text[:2], text[2:4], text[4:] or None)
    if result.ok:
        return f"Played {result.san} ({result.uci})"
    err = result.error
    if err.code == ErrorCode.PROMOTION_REQUIRED:
        return f"Promotion required, add one of: {' '.join(err.details.get('options', []))}"
    return f"{err.code.value}: {err.message}"


def main():
    parser = argparse.ArgumentParser(description="Explore a chess game as a tree of positions.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--fen", default=None, help="Start from this FEN")
    group.add_argument("--pgn", default=None, help="Load a PGN file")
    group.add_argument("--snapshot", default=None, help="Load a schema-v1 game snapshot JSON file")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = parser.parse_args()

    configure_logging(args.log_level)
    log = logging.getLogger("explore")

    session = ExplorerSession()
    message = load_start(session, args)

    while True:
        render(session, message)
        message = None
        try:
            inp = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        cmd = inp.lower()
        if cmd == "q":
            break
        elif cmd in ("n", ""):
            session.go_next()
        elif cmd == "p":
            session.go_prev()
        elif cmd == "s":
            session.go_start()
        elif cmd == "e":
            session.go_end()
        elif cmd == "]":
            session.go_next_variation()
        elif cmd == "[":
            session.go_prev_variation()
        elif cmd == "reset":
            session.reset_to_initial()
        elif cmd.startswith("g "):
            try:
                session.go_to_ply(int(cmd.split()[1]))
            except (IndexError, ValueError):
                message = "Usage: g <ply>"
        elif cmd.startswith("h "):
            hints = session.get_destination_hints(cmd.split()[1])
            message = f"Destinations: {' '.join(hints.destinations) or '-'} | captures: {' '.join(hints.captures) or '-'}"
        elif 4 <= len(cmd) <= 5:
            message = handle_move(session, cmd)
        else:
            log.debug("Unknown command %r", inp)
            message = "Unknown command"


if __name__ == "__main__":
    main()
