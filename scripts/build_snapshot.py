#!/usr/bin/env python3
"""Convert a PGN file (first game) into a schema-v1 game snapshot JSON document."""
import argparse
import json
import logging
import sys

from chess_explorer.config import configure_logging
from chess_explorer.snapshot import build_snapshot_from_pgn


def main() -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("pgn", help="Path to the PGN file")
    ap.add_argument("--game-id", required=True, help="Identifier stored as gameId")
    ap.add_argument("--my-color", choices=["white", "black"], default=None, help="Owner perspective, if any")
    ap.add_argument("--out", default=None, help="Output path (stdout if omitted)")
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    configure_logging(args.log_level)
    log = logging.getLogger("build_snapshot")

    with open(args.pgn, "r", encoding="utf-8") as f:
        text = f.read()
    snapshot, error = build_snapshot_from_pgn(args.game_id, text, my_color=args.my_color, import_meta={"source": args.pgn})
    if error is not None:
        log.error("%s: %s %s", error.code.value, error.message, error.details)
        return 1

    payload = json.dumps(snapshot, indent=2)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        log.info("Wrote %s (%d plies)", args.out, len(snapshot["movesSan"]))
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
