"""
Run the explorer HTTP API (see chess_explorer.server for the endpoint list).

Host/port/log level come from settings.yml or EXPLORER_* environment variables.
"""
from __future__ import annotations

from chess_explorer.config import SETTINGS, configure_logging
from chess_explorer.server import app

if __name__ == "__main__":
    configure_logging()
    app.run(host=SETTINGS.host, port=SETTINGS.port, debug=False)
