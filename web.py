#!/usr/bin/env python3
"""
Yambo Web — Flask + WebSocket server for browser-based play.

Each WebSocket connection gets its own TurnController. Every client action
is answered with a full JSON snapshot of the game.
"""
import json
import logging

logger = logging.getLogger(__name__)

from flask import Flask, jsonify, request
from flask_sock import Sock

from game_engine import Column, Row
from turn_controller import TurnController
from frontend_adapter import FrontendAdapter, NullSound

app = Flask(__name__)
sock = Sock(app)


def _seed_from_args(args):
    """Optional integer seed from the query string, None when absent or malformed."""
    raw = args.get("seed")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer seed: %s", raw)
        return None


def _make_adapter(seed=None):
    adapter = FrontendAdapter(TurnController(seed=seed), sound=NullSound())
    adapter.load_settings()
    return adapter


@app.route("/")
def index():
    """Describe the available endpoints."""
    return jsonify({
        "game": "Yambo",
        "state": "/state",
        "websocket": "/ws",
    })


@app.route("/state")
def state():
    """Snapshot of a fresh game, for clients to lay out the sheet before connecting."""
    return jsonify(_make_adapter(_seed_from_args(request.args)).get_game_snapshot())


@sock.route("/ws")
def websocket(ws):
    """WebSocket handler — one game per connection."""
    adapter = _make_adapter(_seed_from_args(request.args))
    ws.send(json.dumps(adapter.get_game_snapshot()))

    try:
        while True:
            data = ws.receive()
            if data is None:
                break
            try:
                action = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON from client: %s", data)
                continue
            if not isinstance(action, dict):
                logger.warning("Ignoring non-object action: %s", data)
                continue

            _handle_action(adapter, action)
            ws.send(json.dumps(adapter.get_game_snapshot()))
    except Exception:
        logger.error("WebSocket receive error", exc_info=True)


def _handle_action(adapter, action):
    """Dispatch a client action to the adapter."""
    cmd = action.get("action", "")

    if cmd == "roll":
        adapter.do_roll()

    elif cmd == "hold":
        idx = action.get("die_index")
        if isinstance(idx, int) and not isinstance(idx, bool) and 0 <= idx < 5:
            adapter.do_hold(idx, match_value=bool(action.get("match_value", False)))

    elif cmd == "save":
        column = _column_by_id(action.get("column", ""))
        row = _row_by_id(action.get("row", ""))
        if column is not None and row is not None:
            adapter.try_save(column, row)

    elif cmd == "scratch_column":
        column = _column_by_id(action.get("column", ""))
        if column is not None:
            adapter.do_scratch_column(column)

    elif cmd == "confirm_zero_yes":
        adapter.confirm_zero_yes()

    elif cmd == "confirm_zero_no":
        adapter.confirm_zero_no()

    elif cmd == "navigate_cell":
        direction = action.get("direction", 1)
        if direction in (1, -1):
            adapter.navigate_cell(direction)

    elif cmd == "save_selected":
        adapter.save_selected()

    elif cmd == "reset":
        adapter.do_reset()

    elif cmd == "toggle_help":
        adapter.toggle_help()

    elif cmd == "toggle_dark_mode":
        adapter.toggle_dark_mode()

    elif cmd == "toggle_sound":
        adapter.toggle_sound()

    elif cmd == "set_player_name":
        adapter.set_player_name(str(action.get("name", "")))

    elif cmd == "set_juggle_time":
        if not adapter.set_juggle_time(action.get("ms")):
            logger.debug("Ignoring unknown roll speed: %s", action.get("ms"))

    else:
        logger.debug("Unknown action: %s", cmd)


def _column_by_id(column_id):
    """Look up a Column by its id, None if unknown."""
    for column in Column:
        if column.value == column_id:
            return column
    return None


def _row_by_id(row_id):
    """Look up a Row by its id, None if unknown."""
    for row in Row:
        if row.value == row_id:
            return row
    return None


def main(argv=None):
    """Entry point for the web server."""
    import argparse
    parser = argparse.ArgumentParser(description="Yambo Web Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args(argv)

    logger.info("Starting Yambo web server at http://%s:%s", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
