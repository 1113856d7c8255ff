#!/usr/bin/env python3
"""
Unified entry point for all Yambo interfaces.

Usage:
    python yambo.py                         # Default: terminal (Textual)
    python yambo.py --ui tui --seed 42      # Reproducible dice
    python yambo.py --ui web --port 8080    # Browser (Flask + WebSocket)

Individual entry points (tui.py, web.py) still work independently.
"""
import argparse
import logging
import sys


def main():
    # Pre-parse the shared flags, pass everything else through
    parser = argparse.ArgumentParser(
        description="Yambo — play in the terminal or the browser",
        add_help=False,
    )
    parser.add_argument("--ui", choices=["tui", "web"], default="tui",
                        help="Interface: tui (default, terminal), web (browser)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    args, remaining = parser.parse_known_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.ui == "tui":
        from tui import main as run_tui
        run_tui(remaining)

    elif args.ui == "web":
        from web import main as run_web
        run_web(remaining)


if __name__ == "__main__":
    sys.exit(main())
