#!/usr/bin/env python3
"""
Telegram bot CLI entry point.

Usage:
    python3 -m incidentbot.cmd.telegram <workdir> start [--token TOKEN]
    python3 -m incidentbot.cmd.telegram <workdir> config --token TOKEN [--role NAME ...]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from incidentbot.core.config import config_path, load_config, save_config
from incidentbot.core.errors import IncidentBotError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="incidentbot", description="Incident Telegram Bot"
    )
    parser.add_argument("workdir", type=Path, help="bot working directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="Start the bot")
    start_parser.add_argument("--token", help="Telegram bot token")

    config_parser = subparsers.add_parser("config", help="Configure bot")
    config_parser.add_argument("--token", help="Telegram bot token")
    config_parser.add_argument(
        "--role",
        action="append",
        dest="roles",
        help="responder role (repeat for each; replaces the configured set)",
    )
    config_parser.add_argument("--nag-interval", type=float, help="seconds between nags")
    config_parser.add_argument(
        "--idle-threshold", type=float, help="seconds of silence before warning"
    )
    config_parser.add_argument(
        "--collab-link", help="collaboration link template containing {slug}"
    )
    return parser


def cmd_config(args: argparse.Namespace) -> None:
    cfg = load_config(args.workdir)
    if args.token:
        cfg.bot_token = args.token
    if args.roles:
        cfg.roles = args.roles
    if args.nag_interval is not None:
        cfg.nag_interval = args.nag_interval
    if args.idle_threshold is not None:
        cfg.idle_threshold = args.idle_threshold
    if args.collab_link:
        cfg.collab_link_template = args.collab_link
    cfg.validate()
    path = save_config(args.workdir, cfg)
    print(f"Bot config saved to {path}")


def cmd_start(args: argparse.Namespace) -> None:
    cfg = load_config(args.workdir, token=args.token)
    if not cfg.bot_token:
        raise IncidentBotError(
            f"no bot token: pass --token, set it in {config_path(args.workdir)} "
            "or export INCIDENTBOT_TOKEN"
        )

    from incidentbot.tg_bot.bot import IncidentBot

    bot = IncidentBot(cfg)
    try:
        asyncio.run(bot.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "config":
            cmd_config(args)
        elif args.command == "start":
            cmd_start(args)
    except IncidentBotError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
