#!/usr/bin/env python3
"""
vision-relay CLI - Textual TUI for manual image analysis
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from vision_relay.config.loader import SettingsLoader


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vision-relay",
        description="Analyze images with a vision model through the pi CLI",
    )
    parser.add_argument("--workspace", type=str, help="Working directory (default: current directory)")
    parser.add_argument("--program", type=str, help="Analysis program (default: pi)")
    parser.add_argument("--model", type=str, help="Vision model id (default: glm-4.6v)")
    parser.add_argument("--provider", type=str, help="Provider id (default: zai)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, str]:
    overrides = {
        "program": args.program,
        "summary_model": args.model,
        "summary_provider": args.provider,
    }
    return {k: v for k, v in overrides.items() if v}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    workspace_root = Path(args.workspace).expanduser().resolve() if args.workspace else Path.cwd()
    if not workspace_root.is_dir():
        print(f"Workspace not found: {workspace_root}", file=sys.stderr)
        return 2

    try:
        settings = SettingsLoader(workspace_root).load(cli_overrides(args))
    except ValidationError as e:
        print(f"Invalid settings:\n{e}", file=sys.stderr)
        return 2

    from vision_relay.tui.app import VisionRelayApp

    VisionRelayApp(workspace_root=workspace_root, settings=settings).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
