"""
EOD Closer - command line entrypoint.

USAGE:
    eod-closer paper --config config/config.yaml
    eod-closer live --config config/config.yaml
    eod-closer simulate --config config/config.yaml --start 2026-03-06 --end 2026-03-10
"""

from __future__ import annotations

import sys
import argparse
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from eodcloser.runtime import RunOptions, run_app


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eod-closer",
        description="EOD Closer - closes every position and pending order at a fixed local time each day",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='mode', help='Run mode')
    subparsers.required = True

    for mode, help_text in (
        ('paper', 'Run against the paper trading account'),
        ('live', 'Run against the LIVE trading account'),
    ):
        p = subparsers.add_parser(mode, help=help_text)
        p.add_argument(
            '--config',
            type=str,
            default='config/config.yaml',
            help='Path to config file (default: config/config.yaml)'
        )
        p.add_argument(
            '--once',
            action='store_true',
            help='Run a single tick and exit'
        )

    sim_parser = subparsers.add_parser('simulate', help='Replay days on a simulated clock and account')
    sim_parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Path to config file'
    )
    sim_parser.add_argument(
        '--start',
        type=_parse_date,
        required=True,
        help='First local day (YYYY-MM-DD)'
    )
    sim_parser.add_argument(
        '--end',
        type=_parse_date,
        required=True,
        help='Last local day (YYYY-MM-DD)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"ERROR: Config file not found: {config_path}")
        print("Create config file or specify --config path")
        return 1

    if args.mode == 'simulate':
        if args.end < args.start:
            print(f"ERROR: --end ({args.end}) is before --start ({args.start})")
            return 1
        opts = RunOptions(
            config_path=config_path,
            mode=args.mode,
            start=args.start,
            end=args.end,
        )
        print(f"Simulating {args.start} .. {args.end}")
    else:
        opts = RunOptions(
            config_path=config_path,
            mode=args.mode,
            run_once=args.once,
        )
        print(f"Starting EOD Closer in {args.mode.upper()} mode...")
        print("Press Ctrl+C to stop")

    print(f"Config: {config_path}")
    print("-" * 60)

    return run_app(opts)


if __name__ == "__main__":
    sys.exit(main())
