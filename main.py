#!/usr/bin/env python3
"""
EOD Closer - Main Entrypoint

USAGE:
    python main.py paper --config config/config.yaml
    python main.py live --config config/config.yaml --once
    python main.py simulate --config config/config.yaml --start 2026-03-06 --end 2026-03-10
"""

import sys

from eodcloser.cli import main


if __name__ == "__main__":
    sys.exit(main())
