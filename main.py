"""
Daily Affirmations — Entry Point.

Single entry point: `python main.py run` starts delivering reminders;
see `python main.py --help` for the other commands.
"""

import sys

from daily_affirmations.cli import main

if __name__ == "__main__":
    sys.exit(main())
