"""
RidersBUD booking console entry point.

Usage:
    python main.py services
    python main.py mechanics --service "Change Oil" --date 2024-06-03
    python main.py book --customer juan@email.com --service 1 --mechanic m1 \\
        --date 2024-06-03 --time "09:00 AM"
"""

import sys

from ridersbud.cli import main

if __name__ == "__main__":
    sys.exit(main())
