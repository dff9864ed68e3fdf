"""
EV Route Planner - Main Entry Point
Run this file to plan an EV trip from the command line.
"""

import sys

from ev_route_planner.cli import main


if __name__ == "__main__":
    sys.exit(main())
