# dailywall/__main__.py
"""
Entry point for running DailyWall as a module using 'python -m dailywall'.
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
