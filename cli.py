#!/usr/bin/env python
"""
agentdeck entry point.

Usage:
    python cli.py                    # Start interactive REPL
    python cli.py -p GEMINI          # Default agents to Gemini
    python cli.py -r SQLITE          # Persist sessions
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from agentdeck.app import main

if __name__ == "__main__":
    main()
