"""
CLI script to launch the autosuggest HTTP server.

Usage:
    python scripts/run_app.py              # Host and port from config
    python scripts/run_app.py --port 8081  # Custom port
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pdf_autosuggest.app import main


if __name__ == "__main__":
    main()
