"""
Rectify a picture from the command line.

Usage:
    python scripts/rectify.py photo.jpg out.png \
        --anchor 120 180 --anchor 450 165 --anchor 470 250 --anchor 100 270 \
        --ratio 4:3
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.perspector.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
