"""Make ``blocker_app`` importable from a plain checkout.

Without an editable install the project root is not on ``sys.path`` when
pytest collects from ``tests/``.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
