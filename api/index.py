"""Serverless entry for the dashboard API.

The platform imports ``handler`` from this file, so ``src/`` and the
repository root are put on ``sys.path`` before the app is imported.
"""

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
for path in (str(ROOT), str(ROOT / "src")):
    if path not in sys.path:
        sys.path.insert(0, path)

from config.settings import settings  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from commercial_intel.action.api import app  # noqa: E402

handler = app
