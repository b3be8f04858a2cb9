#!/usr/bin/env python3
"""Entry point to run the Dice easy-apply bot."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from dice_apply.config import CV_DIR, get_cv_path
from dice_apply.log import get_logger

log = get_logger(__name__)


def _check_setup() -> None:
    """Warn when no CV is available; the run still works on title keywords."""
    if get_cv_path() is None:
        log.warning("No CV found. Put a PDF/DOCX/TXT in %s or set CV_PATH for LLM matching.", CV_DIR)


if __name__ == "__main__":
    _check_setup()

    from dice_apply.runner import main

    sys.exit(main())
