"""
Utilities: logging setup and page label helpers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .models import Fingerprint

_LOG_FORMAT = "[%(levelname)s] %(message)s"


def configure_logging(verbose: bool = True, logfile: Optional[str] = None) -> None:
    """Console logging at INFO when verbose, WARNING otherwise (and an optional file)."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if logfile:
        handlers.append(logging.FileHandler(logfile, encoding="utf-8"))
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=_LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def page_label(pages: List[Fingerprint], index: Optional[int]) -> str:
    """Display name of a page: its path when known, '#<index>' otherwise."""
    if index is None:
        return "-"
    if 0 <= index < len(pages) and pages[index].path:
        return str(pages[index].path)
    return f"#{index}"


def short_label(label: str) -> str:
    """File name part of a label."""
    return Path(label).name
