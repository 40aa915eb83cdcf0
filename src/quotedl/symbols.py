"""Symbol list files."""

from __future__ import annotations

import glob
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def load_symbols(path: str | Path) -> list[str]:
    """Read one symbol per line, lowercased, skipping blank lines.

    Raises:
        FileNotFoundError: ``path`` does not exist.
    """
    text = Path(path).read_text(encoding="utf-8")
    symbols = [line.strip() for line in text.lower().splitlines()]
    return [s for s in symbols if s]


def load_symbol_files(pattern: str) -> list[str]:
    """Load symbols from ``pattern``, which may be a glob.

    Glob matches are read in sorted order and concatenated.

    Raises:
        FileNotFoundError: Nothing matches the pattern.
    """
    if "*" not in pattern and "?" not in pattern:
        return load_symbols(pattern)

    paths = sorted(glob.glob(pattern))
    if not paths:
        raise FileNotFoundError(f"no symbol files match {pattern}")
    symbols: list[str] = []
    for path in paths:
        loaded = load_symbols(path)
        logger.debug("loaded %d symbols from %s", len(loaded), path)
        symbols.extend(loaded)
    return symbols
