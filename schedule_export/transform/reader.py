from pathlib import Path
from typing import Iterable, List

from loguru import logger

DELIMITER = ";"
QUOTE = '"'


class InputFileNotFoundError(Exception):
    """Raised when no schedule export matches the configured location."""

    pass


def find_input_file(
    directory: Path, pattern: str, exclude: Iterable[Path] = ()
) -> Path:
    """Returns the most recently modified file in ``directory`` matching ``pattern``.

    Files listed in ``exclude`` (the run's own outputs) are never picked.
    """
    excluded = {Path(p).resolve() for p in exclude}
    candidates = [
        p
        for p in Path(directory).glob(pattern)
        if p.is_file() and p.resolve() not in excluded
    ]
    if not candidates:
        raise InputFileNotFoundError(
            f"No file matching '{pattern}' found in {Path(directory).resolve()}"
        )
    if len(candidates) > 1:
        logger.info(
            f"{len(candidates)} files match '{pattern}', using the most recent one."
        )
    return max(candidates, key=lambda p: p.stat().st_mtime)


def read_schedule_lines(path: Path) -> List[str]:
    """Reads the whole export; undecodable bytes become U+FFFD."""
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        lines = f.read().splitlines()
    logger.info(f"Read {len(lines)} lines from {path}")
    return lines


def split_line(line: str) -> List[str]:
    return [field.strip().strip(QUOTE) for field in line.split(DELIMITER)]
