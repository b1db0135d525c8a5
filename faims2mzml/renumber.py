"""
faims2mzml Scan Renumbering

Rewrites the spectrum index and scan number of every spectrum in an
msconvert mzML file so they run contiguously (index from 0, scan from 1).

The file is streamed line by line. The indexedmzML wrapper is dropped
along with the offset index that follows </mzML>, since the offsets are
no longer valid; msconvert regenerates them afterwards.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

WRAPPER_OPEN_TAG = "<indexedmzML"
CONTENT_CLOSE_TAG = "</mzML>"

SPECTRUM_MATCHER = re.compile(
    r'^(?P<prefix>\s*<spectrum index=")(?P<index>\d+)'
    r'(?P<middle>" id="controllerType=\d+ controllerNumber=\d+ scan=)(?P<scan>\d+)'
    r'(?P<suffix>.*)$'
)


class RenumberError(Exception):
    """Exception raised when a spectrum element has an unexpected layout."""
    pass


@dataclass
class RenumberState:
    """Streaming state while renumbering one file."""
    spectra_written: int = 0
    wrapper_skipped: bool = False
    content_closed: bool = False

    @property
    def next_index(self) -> int:
        return self.spectra_written

    @property
    def next_scan_number(self) -> int:
        return self.spectra_written + 1


def renumber_line(line: str, state: RenumberState) -> str:
    """
    Renumber a single spectrum start tag, updating state.

    Lines that are not spectrum start tags are returned unchanged.

    Raises:
        RenumberError: If the line opens a spectrum element but does not
            have the expected index/id attributes.
    """
    match = SPECTRUM_MATCHER.match(line)
    if match is None:
        if line.strip().startswith("<spectrum "):
            raise RenumberError(f"Spectrum line not in the expected format: {line.strip()}")
        return line

    renumbered = (
        f"{match.group('prefix')}{state.next_index}"
        f"{match.group('middle')}{state.next_scan_number}"
        f"{match.group('suffix')}"
    )
    state.spectra_written += 1
    return renumbered


def renumber_scans(source_path: Path, target_path: Path) -> RenumberState:
    """
    Write a renumbered copy of source_path to target_path.

    On any error the partially written target is removed and the
    exception is re-raised.

    Returns:
        The final RenumberState (spectra_written is the spectrum count).
    """
    state = RenumberState()

    try:
        with open(source_path, "r", encoding="utf-8", newline="") as reader, \
                open(target_path, "w", encoding="utf-8", newline="\n") as writer:
            for raw_line in reader:
                line = raw_line.rstrip("\r\n")
                trimmed = line.strip()

                if not state.wrapper_skipped and trimmed.startswith(WRAPPER_OPEN_TAG):
                    state.wrapper_skipped = True
                    continue

                writer.write(renumber_line(line, state) + "\n")

                if trimmed == CONTENT_CLOSE_TAG:
                    # Everything after </mzML> is the stale offset index
                    state.content_closed = True
                    break
    except (RenumberError, OSError, UnicodeDecodeError):
        if target_path.exists():
            target_path.unlink()
        raise

    logger.debug(f"Renumbered {state.spectra_written} spectra in {source_path.name}")
    return state
