"""
faims2mzml MSConvert

Locates ProteoWizard's msconvert and builds its command lines for
per-CV conversion and for rebuilding the mzML offset index.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

MSCONVERT_NAMES = ["msconvert", "msconvert.exe"]

OUTPUT_EXTENSION = ".mzML"

TYPICAL_INSTALL_DIRS = [
    Path(r"C:\Program Files\ProteoWizard"),
    Path(r"C:\DMS_Programs\ProteoWizard"),
    Path(r"C:\Program Files (x86)\ProteoWizard"),
    Path(r"C:\DMS_Programs\ProteoWizard_x86"),
    Path("/usr/local/bin"),
    Path.home() / ".wine" / "drive_c" / "Program Files" / "ProteoWizard",
]

# Options used for every call: 32-bit peaks, mzML output, zlib compression
BASE_ARGUMENTS = ["--32", "--mzML", "--zlib"]


@dataclass
class ScanWindow:
    """Optional scan number limits; 0 means unbounded."""
    start: int = 0
    end: int = 0

    @property
    def is_set(self) -> bool:
        return self.start > 0 or self.end > 0

    def to_filter(self) -> Optional[str]:
        """msconvert scanNumber filter for this window, or None if unbounded."""
        if self.start > 0 and self.end > 0:
            return f"scanNumber [{self.start},{self.end}]"
        if self.start > 0:
            return f"scanNumber [{self.start}-]"
        if self.end > 0:
            return f"scanNumber [1,{self.end}]"
        return None


def output_file_name(base_name: str, cv_value: float) -> str:
    """Name of the mzML file holding the scans for one CV value."""
    return f"{base_name}_{cv_value:.0f}{OUTPUT_EXTENSION}"


def renumbered_file_path(output_path: Path) -> Path:
    """Intermediate file written by scan renumbering."""
    return output_path.with_name(f"{output_path.stem}_renumbered{output_path.suffix}")


def find_msconvert(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the msconvert executable.

    Checks the explicit path, then PATH, then typical ProteoWizard
    install directories (including versioned sub-directories).
    """
    if explicit_path is not None:
        if explicit_path.is_dir():
            for name in MSCONVERT_NAMES:
                candidate = explicit_path / name
                if candidate.is_file():
                    return candidate
            return None
        return explicit_path if explicit_path.is_file() else None

    for name in MSCONVERT_NAMES:
        found = shutil.which(name)
        if found:
            return Path(found)

    for install_dir in TYPICAL_INSTALL_DIRS:
        try:
            if not install_dir.is_dir():
                continue
            search_dirs = [install_dir] + sorted(
                (d for d in install_dir.iterdir() if d.is_dir()), reverse=True
            )
        except OSError:
            continue

        for search_dir in search_dirs:
            for name in MSCONVERT_NAMES:
                candidate = search_dir / name
                if candidate.is_file():
                    return candidate

    return None


def describe_install_locations() -> List[str]:
    """Typical install locations, shown when msconvert cannot be found."""
    return [str(d) for d in TYPICAL_INSTALL_DIRS]


class MSConvert:
    """Command line builder for msconvert."""

    def __init__(self, executable: Path, launcher: Optional[List[str]] = None):
        self.executable = executable
        self.launcher = launcher or []

    @property
    def name(self) -> str:
        return self.executable.name

    def _command(self, arguments: List[str]) -> List[str]:
        return self.launcher + [str(self.executable)] + arguments

    def conversion_command(
        self,
        input_file: Path,
        output_file: Path,
        cv_filter_text: str,
        scan_window: Optional[ScanWindow] = None
    ) -> List[str]:
        """
        Command that writes only the scans whose filter contains cv_filter_text.

        When input and output share a directory, bare file names are
        used; the command must then run with the input directory as its
        working directory.
        """
        input_arg, output_arg = _relative_paths(input_file, output_file)

        arguments = list(BASE_ARGUMENTS)
        arguments += ["--filter", f"thermoScanFilter contains include {cv_filter_text}"]

        if scan_window is not None:
            scan_filter = scan_window.to_filter()
            if scan_filter:
                arguments += ["--filter", scan_filter]

        arguments += ["--outfile", output_arg, input_arg]
        return self._command(arguments)

    def reindex_command(self, renumbered_file: Path, output_file: Path) -> List[str]:
        """Command that rewrites renumbered_file as an indexed mzML at output_file."""
        input_arg, output_arg = _relative_paths(renumbered_file, output_file)
        arguments = list(BASE_ARGUMENTS) + ["--outfile", output_arg, input_arg]
        return self._command(arguments)


def _relative_paths(input_file: Path, output_file: Path):
    if os.path.normcase(str(input_file.parent.resolve())) == os.path.normcase(str(output_file.parent.resolve())):
        return input_file.name, output_file.name
    return str(input_file.resolve()), str(output_file.resolve())
