"""
faims2mzml Scan Readers

Abstract interface for reading scan filter text from an instrument file,
plus the Thermo .raw implementation used by the command line tool.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ReaderError(Exception):
    """Exception raised when an instrument file cannot be opened or read."""
    pass


class ScanReader(ABC):
    """
    Abstract base class for scan metadata readers.

    Implementations expose the valid scan number range and the filter
    text of each scan. Readers are context managers so the underlying
    file handle is released once discovery completes.
    """

    def __init__(self, file_path: Path):
        self.file_path = file_path

    @property
    @abstractmethod
    def scan_start(self) -> int:
        """First valid scan number."""
        pass

    @property
    @abstractmethod
    def scan_end(self) -> int:
        """Last valid scan number (inclusive)."""
        pass

    @abstractmethod
    def get_filter_text(self, scan_number: int) -> Optional[str]:
        """
        Look up the filter text for a scan.

        Returns:
            The filter text, or None if the scan does not exist.
        """
        pass

    def close(self) -> None:
        """Release any resources held by the reader."""
        pass

    def __enter__(self) -> "ScanReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class ThermoRawScanReader(ScanReader):
    """
    Reads scan filters from Thermo .raw files via ms_deisotope.

    Requires the optional ``thermo`` extra (ms_deisotope and pythonnet)
    and the Thermo RawFileReader assemblies.
    """

    def __init__(self, file_path: Path):
        super().__init__(file_path)

        try:
            from ms_deisotope.data_source.thermo_raw_net import (
                ThermoRawLoader,
                determine_if_available,
            )
        except ImportError as e:
            raise ReaderError(
                "Reading .raw files requires ms_deisotope; "
                "install with: pip install faims2mzml[thermo]"
            ) from e

        if not determine_if_available():
            raise ReaderError("Thermo RawFileReader libraries could not be loaded")

        try:
            self._loader = ThermoRawLoader(str(file_path), _load_metadata=False)
        except Exception as e:
            raise ReaderError(f"Unable to open {file_path}: {e}") from e

        scan_numbers = list(self._loader.index.values())
        if not scan_numbers:
            self.close()
            raise ReaderError(f"No scans found in {file_path}")

        self._scan_start = scan_numbers[0]
        self._scan_end = scan_numbers[-1]
        logger.debug(f"Opened {file_path.name}: scans {self._scan_start} to {self._scan_end}")

    @property
    def scan_start(self) -> int:
        return self._scan_start

    @property
    def scan_end(self) -> int:
        return self._scan_end

    def get_filter_text(self, scan_number: int) -> Optional[str]:
        # ms_deisotope indexes Thermo scans from zero
        try:
            scan = self._loader.get_scan_by_index(scan_number - 1)
        except IndexError:
            return None

        filter_string = scan.annotations.get("filter string")
        if filter_string is None:
            return None
        return str(filter_string)

    def close(self) -> None:
        if self._loader is not None:
            self._loader.close()
            self._loader = None
