"""
faims2mzml Processor

Splits an instrument file with FAIMS scans into one mzML file per
compensation voltage (CV) value.

For each input file:
1. Discover the CV values from the scan filters
2. Run msconvert once per CV value, keeping only that CV's scans
3. Optionally renumber the scans and have msconvert rebuild the index
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .config import Config
from .discovery import CvDiscoverer, ScanWarningLedger
from .msconvert import (
    MSConvert,
    ScanWindow,
    describe_install_locations,
    find_msconvert,
    output_file_name,
    renumbered_file_path,
)
from .readers import ReaderError, ScanReader, ThermoRawScanReader
from .renumber import RenumberError, renumber_scans
from .supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


class ProcessorError(Exception):
    """Exception raised for problems that stop every conversion."""
    pass


@dataclass
class ConversionOutcome:
    """Result of converting one CV value."""
    cv_value: float
    output_path: Path
    success: bool


@dataclass
class FileResult:
    """Result of processing one input file."""
    input_path: Path
    outcomes: List[ConversionOutcome]
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.outcomes) and all(o.success for o in self.outcomes)

    @property
    def files_created(self) -> int:
        return sum(1 for o in self.outcomes if o.success)


ReaderFactory = Callable[[Path], ScanReader]


class FaimsProcessor:
    """
    Converts FAIMS instrument files into per-CV mzML files.

    Everything runs sequentially: one input file at a time, one CV value
    at a time, one msconvert process at a time.
    """

    def __init__(
        self,
        config: Config,
        reader_factory: ReaderFactory = ThermoRawScanReader,
        supervisor: Optional[ProcessSupervisor] = None
    ):
        self.config = config
        self.reader_factory = reader_factory

        self.msconvert = MSConvert(
            self._verify_msconvert(),
            launcher=config.launcher_command
        )
        self.supervisor = supervisor or ProcessSupervisor(self.msconvert.name)
        self.scan_window = ScanWindow(config.scan_start, config.scan_end)

    def _verify_msconvert(self) -> Path:
        """Locate msconvert, raising ProcessorError with guidance if missing."""
        msconvert_path = find_msconvert(self.config.msconvert_path)
        if msconvert_path is not None:
            logger.debug(f"Using msconvert at {msconvert_path}")
            return msconvert_path

        if self.config.msconvert_path is not None:
            raise ProcessorError(f"Could not find msconvert at {self.config.msconvert_path}")

        locations = "\n  ".join(describe_install_locations())
        raise ProcessorError(
            "Unable to find the installed location of ProteoWizard, which should have msconvert.\n"
            f"Typical locations for ProteoWizard:\n  {locations}"
        )

    # -------------------------------------------------------------------------
    # Input files
    # -------------------------------------------------------------------------

    def process_file(self, input_path: Path, output_dir: Optional[Path] = None) -> FileResult:
        """
        Convert one input file into one mzML file per CV value.

        Never raises; failures are logged and reported in the FileResult.
        """
        input_path = input_path.resolve()
        if output_dir is None:
            output_dir = self.config.output_dir or input_path.parent

        logger.info(f"Opening {input_path}")

        if not input_path.is_file():
            logger.error(f"Input file not found: {input_path}")
            return FileResult(input_path, [], error="Input file not found")

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Unable to create output directory {output_dir}: {e}")
            return FileResult(input_path, [], error=str(e))

        logger.info("Determining FAIMS CV values")
        ledger = ScanWarningLedger(input_path)
        discoverer = CvDiscoverer(preview=self.config.preview)

        try:
            with self.reader_factory(input_path) as reader:
                cv_values = discoverer.discover(reader, ledger)
        except ReaderError as e:
            logger.error(f"Unable to read {input_path.name}: {e}")
            return FileResult(input_path, [], error=str(e))
        except Exception as e:
            logger.error(f"Error determining CV values for {input_path.name}: {e}")
            return FileResult(input_path, [], error=str(e))

        if not cv_values:
            logger.warning("File does not have any FAIMS scans with cv= in the scan filter")
            return FileResult(input_path, [], error="No FAIMS scans")

        logger.info(f"Found {len(cv_values)} CV values: {', '.join(f'{cv:.2f}' for cv in cv_values)}")
        logger.info("Creating .mzML files")

        outcomes = []
        for values_processed, (cv_value, filter_text) in enumerate(cv_values.items()):
            percent_complete = values_processed / len(cv_values) * 100
            logger.info(f"{percent_complete:.0f}% complete: FAIMS compensation voltage {cv_value:.2f}")

            output_path = output_dir / output_file_name(input_path.stem, cv_value)
            success = self.convert_cv(input_path, output_path, filter_text)
            outcomes.append(ConversionOutcome(cv_value, output_path, success))

        result = FileResult(input_path, outcomes)
        action = "would create" if self.config.preview else "created"
        logger.info(f"100% complete: {action} {result.files_created} files in {output_dir}")

        return result

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def convert_cv(self, input_path: Path, output_path: Path, filter_text: str) -> bool:
        """Create output_path holding only the scans whose filter contains filter_text."""
        cmd = self.msconvert.conversion_command(
            input_path, output_path, filter_text, self.scan_window
        )

        if self.config.preview:
            logger.info(f"Preview of call to {self.msconvert.executable}")
            logger.info(" ".join(_quote(arg) for arg in cmd))
            if self.config.renumber_scans:
                self.renumber(output_path)
            return True

        logger.debug("Processing file with MSConvert")
        logger.debug(" ".join(_quote(arg) for arg in cmd))

        result = self.supervisor.run(cmd, input_path.parent, self.config.timeout_minutes)
        if not result.success:
            return False

        if not self.config.renumber_scans:
            return True

        return self.renumber(output_path)

    def renumber(self, output_path: Path) -> bool:
        """Renumber the scans in output_path, then rebuild its index with msconvert."""
        renumbered_path = renumbered_file_path(output_path)

        if self.config.preview:
            logger.info(f"Would renumber scans in {output_path.name} via {renumbered_path.name}")
            return True

        logger.info(f"Renumbering scans in {output_path.name}")
        try:
            state = renumber_scans(output_path, renumbered_path)
        except RenumberError as e:
            logger.error(f"Error renumbering {output_path.name}: {e}")
            return False
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Unable to renumber {output_path.name}: {e}")
            return False

        logger.debug(f"Renumbered {state.spectra_written} spectra")
        return self.reindex(renumbered_path, output_path)

    def reindex(self, renumbered_path: Path, output_path: Path) -> bool:
        """Have msconvert write renumbered_path back to output_path as indexed mzML."""
        cmd = self.msconvert.reindex_command(renumbered_path, output_path)
        logger.debug("Re-indexing renumbered file with MSConvert")
        logger.debug(" ".join(_quote(arg) for arg in cmd))

        result = self.supervisor.run(cmd, renumbered_path.parent, self.config.timeout_minutes)
        if not result.success:
            logger.error(f"Re-indexing failed; leaving {renumbered_path.name} for inspection")
            return False

        try:
            renumbered_path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete {renumbered_path}: {e}")

        return True


def _quote(arg: str) -> str:
    return f'"{arg}"' if " " in arg else arg
