"""
faims2mzml CV Discovery

Finds the distinct FAIMS compensation voltage (CV) values in an
instrument file by scanning the filter text of every scan.

Filter text looks like:
    FTMS + p NSI cv=-45.00 Full ms
    ITMS + c NSI cv=-65.00 r d Full ms2 438.7423@cid35.00
"""

import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .readers import ScanReader

logger = logging.getLogger(__name__)

CV_MATCHER = re.compile(r"cv=(?P<cv>[0-9.+-]+)")

# Preview mode stops scanning once every CV value has been seen this many times
PREVIEW_STOP_THRESHOLD = 50


@dataclass
class CvObservation:
    """Filter text match and running scan count for one CV value."""
    filter_text_match: str
    occurrence_count: int = 1


@dataclass
class ScanWarningLedger:
    """
    Scans of one input file that could not be assigned a CV value.

    Only the first 10 warnings are logged, then every 100th.
    """
    file_path: Path
    scan_numbers: List[int] = field(default_factory=list)

    initial_warnings: int = 10
    warning_interval: int = 100

    def add(self, scan_number: int, message: str) -> bool:
        """Record a scan warning. Returns True if the warning was logged."""
        self.scan_numbers.append(scan_number)
        count = len(self.scan_numbers)

        if count <= self.initial_warnings or count % self.warning_interval == 0:
            logger.warning(message)
            return True
        return False

    @property
    def count(self) -> int:
        return len(self.scan_numbers)


def extract_cv_value(filter_text: str) -> Tuple[Optional[float], str, Optional[str]]:
    """
    Extract the CV value from scan filter text.

    Returns:
        (cv_value, filter_text_match, problem). On success problem is None;
        otherwise cv_value is None and problem describes what went wrong.
    """
    if "cv=" not in filter_text.lower():
        return None, "", "missing"

    match = CV_MATCHER.search(filter_text)
    if not match:
        return None, "", "not_a_number"

    try:
        cv_value = float(match.group("cv"))
    except ValueError:
        return None, "", "unparseable"

    return cv_value, match.group(0), None


class CvDiscoverer:
    """
    Discovers the unique CV values in a scan range.

    In preview mode, scanning stops early once every known CV value has
    been observed more than 50 times, since instruments cycle through
    their CV list.
    """

    def __init__(self, preview: bool = False, warn_missing_scans: bool = False):
        self.preview = preview
        self.warn_missing_scans = warn_missing_scans
        self.scans_examined = 0

    def discover(
        self,
        reader: ScanReader,
        ledger: Optional[ScanWarningLedger] = None
    ) -> "OrderedDict[float, str]":
        """
        Scan the reader's full scan range for CV values.

        Returns:
            Mapping from CV value to the filter text that selects it,
            in the order the values were first seen. Empty if the file
            has no FAIMS scans.
        """
        if ledger is None:
            ledger = ScanWarningLedger(reader.file_path)

        observations: Dict[float, CvObservation] = OrderedDict()
        self.scans_examined = 0

        for scan_number in range(reader.scan_start, reader.scan_end + 1):
            self.scans_examined += 1

            cv_value, filter_text_match = self._get_cv_value(reader, scan_number, ledger)
            if cv_value is None:
                continue

            observation = observations.get(cv_value)
            if observation is None:
                observations[cv_value] = CvObservation(filter_text_match)
                continue

            observation.occurrence_count += 1

            if self.preview and observation.occurrence_count > PREVIEW_STOP_THRESHOLD:
                min_count = min(o.occurrence_count for o in observations.values())
                if min_count > PREVIEW_STOP_THRESHOLD:
                    logger.debug(
                        f"All {len(observations)} CV values seen more than "
                        f"{PREVIEW_STOP_THRESHOLD} times; ignoring scans after {scan_number}"
                    )
                    break

        if ledger.count:
            logger.info(f"{ledger.count} scans in {reader.file_path.name} were skipped (no CV value)")

        return OrderedDict(
            (cv_value, observation.filter_text_match)
            for cv_value, observation in observations.items()
        )

    def _get_cv_value(
        self,
        reader: ScanReader,
        scan_number: int,
        ledger: ScanWarningLedger
    ) -> Tuple[Optional[float], str]:
        filter_text = reader.get_filter_text(scan_number)

        if filter_text is None:
            if self.warn_missing_scans:
                ledger.add(scan_number, f"Scan {scan_number} not found; skipping")
            return None, ""

        cv_value, filter_text_match, problem = extract_cv_value(filter_text)

        if problem == "missing":
            ledger.add(scan_number, f"Scan {scan_number} does not contain cv=; skipping")
        elif problem == "not_a_number":
            ledger.add(
                scan_number,
                f"Scan {scan_number} has cv= in the filter text, "
                f"but it is not followed by a number: {filter_text}"
            )
        elif problem == "unparseable":
            match = CV_MATCHER.search(filter_text)
            ledger.add(
                scan_number,
                f"Unable to parse the CV value for scan {scan_number}: {match.group('cv')}"
            )

        return cv_value, filter_text_match
