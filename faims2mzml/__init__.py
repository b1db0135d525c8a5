"""
faims2mzml Package

Splits Thermo .raw files with FAIMS scans into one mzML file per
compensation voltage value.
"""

from .discovery import CvDiscoverer, ScanWarningLedger
from .processor import ConversionOutcome, FaimsProcessor, FileResult, ProcessorError
from .readers import ReaderError, ScanReader, ThermoRawScanReader
from .renumber import RenumberError, renumber_scans
from .supervisor import ProcessResult, ProcessState, ProcessSupervisor

__all__ = [
    "ConversionOutcome",
    "CvDiscoverer",
    "FaimsProcessor",
    "FileResult",
    "ProcessResult",
    "ProcessState",
    "ProcessSupervisor",
    "ProcessorError",
    "ReaderError",
    "RenumberError",
    "ScanReader",
    "ScanWarningLedger",
    "ThermoRawScanReader",
    "renumber_scans",
]
