"""
faims2mzml Configuration Module

Settings come from environment variables with sensible defaults;
command line options override them (see main.py).
"""

import logging
import os
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_LOG_FILE = "faims2mzml_log.txt"


@dataclass
class Config:
    """Application configuration."""

    # Input / output
    input_path: str = ""
    output_dir: Optional[Path] = None

    # Recursion and wildcard handling
    recurse: bool = False
    max_levels: int = 1              # 0 to recurse infinitely; 1 for the current directory only
    ignore_errors: bool = False

    # msconvert
    msconvert_path: Optional[Path] = None
    msconvert_launcher: Optional[str] = None  # e.g. "wine" on Linux
    timeout_minutes: float = 5

    # Processing options
    preview: bool = False
    renumber_scans: bool = False
    scan_start: int = 0              # 0 means no lower bound
    scan_end: int = 0                # 0 means no upper bound

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Notifications
    webhook_url: Optional[str] = None

    @property
    def launcher_command(self) -> List[str]:
        """Launcher prefix split into arguments."""
        if not self.msconvert_launcher:
            return []
        return shlex.split(self.msconvert_launcher)


def _parse_bool(value: str) -> bool:
    """Parse boolean from environment variable string."""
    return value.lower() in ("true", "1", "yes", "on")


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


def load_config() -> Config:
    """Load configuration defaults from environment variables."""
    return Config(
        # msconvert
        msconvert_path=_optional_path(os.getenv("MSCONVERT_PATH")),
        msconvert_launcher=os.getenv("MSCONVERT_LAUNCHER") or None,
        timeout_minutes=float(os.getenv("MSCONVERT_TIMEOUT_MINUTES", "5")),

        # Processing
        renumber_scans=_parse_bool(os.getenv("RENUMBER_SCANS", "false")),

        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE") or None,

        # Notifications
        webhook_url=os.getenv("WEBHOOK_URL") or None,
    )


def validate_config(config: Config) -> bool:
    """
    Validate configuration.
    Returns True if valid; otherwise prints every problem to stderr and returns False.
    """
    errors = []

    if not config.input_path or not config.input_path.strip():
        errors.append(f'Input path must be provided and non-empty; "{config.input_path}" was provided')

    if config.scan_start < 0:
        errors.append(f"Scan start cannot be negative: {config.scan_start}")

    if config.scan_end < 0:
        errors.append(f"Scan end cannot be negative: {config.scan_end}")

    if config.scan_start > 0 and config.scan_end > 0 and config.scan_end < config.scan_start:
        errors.append(f"Scan end ({config.scan_end}) is less than scan start ({config.scan_start})")

    if config.max_levels < 0:
        errors.append(f"Recursion levels cannot be negative: {config.max_levels}")

    if not isinstance(logging.getLevelName(config.log_level), int):
        errors.append(f"Unknown log level: {config.log_level}")

    if config.output_dir is not None and config.output_dir.exists() and not config.output_dir.is_dir():
        errors.append(f"Output path is not a directory: {config.output_dir}")

    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return False

    return True
