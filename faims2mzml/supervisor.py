"""
faims2mzml Process Supervisor

Runs an external command, echoing its output to the console, and polls
it until it exits or a timeout elapses. Commands that exceed the timeout
are killed.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class ProcessState(Enum):
    """Lifecycle state of a supervised process."""
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED_TO_START = "failed_to_start"


@dataclass
class ProcessResult:
    """Final state of a supervised process."""
    state: ProcessState
    exit_code: Optional[int] = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.state == ProcessState.COMPLETED and self.exit_code == 0


class ProcessSupervisor:
    """
    Launches external programs and waits for them to finish.

    The child's stdout and stderr are inherited, so its progress output
    goes straight to the console and is never held in memory.
    """

    def __init__(self, name: str, poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS):
        self.name = name
        self.poll_interval = poll_interval

    def run(
        self,
        cmd: List[str],
        work_dir: Optional[Path] = None,
        timeout_minutes: float = 0
    ) -> ProcessResult:
        """
        Run a command and wait for it.

        Args:
            cmd: Program and arguments
            work_dir: Working directory for the child process
            timeout_minutes: Maximum runtime; 0 or less waits forever

        Returns:
            ProcessResult; check .success
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        start_time = time.monotonic()

        try:
            process = subprocess.Popen(cmd, cwd=str(work_dir) if work_dir else None)
        except OSError as e:
            logger.error(f"Unable to start {self.name}: {e}")
            return ProcessResult(ProcessState.FAILED_TO_START)

        state = ProcessState.RUNNING
        try:
            while state == ProcessState.RUNNING:
                time.sleep(self.poll_interval)

                if process.poll() is not None:
                    state = ProcessState.COMPLETED
                elif timeout_minutes > 0 and time.monotonic() - start_time >= timeout_minutes * 60:
                    state = ProcessState.TIMED_OUT
        except BaseException:
            # Interrupted while waiting; never leave the child writing output
            logger.warning(f"Stopping {self.name} (pid {process.pid})")
            process.kill()
            process.wait()
            raise

        elapsed = time.monotonic() - start_time

        if state == ProcessState.TIMED_OUT:
            logger.error(
                f"{self.name} runtime surpassed {timeout_minutes:g} minutes; aborting. "
                f"Use --timeout to allow {self.name} to run longer, e.g. --timeout 10"
            )
            process.kill()
            process.wait()
            return ProcessResult(ProcessState.TIMED_OUT, elapsed_seconds=elapsed)

        exit_code = process.returncode
        if exit_code != 0:
            logger.warning(f"{self.name} reported a non-zero return code: {exit_code}")

        return ProcessResult(ProcessState.COMPLETED, exit_code=exit_code, elapsed_seconds=elapsed)
