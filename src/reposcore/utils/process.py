"""Subprocess contract for external analysis tools.

Every external tool (linters, auditors, git) runs through ``run_tool``. A tool
failing to start, timing out or being cancelled is reported in the returned
``ProcessResult`` instead of raised: callers branch on the captured output,
not on the exit status alone, because most auditors exit non-zero exactly
when they have findings to report.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class OperationCancelled(Exception):
    """Raised when work is skipped because its job was cancelled."""


@dataclass
class ProcessResult:
    """Outcome of one external tool invocation.

    Attributes:
        args: Command line that was executed
        exit_code: Process exit code (None if the process never ran)
        stdout: Captured standard output
        stderr: Captured standard error
        timed_out: Process exceeded its timeout and was killed
        not_found: Executable missing or not invokable
        cancelled: Process was terminated by job cancellation
    """

    args: list[str]
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    not_found: bool = False
    cancelled: bool = False

    @property
    def ran(self) -> bool:
        """True if the tool ran to completion (any exit code)."""
        return not (self.not_found or self.timed_out or self.cancelled)

    @property
    def has_output(self) -> bool:
        """True if the tool wrote anything to stdout."""
        return bool(self.stdout.strip())

    def describe_failure(self) -> str:
        """Short human-readable reason for a failed run."""
        tool = self.args[0] if self.args else "tool"
        if self.not_found:
            return f"{tool} is not installed"
        if self.timed_out:
            return f"{tool} timed out"
        if self.cancelled:
            return f"{tool} was cancelled"
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else "no output"
        return f"{tool} exited with {self.exit_code}: {detail}"


class CancellationToken:
    """Shared cancellation flag that also owns in-flight subprocesses.

    Cancelling terminates every process registered through ``run_tool`` so
    cancelled jobs never leave orphaned tool processes behind.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._processes: set[subprocess.Popen[str]] = set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Set the flag and terminate all running processes."""
        self._event.set()
        with self._lock:
            processes = list(self._processes)
        for process in processes:
            try:
                process.terminate()
            except OSError:
                # Already exited
                continue
        if processes:
            logger.info("Terminated %d running tool process(es)", len(processes))

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled("Job was cancelled")

    def register(self, process: subprocess.Popen[str]) -> bool:
        """Track a running process; returns False if already cancelled."""
        with self._lock:
            if self.cancelled:
                return False
            self._processes.add(process)
            return True

    def unregister(self, process: subprocess.Popen[str]) -> None:
        with self._lock:
            self._processes.discard(process)


def run_tool(
    args: list[str],
    cwd: Path | str,
    timeout: float,
    cancel_token: CancellationToken | None = None,
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """Run an external tool and capture its output.

    Args:
        args: Command and arguments
        cwd: Working directory (the repository path)
        timeout: Seconds before the process is killed
        cancel_token: Optional job cancellation token
        env: Optional environment override

    Returns:
        ProcessResult describing the run; never raises for tool failures
    """
    if cancel_token is not None and cancel_token.cancelled:
        return ProcessResult(args=args, exit_code=None, cancelled=True)

    logger.debug("Running %s in %s", " ".join(args), cwd)
    try:
        process = subprocess.Popen(
            args,
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=env,
        )
    except FileNotFoundError:
        return ProcessResult(args=args, exit_code=None, not_found=True)
    except OSError as e:
        return ProcessResult(args=args, exit_code=None, stderr=str(e), not_found=True)

    if cancel_token is not None and not cancel_token.register(process):
        process.terminate()
        process.communicate()
        return ProcessResult(args=args, exit_code=process.returncode, cancelled=True)

    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        stdout, stderr = process.communicate()
        logger.warning("%s timed out after %ss", args[0], timeout)
        return ProcessResult(
            args=args,
            exit_code=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            timed_out=True,
        )
    finally:
        if cancel_token is not None:
            cancel_token.unregister(process)

    return ProcessResult(
        args=args,
        exit_code=process.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        cancelled=cancel_token is not None and cancel_token.cancelled,
    )
