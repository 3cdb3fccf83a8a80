"""
Test runner that wraps the external harness command.
"""

import logging
import subprocess
import threading
from typing import IO, Any, Callable, Dict, List, Optional, Protocol, Sequence, TextIO

from .config import RunnerConfig
from .exceptions import CommandExitError, LaunchError, StreamReadError
from .models import RunSummary
from .results import ResultAggregator
from .streams import consume_events, forward_lines

logger = logging.getLogger(__name__)

STRUCTURED_STREAM = "structured"
DIAGNOSTIC_STREAM = "diagnostic"


class HarnessProcess(Protocol):
    """The parts of a running process the runner relies on."""

    stdout: IO[bytes]
    stderr: IO[bytes]

    def wait(self) -> int:
        ...


class CommandLauncher(Protocol):
    """Starts the harness with both output streams piped."""

    def launch(self, argv: Sequence[str]) -> HarnessProcess:
        ...


class SubprocessLauncher:
    """Launch the harness as a child process with piped stdout and stderr."""

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def launch(self, argv: Sequence[str]) -> "subprocess.Popen[bytes]":
        return subprocess.Popen(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            cwd=self.cwd,
        )


def _discard_rest(stream: IO[bytes]) -> None:
    """Keep the pipe flowing after a reader has given up on it."""
    try:
        while stream.read(65536):
            pass
    except (OSError, ValueError) as e:
        logger.debug("Stopped discarding stream output: %s", e)


def _read_stream(
    role: str,
    consume: Callable[..., Any],
    stream: IO[bytes],
    outcomes: Dict[str, Any],
    failures: Dict[str, BaseException],
    *args: Any,
) -> None:
    """Thread target: run one stream consumer and record its result or failure."""
    try:
        outcomes[role] = consume(stream, *args)
    except Exception as e:
        logger.error("Reader for the %s stream failed: %s", role, e, exc_info=True)
        failures[role] = e
        _discard_rest(stream)


class TestRunner:
    """Runs the harness once and aggregates its event stream."""

    def __init__(
        self,
        config: RunnerConfig,
        launcher: Optional[CommandLauncher] = None,
        diagnostics: Optional[TextIO] = None,
    ):
        self.config = config
        self.launcher = launcher or SubprocessLauncher(cwd=config.working_dir)
        self.diagnostics = diagnostics

    def run(self, args: Optional[List[str]] = None) -> RunSummary:
        """
        Run the harness and return the aggregated results.

        The structured stream (stdout) and the diagnostic stream (stderr) are
        drained by two worker threads started right after launch. The summary
        is only taken once the process has exited and both workers have
        finished.

        Args:
            args: Arguments forwarded to the harness (default targets when empty)

        Returns:
            RunSummary for the completed run

        Raises:
            LaunchError: If the harness cannot be started
            CommandExitError: If the harness exits with an unexpected status
            StreamReadError: If a stream reader fails before its stream is drained
        """
        argv = self.config.build_argv(args)
        logger.info("Running: %s", " ".join(argv))

        try:
            process = self.launcher.launch(argv)
        except (OSError, ValueError) as e:
            raise LaunchError(argv, e)

        aggregator = ResultAggregator()
        outcomes: Dict[str, Any] = {}
        failures: Dict[str, BaseException] = {}

        events_worker = threading.Thread(
            target=_read_stream,
            args=(STRUCTURED_STREAM, consume_events, process.stdout, outcomes, failures, aggregator),
            name="prism-events",
            daemon=True,
        )
        diagnostics_worker = threading.Thread(
            target=_read_stream,
            args=(DIAGNOSTIC_STREAM, forward_lines, process.stderr, outcomes, failures, self.diagnostics),
            name="prism-diagnostics",
            daemon=True,
        )
        events_worker.start()
        diagnostics_worker.start()

        exit_code = process.wait()
        events_worker.join()
        diagnostics_worker.join()

        for role in (STRUCTURED_STREAM, DIAGNOSTIC_STREAM):
            if role in failures:
                raise StreamReadError(role, failures[role])

        stats = outcomes[STRUCTURED_STREAM]
        if stats.malformed:
            logger.warning("Skipped %d malformed event line(s)", stats.malformed)

        if exit_code not in (0, self.config.failure_exit_code):
            raise CommandExitError(argv, exit_code)

        summary = aggregator.summary()
        logger.info(
            "Harness exited with status %d: %d tests, %d passed, %d failed, %d skipped",
            exit_code,
            summary.total,
            summary.passed,
            summary.failed,
            summary.skipped,
        )
        return summary
