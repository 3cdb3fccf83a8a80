"""
Test result aggregation.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, Optional, Tuple

from .models import TERMINAL_ACTIONS, Action, RunSummary, TestEvent, TestResult, TestStatus

logger = logging.getLogger(__name__)


class ResultAggregator:
    """
    Owns the result model for a single run and applies events to it.

    Every mutation happens under one lock: looking up or creating the
    TestResult for a key, mutating it, and updating the run counters form a
    single atomic unit. This keeps the model consistent even if more than one
    thread feeds events into the same aggregator.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Insertion order is first-seen order.
        self._results: Dict[Tuple[str, str], TestResult] = {}
        self._counts: Dict[TestStatus, int] = {
            TestStatus.PASSED: 0,
            TestStatus.FAILED: 0,
            TestStatus.SKIPPED: 0,
        }

    def apply(self, event: TestEvent) -> None:
        """
        Apply one event to the result model.

        Scope-level events (no test name) are ignored. ``output`` events
        append a line; terminal events set status and duration, overwriting
        any earlier terminal event for the same key.

        Args:
            event: Decoded event from the structured stream
        """
        if event.is_scope_level:
            return

        with self._lock:
            result = self._results.get(event.key)
            if result is None:
                result = TestResult(name=event.test_id, scope=event.scope)
                self._results[event.key] = result

            if event.action == Action.OUTPUT:
                line = event.output_text.strip()
                if line:
                    result.output_lines.append(line)
                return

            status = TERMINAL_ACTIONS.get(event.action)
            if status is None:
                return

            if result.status.is_terminal:
                logger.debug(
                    "Test %s/%s finished again: %s -> %s",
                    result.scope,
                    result.name,
                    result.status.value,
                    status.value,
                )
                self._counts[result.status] -= 1
            result.status = status
            result.duration = event.elapsed_seconds
            self._counts[status] += 1

    def get(self, scope: str, name: str) -> Optional[TestResult]:
        """Return a copy of the result for a key, or None if it was never seen."""
        with self._lock:
            result = self._results.get((scope, name))
            if result is None:
                return None
            return replace(result, output_lines=list(result.output_lines))

    def summary(self) -> RunSummary:
        """
        Take a snapshot of the current result model.

        Returns:
            RunSummary whose results are copies, listed in first-seen order
        """
        with self._lock:
            results = [
                replace(r, output_lines=list(r.output_lines)) for r in self._results.values()
            ]
            return RunSummary(
                results=results,
                total=len(self._results),
                passed=self._counts[TestStatus.PASSED],
                failed=self._counts[TestStatus.FAILED],
                skipped=self._counts[TestStatus.SKIPPED],
            )


def aggregate_events(events: Iterable[TestEvent]) -> RunSummary:
    """
    Aggregate a sequence of events into a run summary.

    Args:
        events: Decoded events, in arrival order

    Returns:
        RunSummary with aggregated statistics
    """
    aggregator = ResultAggregator()
    for event in events:
        aggregator.apply(event)
    return aggregator.summary()
