"""
Data models for the prism test runner.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class TestStatus(Enum):
    """Status of a single test within a run."""

    RUNNING = "running"
    PASSED = "pass"
    FAILED = "fail"
    SKIPPED = "skip"

    @property
    def is_terminal(self) -> bool:
        return self is not TestStatus.RUNNING


class Action:
    """Action values emitted by the structured event stream."""

    RUN = "run"
    OUTPUT = "output"
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


TERMINAL_ACTIONS = {
    Action.PASS: TestStatus.PASSED,
    Action.FAIL: TestStatus.FAILED,
    Action.SKIP: TestStatus.SKIPPED,
}


@dataclass(frozen=True)
class TestEvent:
    """One decoded record from the structured stream."""

    action: str
    scope: str = ""
    test_id: str = ""
    output_text: str = ""
    elapsed_seconds: float = 0.0
    timestamp: Optional[datetime] = None

    @property
    def is_scope_level(self) -> bool:
        """Return True for package-level events that carry no test name."""
        return not self.test_id

    @property
    def key(self):
        return (self.scope, self.test_id)


@dataclass
class TestResult:
    """Aggregated state of one test, identified by (scope, name)."""

    name: str
    scope: str
    status: TestStatus = TestStatus.RUNNING
    duration: float = 0.0
    output_lines: List[str] = field(default_factory=list)

    @property
    def key(self):
        return (self.scope, self.name)


@dataclass
class ScopeResult:
    """Per-scope roll-up derived from the flat result list."""

    name: str
    tests: List[TestResult] = field(default_factory=list)
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    running: int = 0
    duration: float = 0.0

    @property
    def status(self) -> TestStatus:
        if self.failed > 0:
            return TestStatus.FAILED
        if self.skipped == self.total:
            return TestStatus.SKIPPED
        return TestStatus.PASSED

    @property
    def incomplete(self) -> bool:
        return self.running > 0


@dataclass
class RunSummary:
    """Overall results of one run of the external command."""

    results: List[TestResult]
    total: int
    passed: int
    failed: int
    skipped: int

    @property
    def running(self) -> int:
        """Tests that never received a terminal event."""
        return self.total - self.passed - self.failed - self.skipped

    @property
    def incomplete(self) -> bool:
        return self.running > 0

    @property
    def success(self) -> bool:
        """Return True if no test failed."""
        return self.failed == 0
