"""
Render-ready view of a finished run.

``build_report`` groups the flat result list by scope, derives per-scope
counts and status, and orders everything deterministically. It never
touches the aggregator and has no side effects, so the same RunSummary
always yields the same RenderModel.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import DEFAULT_DELIMITER_PREFIXES, RunnerConfig
from ..models import RunSummary, ScopeResult, TestResult, TestStatus

STATUS_PRIORITY = {
    TestStatus.FAILED: 3,
    TestStatus.SKIPPED: 2,
    TestStatus.PASSED: 1,
    TestStatus.RUNNING: 0,
}


@dataclass(frozen=True)
class ReportOptions:
    """Options recognised by the reporter."""

    verbose: bool = False
    strip_prefix: str = "Test"
    delimiter_prefixes: Tuple[str, ...] = tuple(DEFAULT_DELIMITER_PREFIXES)

    @classmethod
    def from_config(cls, config: RunnerConfig, verbose: Optional[bool] = None) -> "ReportOptions":
        return cls(
            verbose=config.verbose if verbose is None else verbose,
            strip_prefix=config.strip_prefix,
            delimiter_prefixes=tuple(config.delimiter_prefixes),
        )


@dataclass(frozen=True)
class TestRow:
    """One test line in a scope table."""

    name: str
    display_name: str
    status: TestStatus
    duration: float
    output: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScopeBlock:
    """Header, counters and rows for one scope."""

    name: str
    status: TestStatus
    duration: float
    total: int
    passed: int
    failed: int
    skipped: int
    running: int
    rows: Tuple[TestRow, ...] = ()

    @property
    def incomplete(self) -> bool:
        return self.running > 0

    @property
    def header_status(self) -> TestStatus:
        """Status shown in the scope header; a failure outranks unfinished tests."""
        if self.incomplete and self.status is not TestStatus.FAILED:
            return TestStatus.RUNNING
        return self.status


@dataclass(frozen=True)
class OverallBlock:
    """Run-wide counters."""

    scopes: int
    total: int
    passed: int
    failed: int
    skipped: int
    running: int
    duration: float


@dataclass(frozen=True)
class RenderModel:
    """Grouped, sorted and filtered results handed to a report generator."""

    scopes: Tuple[ScopeBlock, ...]
    totals: OverallBlock
    # Only set when the run spans more than one scope.
    overall: Optional[OverallBlock] = None
    options: ReportOptions = field(default_factory=ReportOptions)

    @property
    def incomplete(self) -> bool:
        return self.totals.running > 0

    @property
    def success(self) -> bool:
        return self.totals.failed == 0


def group_by_scope(results: Iterable[TestResult]) -> List[ScopeResult]:
    """
    Fold a flat result list into per-scope aggregates.

    Args:
        results: Test results in any order

    Returns:
        ScopeResult list in first-seen scope order
    """
    scopes: Dict[str, ScopeResult] = {}
    for result in results:
        scope = scopes.get(result.scope)
        if scope is None:
            scope = ScopeResult(name=result.scope)
            scopes[result.scope] = scope

        scope.tests.append(result)
        scope.total += 1
        scope.duration += result.duration
        if result.status is TestStatus.PASSED:
            scope.passed += 1
        elif result.status is TestStatus.FAILED:
            scope.failed += 1
        elif result.status is TestStatus.SKIPPED:
            scope.skipped += 1
        else:
            scope.running += 1
    return list(scopes.values())


def display_name(name: str, prefix: str) -> str:
    """Strip the cosmetic prefix from a test name, keeping it if nothing would remain."""
    if prefix and name.startswith(prefix) and len(name) > len(prefix):
        return name[len(prefix):]
    return name


def sort_tests(tests: Iterable[TestResult], prefix: str = "Test") -> List[TestResult]:
    """Order tests by status priority (failed first), then by display name."""
    return sorted(
        tests,
        key=lambda t: (-STATUS_PRIORITY[t.status], display_name(t.name, prefix), t.name),
    )


def visible_output(result: TestResult, options: ReportOptions) -> Tuple[str, ...]:
    """Return the output lines to show under a test row."""
    if not options.verbose or result.status is not TestStatus.FAILED:
        return ()
    prefixes = tuple(options.delimiter_prefixes)
    return tuple(
        line
        for line in result.output_lines
        if line.strip() and not (prefixes and line.lstrip().startswith(prefixes))
    )


def _scope_block(scope: ScopeResult, options: ReportOptions) -> ScopeBlock:
    rows = tuple(
        TestRow(
            name=t.name,
            display_name=display_name(t.name, options.strip_prefix),
            status=t.status,
            duration=t.duration,
            output=visible_output(t, options),
        )
        for t in sort_tests(scope.tests, options.strip_prefix)
    )
    return ScopeBlock(
        name=scope.name,
        status=scope.status,
        duration=scope.duration,
        total=scope.total,
        passed=scope.passed,
        failed=scope.failed,
        skipped=scope.skipped,
        running=scope.running,
        rows=rows,
    )


def build_report(summary: RunSummary, options: Optional[ReportOptions] = None) -> RenderModel:
    """
    Build the render model for a finished run.

    Args:
        summary: Final RunSummary from the runner
        options: Reporter options (verbosity, name prefix, delimiter lines)

    Returns:
        RenderModel with one block per scope, sorted by scope name
    """
    options = options or ReportOptions()
    scopes = sorted(group_by_scope(summary.results), key=lambda s: s.name)
    blocks = tuple(_scope_block(scope, options) for scope in scopes)

    totals = OverallBlock(
        scopes=len(blocks),
        total=summary.total,
        passed=summary.passed,
        failed=summary.failed,
        skipped=summary.skipped,
        running=summary.running,
        duration=sum(block.duration for block in blocks),
    )
    return RenderModel(
        scopes=blocks,
        totals=totals,
        overall=totals if len(blocks) > 1 else None,
        options=options,
    )
