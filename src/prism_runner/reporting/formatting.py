"""
Pure presentation helpers shared by the report generators.
"""

from ..models import TestStatus

_ICONS = {
    TestStatus.PASSED: "✓",
    TestStatus.FAILED: "✗",
    TestStatus.SKIPPED: "⊝",
    TestStatus.RUNNING: "◌",
}

_LABELS = {
    TestStatus.PASSED: "PASS",
    TestStatus.FAILED: "FAIL",
    TestStatus.SKIPPED: "SKIP",
    TestStatus.RUNNING: "RUNNING",
}


def status_icon(status: TestStatus) -> str:
    """Return the single-character icon for a status."""
    return _ICONS[status]


def status_label(status: TestStatus) -> str:
    """Return the upper-case label for a status."""
    return _LABELS[status]


def _trim(number: str) -> str:
    if "." in number:
        number = number.rstrip("0").rstrip(".")
    return number


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds the way Go prints a time.Duration.

    Examples: ``0s``, ``250µs``, ``10ms``, ``1.5s``, ``2m3.5s``, ``1h0m2s``.
    """
    if seconds <= 0:
        return "0s"
    if seconds < 1e-6:
        return f"{round(seconds * 1e9)}ns"
    if seconds < 1e-3:
        return f"{_trim(f'{seconds * 1e6:.3f}')}µs"
    if seconds < 1:
        return f"{_trim(f'{seconds * 1e3:.3f}')}ms"
    if seconds < 60:
        return f"{_trim(f'{seconds:.3f}')}s"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    text = f"{int(minutes)}m{_trim(f'{secs:.3f}')}s"
    if hours:
        text = f"{int(hours)}h{text}"
    return text
