"""
Console reporter for test results.
"""

import os
import sys
from typing import List, Optional

from ..models import TestStatus
from .base import ReportGenerator
from .formatting import format_duration, status_icon, status_label
from .model import OverallBlock, RenderModel, ScopeBlock

LINE_WIDTH = 80
MIN_NAME_WIDTH = 10


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Piped or redirected output stays plain.
    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None or not isatty():
        return False
    if sys.platform == "win32":
        # Windows Terminal and ConEmu both advertise themselves.
        return bool(os.environ.get("WT_SESSION") or os.environ.get("ANSICON"))
    return True


class ConsoleReporter(ReportGenerator):
    """Generate colored console output for test results."""

    def __init__(self, color: Optional[bool] = None) -> None:
        if color is None:
            color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.CYAN = "\033[96m" if color else ""
        self.MAGENTA = "\033[95m" if color else ""
        self.GRAY = "\033[90m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def _status_color(self, status: TestStatus) -> str:
        if status is TestStatus.PASSED:
            return self.GREEN
        if status is TestStatus.FAILED:
            return self.RED
        if status is TestStatus.SKIPPED:
            return self.YELLOW
        return self.GRAY

    def generate(self, report: RenderModel) -> str:
        """Generate console report."""
        lines = [f"\n{self.MAGENTA}{self.BOLD}Test Results{self.RESET}", ""]

        if not report.scopes:
            lines.append("  No tests were run.")

        for block in report.scopes:
            lines.extend(self._scope_lines(block))
            lines.append("")

        if report.overall is not None:
            lines.extend(self._overall_lines(report.overall))
            lines.append("")

        if report.incomplete:
            lines.append(
                f"{self.YELLOW}{self.BOLD}{status_icon(TestStatus.RUNNING)} INCOMPLETE RUN: "
                f"{report.totals.running} test(s) never reported a result{self.RESET}"
            )

        if report.success:
            lines.append(f"{self.GREEN}{self.BOLD}✓ ALL TESTS PASSED{self.RESET}")
        else:
            lines.append(f"{self.RED}{self.BOLD}✗ TESTS FAILED{self.RESET}")

        lines.append("")  # Empty line at end
        return "\n".join(lines)

    def _scope_lines(self, block: ScopeBlock) -> List[str]:
        color = self._status_color(block.header_status)
        counts = (
            f"{block.total} total, {block.passed} passed, "
            f"{block.failed} failed, {block.skipped} skipped"
        )
        if block.running:
            counts += f", {block.running} running"

        header = (
            f"{color}{self.BOLD}{status_icon(block.header_status)} {status_label(block.header_status)}{self.RESET} "
            f"{self.CYAN}{self.BOLD}{block.name}{self.RESET} "
            f"{self.GRAY}({format_duration(block.duration)}) ({counts}){self.RESET}"
        )

        # icon + status + duration columns plus single-space padding
        fixed = 2 + 1 + 7 + 1 + 1 + 12
        name_width = max((len(row.display_name) for row in block.rows), default=0)
        name_width = max(MIN_NAME_WIDTH, min(name_width, LINE_WIDTH - fixed))

        separator = f"{self.GRAY}{'─' * LINE_WIDTH}{self.RESET}"
        lines = [
            header,
            separator,
            f"{self.BOLD}{'':2} {'RES':7} {'TEST NAME':{name_width}} {'DURATION':>12}{self.RESET}",
        ]

        for row in block.rows:
            row_color = self._status_color(row.status)
            duration = f"({format_duration(row.duration)})"
            lines.append(
                f"{row_color}{status_icon(row.status):2} {status_label(row.status):7}{self.RESET} "
                f"{row.display_name:{name_width}} "
                f"{self.GRAY}{duration:>12}{self.RESET}"
            )
            indent = " " * 11
            for output_line in row.output:
                lines.append(f"{indent}{self.GRAY}{output_line}{self.RESET}")
        return lines

    def _overall_lines(self, overall: OverallBlock) -> List[str]:
        body = [
            "Overall Test Results",
            (
                f"Scopes: {overall.scopes} | Total: {overall.total} | Passed: {overall.passed} "
                f"| Skipped: {overall.skipped} | Failed: {overall.failed}"
            ),
        ]
        if overall.running:
            body[1] += f" | Running: {overall.running}"
        body.append(f"Duration: {format_duration(overall.duration)}")

        width = max(len(text) for text in body)
        lines = [f"{self.GRAY}╭{'─' * (width + 2)}╮{self.RESET}"]
        for i, text in enumerate(body):
            style = f"{self.MAGENTA}{self.BOLD}" if i == 0 else ""
            reset = self.RESET if style else ""
            lines.append(
                f"{self.GRAY}│{self.RESET} {style}{text:{width}}{reset} {self.GRAY}│{self.RESET}"
            )
        lines.append(f"{self.GRAY}╰{'─' * (width + 2)}╯{self.RESET}")
        return lines
