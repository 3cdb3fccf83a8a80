"""
JSON reporter for test results.
"""

import json

from .base import ReportGenerator
from .model import OverallBlock, RenderModel


def _counters(block: OverallBlock) -> dict:
    return {
        "scopes": block.scopes,
        "total": block.total,
        "passed": block.passed,
        "failed": block.failed,
        "skipped": block.skipped,
        "running": block.running,
        "duration_seconds": block.duration,
    }


class JSONReporter(ReportGenerator):
    """Generate JSON format for programmatic analysis."""

    def generate(self, report: RenderModel) -> str:
        """Generate JSON report."""
        data = {
            "summary": {
                **_counters(report.totals),
                "success": report.success,
                "incomplete": report.incomplete,
            },
            "overall": _counters(report.overall) if report.overall is not None else None,
            "scopes": [
                {
                    "name": block.name,
                    "status": block.status.value,
                    "duration_seconds": block.duration,
                    "total": block.total,
                    "passed": block.passed,
                    "failed": block.failed,
                    "skipped": block.skipped,
                    "running": block.running,
                    "tests": [
                        {
                            "name": row.name,
                            "status": row.status.value,
                            "duration_seconds": row.duration,
                            "output": list(row.output),
                        }
                        for row in block.rows
                    ],
                }
                for block in report.scopes
            ],
        }

        return json.dumps(data, indent=2)
