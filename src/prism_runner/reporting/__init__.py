"""
Reporting modules for the prism test runner.
"""

from .base import ReportGenerator
from .console import ConsoleReporter
from .json_reporter import JSONReporter
from .junit import JUnitReporter
from .model import RenderModel, ReportOptions, build_report

__all__ = [
    "ReportGenerator",
    "ConsoleReporter",
    "JSONReporter",
    "JUnitReporter",
    "RenderModel",
    "ReportOptions",
    "build_report",
]
