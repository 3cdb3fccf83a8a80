"""
JUnit XML reporter for test results.
"""

import xml.etree.ElementTree as ET

from ..models import TestStatus
from .base import ReportGenerator
from .model import RenderModel


class JUnitReporter(ReportGenerator):
    """Generate JUnit XML format for CI/CD integration."""

    def generate(self, report: RenderModel) -> str:
        """Generate JUnit XML report."""
        totals = report.totals
        testsuites = ET.Element("testsuites")
        testsuites.set("tests", str(totals.total))
        testsuites.set("failures", str(totals.failed))
        testsuites.set("errors", str(totals.running))
        testsuites.set("skipped", str(totals.skipped))
        testsuites.set("time", f"{totals.duration:.3f}")

        for block in report.scopes:
            testsuite = ET.SubElement(testsuites, "testsuite")
            testsuite.set("name", block.name)
            testsuite.set("tests", str(block.total))
            testsuite.set("failures", str(block.failed))
            testsuite.set("errors", str(block.running))
            testsuite.set("skipped", str(block.skipped))
            testsuite.set("time", f"{block.duration:.3f}")

            for row in block.rows:
                testcase = ET.SubElement(testsuite, "testcase")
                testcase.set("classname", block.name)
                testcase.set("name", row.name)
                testcase.set("time", f"{row.duration:.3f}")

                if row.status is TestStatus.FAILED:
                    failure = ET.SubElement(testcase, "failure")
                    failure.set("message", f"{row.name} failed")
                    if row.output:
                        failure.text = "\n".join(row.output)

                elif row.status is TestStatus.SKIPPED:
                    ET.SubElement(testcase, "skipped")

                elif row.status is TestStatus.RUNNING:
                    # No terminal event was ever seen for this test.
                    error = ET.SubElement(testcase, "error")
                    error.set("message", f"{row.name} did not report a result")

        ET.indent(testsuites, space="  ")
        return ET.tostring(testsuites, encoding="unicode", xml_declaration=True)
