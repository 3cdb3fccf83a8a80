"""
Command-line interface for the prism test runner.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from .config import REPORT_FORMATS, ConfigurationError, load_config, validate_config
from .exceptions import ExecutionError
from .reporting import ConsoleReporter, JSONReporter, JUnitReporter, ReportOptions, build_report
from .reporting.base import ReportGenerator
from .runner import TestRunner

logger = logging.getLogger(__name__)


def _make_reporter(report_format: str) -> ReportGenerator:
    if report_format == "junit":
        return JUnitReporter()
    if report_format == "json":
        return JSONReporter()
    return ConsoleReporter()


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show the output of failing tests",
)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--report-format",
    type=click.Choice(REPORT_FORMATS),
    help="Report format (overrides config)",
)
@click.option(
    "--output",
    type=click.Path(),
    help="Output file for report (default: stdout)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    help="Logging level",
)
@click.argument("harness_args", nargs=-1, type=click.UNPROCESSED)
def main(
    verbose: bool,
    config: Optional[str],
    report_format: Optional[str],
    output: Optional[str],
    log_level: str,
    harness_args: Tuple[str, ...],
) -> None:
    """
    Prism - a readable report for `go test`.

    Any arguments after the options are passed through to the harness.

    Examples:

      # Run every package (go test -json ./...)
      prism

      # Run one package and show output of failing tests
      prism --verbose ./pkg1

      # Forward harness flags
      prism -- -run TestFoo ./...

      # CI mode with JUnit output
      prism --report-format junit --output results.xml
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        runner_config = load_config(config)

        if report_format:
            runner_config.report_format = report_format
        if verbose:
            runner_config.verbose = True

        errors = validate_config(runner_config)
        if errors:
            click.echo("Configuration errors:", err=True)
            for error in errors:
                click.echo(f"  - {error}", err=True)
            sys.exit(1)

        summary = TestRunner(runner_config).run(list(harness_args))

        options = ReportOptions.from_config(runner_config)
        report_model = build_report(summary, options)
        report = _make_reporter(runner_config.report_format).generate(report_model)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
            click.echo(f"Report written to: {output}")
            if runner_config.report_format != "console":
                click.echo(ConsoleReporter().generate(report_model))
        else:
            click.echo(report)

        if summary.incomplete:
            logger.warning(
                "%d test(s) never reported a result; the run may have been cut short",
                summary.running,
            )

        logger.info(
            "Tests complete: %d passed, %d failed, %d skipped",
            summary.passed,
            summary.failed,
            summary.skipped,
        )

        sys.exit(0 if summary.success else 1)

    except ExecutionError as e:
        logger.debug("Execution error", exc_info=True)
        click.echo(f"Error running tests: {e}", err=True)
        sys.exit(1)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
