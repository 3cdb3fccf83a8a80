"""Shared fixtures for the prism runner tests."""

import sys
from pathlib import Path

import pytest

from prism_runner.config import RunnerConfig

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def harness_config():
    """Config that runs the fake harness with the current interpreter."""
    return RunnerConfig(
        command=sys.executable,
        base_args=[str(FIXTURES / "fake_harness.py")],
        default_targets=[str(FIXTURES / "go_test_mixed.jsonl")],
    )
