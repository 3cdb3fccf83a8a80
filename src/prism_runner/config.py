"""
Configuration management for the prism test runner.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import PrismError

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

REPORT_FORMATS = ["console", "junit", "json"]

DEFAULT_DELIMITER_PREFIXES = [
    "=== RUN",
    "=== PAUSE",
    "=== CONT",
    "=== NAME",
    "--- PASS",
    "--- FAIL",
    "--- SKIP",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigurationError(PrismError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


@dataclass
class RunnerConfig:
    """Main configuration for the prism test runner."""

    # Harness invocation
    command: str = "go"
    base_args: List[str] = field(default_factory=lambda: ["test", "-json"])
    default_targets: List[str] = field(default_factory=lambda: ["./..."])
    working_dir: Optional[str] = None
    # Exit status the harness uses for "ran fine, some tests failed"
    failure_exit_code: int = 1

    # Reporting configuration
    verbose: bool = False
    report_format: str = "console"  # console, junit, json
    strip_prefix: str = "Test"
    delimiter_prefixes: List[str] = field(
        default_factory=lambda: list(DEFAULT_DELIMITER_PREFIXES)
    )

    def build_argv(self, args: Optional[List[str]] = None) -> List[str]:
        """
        Build the full command line for the harness.

        Args:
            args: Caller-supplied arguments; ``default_targets`` is used when empty

        Returns:
            Argument vector starting with the command name
        """
        targets = list(args) if args else list(self.default_targets)
        return [self.command, *self.base_args, *targets]


def _parse_env_int(var_name: str) -> Optional[int]:
    """
    Safely parse an integer from an environment variable.

    Args:
        var_name: Name of the environment variable

    Returns:
        Parsed integer value, or None if the variable is not set

    Raises:
        ConfigurationError: If the value cannot be parsed as an integer
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {var_name} must be a valid integer, got: '{value}'"
        )


def _parse_env_bool(var_name: str) -> Optional[bool]:
    value = os.environ.get(var_name)
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Environment variable {var_name} must be a boolean, got: '{value}'"
    )


def load_config(config_file: Optional[str] = None) -> RunnerConfig:
    """
    Load configuration from file and environment variables.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        RunnerConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If config file has invalid YAML or env vars are invalid
    """
    with _config_lock:
        config_data: Dict[str, Any] = {}

        if config_file:
            logger.info("Loading configuration from %s", config_file)
            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}")
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            except PermissionError:
                raise ConfigurationError(f"Permission denied reading config file '{config_file}'")
            except OSError as e:
                raise ConfigurationError(f"Unable to read config file '{config_file}': {e}")

            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file '{config_file}' must contain a mapping, "
                    f"got {type(file_config).__name__}"
                )
            config_data.update(file_config)

        env_overrides = _load_from_env()
        config_data.update(env_overrides)
        if env_overrides:
            logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))

        try:
            return RunnerConfig(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - PRISM_COMMAND: Harness executable
    - PRISM_VERBOSE: Show output of failing tests (1/true/yes/on)
    - PRISM_REPORT_FORMAT: Report format (console, junit, json)
    - PRISM_FAILURE_EXIT_CODE: Exit status meaning "some tests failed"
    - PRISM_WORKING_DIR: Directory to run the harness in

    Returns:
        Dictionary of configuration values from environment

    Raises:
        ConfigurationError: If environment variable values are invalid
    """
    env_config: Dict[str, Any] = {}

    if "PRISM_COMMAND" in os.environ:
        env_config["command"] = os.environ["PRISM_COMMAND"]

    verbose = _parse_env_bool("PRISM_VERBOSE")
    if verbose is not None:
        env_config["verbose"] = verbose

    if "PRISM_REPORT_FORMAT" in os.environ:
        env_config["report_format"] = os.environ["PRISM_REPORT_FORMAT"]

    failure_exit_code = _parse_env_int("PRISM_FAILURE_EXIT_CODE")
    if failure_exit_code is not None:
        env_config["failure_exit_code"] = failure_exit_code

    if "PRISM_WORKING_DIR" in os.environ:
        env_config["working_dir"] = os.environ["PRISM_WORKING_DIR"]

    return env_config


def validate_config(config: RunnerConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: RunnerConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if not config.command or not str(config.command).strip():
        errors.append("command is required")

    for name in ("base_args", "default_targets", "delimiter_prefixes"):
        value = getattr(config, name)
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(f"{name} must be a list of strings")

    if config.report_format not in REPORT_FORMATS:
        errors.append(f"report_format must be one of {REPORT_FORMATS}: {config.report_format}")

    if (
        isinstance(config.failure_exit_code, bool)
        or not isinstance(config.failure_exit_code, int)
        or not 1 <= config.failure_exit_code <= 255
    ):
        errors.append(f"failure_exit_code must be between 1 and 255: {config.failure_exit_code}")

    if not isinstance(config.strip_prefix, str):
        errors.append("strip_prefix must be a string")

    if config.working_dir and not os.path.isdir(config.working_dir):
        errors.append(f"working_dir does not exist: {config.working_dir}")

    return errors
