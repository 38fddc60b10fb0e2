"""
Pytest configuration and fixtures for the test suite.
"""
import io

import pytest
from hypothesis import HealthCheck, settings, Verbosity

import step_sdk.error_handler as error_handler_module
from step_sdk.logger import configure_logger

# The autouse reset fixture is function scoped; it is safe to share across examples
RESET_FIXTURE_CHECKS = [HealthCheck.function_scoped_fixture]

# Configure Hypothesis for property-based testing
# Each property test will run at least 100 examples
settings.register_profile(
    "default", max_examples=100, verbosity=Verbosity.normal, suppress_health_check=RESET_FIXTURE_CHECKS
)
settings.register_profile(
    "ci", max_examples=200, verbosity=Verbosity.verbose, suppress_health_check=RESET_FIXTURE_CHECKS
)
settings.register_profile(
    "dev", max_examples=50, verbosity=Verbosity.normal, suppress_health_check=RESET_FIXTURE_CHECKS
)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, suppress_health_check=RESET_FIXTURE_CHECKS
)

# Load the default profile
settings.load_profile("default")


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Reset singleton instances between tests to ensure isolation."""
    monkeypatch.delenv("STEP_SDK_CONFIG", raising=False)
    error_handler_module._error_handler = None
    configure_logger(level="WARNING", output_stream=io.StringIO())
    yield
    error_handler_module._error_handler = None
    configure_logger(level="WARNING")


@pytest.fixture
def diagnostics():
    """Capture SDK diagnostics at DEBUG level."""
    stream = io.StringIO()
    configure_logger(level="DEBUG", output_stream=stream)
    return stream
