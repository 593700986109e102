"""
pytest configuration for kfc tests.

Adds src directory to Python path for imports and sets up test environment.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def isolated_kafka_env(monkeypatch):
    """Keep the developer's Kafka environment out of the tests."""
    for name in (
        "KAFKA_BOOTSTRAP_SERVERS",
        "KAFKA_URL",
        "KAFKA_SECURITY_PROTOCOL",
        "KAFKA_SASL_MECHANISM",
        "KAFKA_SASL_USERNAME",
        "KAFKA_SASL_PASSWORD",
        "KAFKA_TRUSTED_CERT",
        "KAFKA_CLIENT_CERT",
        "KAFKA_CLIENT_CERT_KEY",
        "KFC_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
