"""Configuration loading for kfc.

Settings are merged in the following priority (highest to lowest):

1. Command-line flags (-b, -X property=value, ...)
2. YAML configuration file (--config or KFC_CONFIG)
3. Environment variables (KAFKA_BOOTSTRAP_SERVERS, KAFKA_URL, ...)
4. Dataclass defaults

Usage:
    >>> from config import ConsumerConfig, load_config
    >>> file_config = load_config()
    >>> config = ConsumerConfig(topic="events", partition=0)
    >>> config.validate()
"""

from config.config import (
    SUPPORTED_CLIENT_PROPERTIES,
    ConnectionConfig,
    ConsumerConfig,
    FileConfig,
    load_config,
    normalize_client_property,
    normalize_property_name,
    parse_client_property,
    parse_delimiter,
)

__all__ = [
    # Loading
    "load_config",
    # Config classes
    "ConnectionConfig",
    "ConsumerConfig",
    "FileConfig",
    # Parsing helpers
    "parse_delimiter",
    "parse_client_property",
    "normalize_client_property",
    "normalize_property_name",
    "SUPPORTED_CLIENT_PROPERTIES",
]
