"""kfc configuration from CLI flags, environment and an optional YAML file.

The YAML file carries connection settings and client properties:

    kafka:
      connection:
        bootstrap_servers: ${KAFKA_BOOTSTRAP_SERVERS:-localhost:9092}
        security_protocol: SASL_SSL
        sasl_mechanism: PLAIN
        sasl_plain_username: ${KAFKA_USER}
        sasl_plain_password: ${KAFKA_PASSWORD}
      consumer:
        fetch.max.wait.ms: 100
        group.id: kfc

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from core.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BOOTSTRAP_SERVERS = "localhost:9092"
DEFAULT_OFFSET = "beginning"
DEFAULT_DELIMITER = b"\n"

VALID_SECURITY_PROTOCOLS = ["PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL"]
VALID_SASL_MECHANISMS = ["PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"]

# aiokafka consumer properties that may be passed through with -X or the
# kafka.consumer section, with a one-line description for `-X list`.
SUPPORTED_CLIENT_PROPERTIES: Dict[str, str] = {
    "client_id": "Client name sent to the broker (default: kfc)",
    "group_id": "Consumer group id, required for -o stored",
    "auto_offset_reset": "earliest | latest | none, used when a stored or absolute offset is invalid",
    "enable_auto_commit": "Commit consumed offsets for the group (default: true with group.id)",
    "auto_commit_interval_ms": "Interval between automatic offset commits",
    "fetch_max_wait_ms": "Max time the broker waits to fill a fetch response",
    "fetch_min_bytes": "Min bytes the broker returns for a fetch",
    "fetch_max_bytes": "Max bytes the broker returns for a fetch",
    "max_partition_fetch_bytes": "Max bytes returned per partition per fetch",
    "max_poll_records": "Max records returned by a single dequeue",
    "request_timeout_ms": "Client request timeout",
    "retry_backoff_ms": "Backoff between retried requests",
    "metadata_max_age_ms": "Period after which metadata is refreshed",
    "connections_max_idle_ms": "Close idle connections after this many ms",
    "isolation_level": "read_uncommitted | read_committed",
    "check_crcs": "Verify record CRCs (true | false)",
    "api_version": "Broker API version, or auto",
    "exclude_internal_topics": "Hide internal topics from metadata (true | false)",
}

# Properties whose values are never coerced to numbers or booleans
STRING_CLIENT_PROPERTIES = frozenset(
    {"client_id", "group_id", "auto_offset_reset", "isolation_level", "api_version"}
)

_ESCAPES = {
    "n": b"\n",
    "t": b"\t",
    "r": b"\r",
    "0": b"\0",
    "\\": b"\\",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def parse_delimiter(text: str) -> bytes:
    """Parse a delimiter argument into a single byte.

    Accepts one character or an escape sequence: \\n, \\t, \\r, \\0, \\\\
    or \\xNN.
    """
    if len(text) == 1:
        encoded = text.encode("utf-8")
        if len(encoded) != 1:
            raise ConfigError(f"Delimiter must be a single byte, got {text!r}")
        return encoded

    if text.startswith("\\") and len(text) == 2 and text[1] in _ESCAPES:
        return _ESCAPES[text[1]]

    if text.startswith("\\x") and len(text) == 4:
        try:
            return bytes([int(text[2:], 16)])
        except ValueError:
            pass

    raise ConfigError(f"Invalid delimiter {text!r}: expected one character or an escape like \\n, \\t, \\x1f")


def normalize_property_name(name: str) -> str:
    """Map a librdkafka-style property name onto the aiokafka keyword name.

    `topic.` prefixed names are accepted as-is minus the prefix, dots and
    dashes become underscores: ``fetch.max.wait.ms`` → ``fetch_max_wait_ms``.
    """
    name = name.strip()
    if name.startswith("topic."):
        name = name[len("topic."):]
    return name.replace(".", "_").replace("-", "_").lower()


def coerce_property_value(key: str, value: Any) -> Any:
    """Coerce property values to int or bool where they parse.

    String-typed properties always stay strings, also when the YAML file
    gives them as numbers.
    """
    if key in STRING_CLIENT_PROPERTIES:
        return str(value)
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def parse_client_property(text: str) -> Tuple[str, Any]:
    """Parse a `-X property=value` argument into a normalized (name, value) pair."""
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise ConfigError(
            f"Expected -X property=value, not {text}, use -X list to display available properties"
        )
    return normalize_client_property(name, value)


def normalize_client_property(name: str, value: Any) -> Tuple[str, Any]:
    key = normalize_property_name(name)
    if key not in SUPPORTED_CLIENT_PROPERTIES:
        raise ConfigError(
            f"Unknown client property: {name}, use -X list to display available properties",
            context={"property": name},
        )
    return key, coerce_property_value(key, value)


def _bootstrap_from_kafka_url(kafka_url: str) -> Tuple[str, bool]:
    """Turn a KAFKA_URL list (kafka+ssl://host:port,...) into bootstrap servers.

    Returns the host:port list and whether any entry asked for TLS.
    """
    servers = []
    use_ssl = False
    for item in re.split(r"[,\s]+", kafka_url.strip()):
        if not item:
            continue
        scheme, sep, rest = item.partition("://")
        if sep:
            use_ssl = use_ssl or scheme.endswith("ssl")
            item = rest
        servers.append(item.rstrip("/"))
    return ",".join(servers), use_ssl


@dataclass(frozen=True)
class ConnectionConfig:
    """Broker connection settings shared by the consumer and the admin client.

    All timing values in milliseconds.
    """

    bootstrap_servers: str = DEFAULT_BOOTSTRAP_SERVERS
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str = "PLAIN"
    sasl_plain_username: str = ""
    sasl_plain_password: str = field(default="", repr=False)
    ssl_cafile: str = ""
    ssl_certfile: str = ""
    ssl_keyfile: str = ""
    request_timeout_ms: int = 40000
    metadata_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> "ConnectionConfig":
        """Connection defaults from KAFKA_BOOTSTRAP_SERVERS or KAFKA_URL."""
        bootstrap = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "")
        security_protocol = os.getenv("KAFKA_SECURITY_PROTOCOL", "")

        kafka_url = os.getenv("KAFKA_URL", "")
        if not bootstrap and kafka_url:
            bootstrap, use_ssl = _bootstrap_from_kafka_url(kafka_url)
            if use_ssl and not security_protocol:
                security_protocol = "SSL"

        return cls(
            bootstrap_servers=bootstrap or DEFAULT_BOOTSTRAP_SERVERS,
            security_protocol=security_protocol or "PLAINTEXT",
            sasl_mechanism=os.getenv("KAFKA_SASL_MECHANISM", "PLAIN"),
            sasl_plain_username=os.getenv("KAFKA_SASL_USERNAME", ""),
            sasl_plain_password=os.getenv("KAFKA_SASL_PASSWORD", ""),
        )

    def merged(self, data: Dict[str, Any]) -> "ConnectionConfig":
        """Return a copy with known keys from `data` applied."""
        known = {name: data[name] for name in self.__dataclass_fields__ if name in data}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown kafka.connection settings: {unknown}")
        for key in ("request_timeout_ms", "metadata_timeout_ms"):
            if key in known:
                try:
                    known[key] = int(known[key])
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be an integer, got {known[key]!r}", cause=e) from e
        return replace(self, **known)

    def validate(self) -> None:
        if not self.bootstrap_servers:
            raise ConfigError("bootstrap_servers is required")
        if self.security_protocol not in VALID_SECURITY_PROTOCOLS:
            raise ConfigError(
                f"security_protocol must be one of {VALID_SECURITY_PROTOCOLS}, "
                f"got '{self.security_protocol}'"
            )
        if self.security_protocol.startswith("SASL") and self.sasl_mechanism not in VALID_SASL_MECHANISMS:
            raise ConfigError(
                f"sasl_mechanism must be one of {VALID_SASL_MECHANISMS}, "
                f"got '{self.sasl_mechanism}'"
            )
        if self.metadata_timeout_ms <= 0:
            raise ConfigError(f"metadata_timeout_ms must be > 0, got {self.metadata_timeout_ms}")


@dataclass(frozen=True)
class FileConfig:
    """Settings loaded from the YAML config file."""

    connection: Dict[str, Any] = field(default_factory=dict)
    client_properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConsumerConfig:
    """Resolved settings for one consumer run. Read-only after startup."""

    topic: str
    partition: Optional[int] = None
    offset: str = DEFAULT_OFFSET
    delimiter: bytes = DEFAULT_DELIMITER
    key_delimiter: Optional[bytes] = None
    count: Optional[int] = None
    exit_on_eof: bool = False
    print_offset: bool = False
    unbuffered: bool = False
    verbosity: int = 1
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    client_properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def group_id(self) -> Optional[str]:
        return self.client_properties.get("group_id")

    @property
    def message_limit(self) -> Optional[int]:
        """Positive message-count limit, or None when unlimited."""
        if self.count is not None and self.count > 0:
            return self.count
        return None

    def validate(self) -> None:
        """Validate configuration for correctness and constraints."""
        if not self.topic:
            raise ConfigError("topic missing")
        if self.partition is not None and self.partition < 0:
            raise ConfigError(f"partition must be >= 0, got {self.partition}")
        if self.count is not None and self.count < 0:
            raise ConfigError(f"count must be >= 0, got {self.count}")
        if len(self.delimiter) != 1:
            raise ConfigError(f"delimiter must be a single byte, got {self.delimiter!r}")
        if self.key_delimiter is not None and len(self.key_delimiter) != 1:
            raise ConfigError(f"key delimiter must be a single byte, got {self.key_delimiter!r}")
        if self.offset.strip() == "stored" and not self.group_id:
            raise ConfigError(
                "Stored offsets require a consumer group: use -X group.id=<group>"
            )
        for key in self.client_properties:
            if key not in SUPPORTED_CLIENT_PROPERTIES:
                raise ConfigError(f"Unknown client property: {key}")
        self.connection.validate()


def load_config(config_path: Optional[Path] = None) -> FileConfig:
    """Load connection settings and client properties from a YAML file.

    With no explicit path, KFC_CONFIG is consulted; without either an empty
    FileConfig is returned. An explicit path that does not exist is an error.
    """
    if config_path is None:
        env_path = os.getenv("KFC_CONFIG")
        if not env_path:
            return FileConfig()
        config_path = Path(env_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from file: {config_path}")
    try:
        yaml_data = load_yaml(config_path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}", cause=e) from e
    yaml_data = _expand_env_vars(yaml_data)

    if not isinstance(yaml_data, dict) or "kafka" not in yaml_data:
        raise ConfigError(f"Invalid config file {config_path}: missing 'kafka:' section")

    kafka_config = yaml_data["kafka"] or {}
    connection = dict(kafka_config.get("connection") or {})

    client_properties = {}
    for name, value in (kafka_config.get("consumer") or {}).items():
        key, coerced = normalize_client_property(str(name), value)
        client_properties[key] = coerced

    logger.debug(
        "Configuration loaded",
        extra={"bootstrap_servers": connection.get("bootstrap_servers")},
    )
    return FileConfig(connection=connection, client_properties=client_properties)
