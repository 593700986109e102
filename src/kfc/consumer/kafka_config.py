"""Kafka security configuration for the consumer and admin clients."""

import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Mapping

from aiokafka.helpers import create_ssl_context

from config.config import ConnectionConfig
from core.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

# PEM material passed through the environment, mapped to ConnectionConfig fields
PEM_ENV_VARS = {
    "KAFKA_TRUSTED_CERT": ("ssl_cafile", "ca.pem"),
    "KAFKA_CLIENT_CERT": ("ssl_certfile", "client.crt"),
    "KAFKA_CLIENT_CERT_KEY": ("ssl_keyfile", "client.key"),
}


def materialize_pem_env(
    connection: ConnectionConfig,
    env: Mapping[str, str] | None = None,
    directory: Path | None = None,
) -> ConnectionConfig:
    """Write PEM certificates held in environment variables to files.

    Files go to a private temp directory (or `directory`) and are used for
    any SSL file setting not configured explicitly. When certificates are
    found on a PLAINTEXT connection the protocol is switched to SSL.
    """
    env = os.environ if env is None else env
    present = {name: env[name] for name in PEM_ENV_VARS if env.get(name)}
    if not present:
        return connection

    if directory is None:
        directory = Path(tempfile.mkdtemp(prefix="kfc-"))
    directory.mkdir(parents=True, exist_ok=True)

    updates = {}
    for name, pem in present.items():
        field_name, filename = PEM_ENV_VARS[name]
        if getattr(connection, field_name):
            continue
        path = directory / filename
        path.write_text(pem if pem.endswith("\n") else pem + "\n")
        path.chmod(0o600)
        updates[field_name] = str(path)

    if connection.security_protocol == "PLAINTEXT":
        updates["security_protocol"] = "SSL"

    logger.debug(
        "Wrote TLS material from environment",
        extra={"variables": sorted(present), "directory": str(directory)},
    )
    return replace(connection, **updates)


def build_kafka_security_config(connection: ConnectionConfig) -> dict:
    """Build Kafka security config dict from ConnectionConfig.

    Handles PLAIN and SCRAM SASL mechanisms and SSL context creation.
    Returns an empty dict for PLAINTEXT connections.
    """
    if connection.security_protocol == "PLAINTEXT":
        return {}

    security_config = {"security_protocol": connection.security_protocol}

    if "SSL" in connection.security_protocol:
        try:
            security_config["ssl_context"] = create_ssl_context(
                cafile=connection.ssl_cafile or None,
                certfile=connection.ssl_certfile or None,
                keyfile=connection.ssl_keyfile or None,
            )
        except (OSError, ValueError) as e:
            raise ConfigError("Failed to load TLS certificates", cause=e) from e

    if connection.security_protocol.startswith("SASL"):
        security_config["sasl_mechanism"] = connection.sasl_mechanism
        security_config["sasl_plain_username"] = connection.sasl_plain_username
        security_config["sasl_plain_password"] = connection.sasl_plain_password

    return security_config
