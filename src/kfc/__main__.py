"""kfc: consume a Kafka topic to stdout. Use --help for usage."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from config.config import (
    SUPPORTED_CLIENT_PROPERTIES,
    ConnectionConfig,
    ConsumerConfig,
    load_config,
    parse_client_property,
    parse_delimiter,
)
from core.errors.exceptions import ConfigError
from core.logging.setup import generate_run_id, setup_logging
from core.logging.utilities import log_exception
from kfc.consumer.kafka_config import materialize_pem_env
from kfc.consumer.runner import EXIT_FATAL, EXIT_OK, run_consumer
from kfc.consumer.transport import AIOKafkaClient

logger = logging.getLogger(__name__)

# -X values that are commands rather than properties
LIST_COMMANDS = ("list", "help")
DUMP_COMMAND = "dump"


def _delimiter(value: str) -> bytes:
    try:
        return parse_delimiter(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(e.message) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kfc",
        description="Consume messages from a Kafka topic and write them to stdout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Offsets (-o):
    beginning   start at the first available message (default)
    end         only new messages
    stored      committed offset of the consumer group (needs -X group.id=...)
    <n>         absolute offset n
    -<n>        n messages before the current end

Examples:
    # Whole topic, one message per line, stop at the end
    kfc -b localhost:9092 -e events

    # Last 10 messages of partition 2 with their offsets and keys
    kfc -p 2 -o -10 -O -k '\\t' events

    # Tail the topic with a group and a larger fetch wait
    kfc -o stored -X group.id=kfc -X fetch.max.wait.ms=500 events
        """,
    )

    parser.add_argument("topic", nargs="?", help="Topic to consume from")

    parser.add_argument(
        "-b",
        "--brokers",
        default=None,
        help="Bootstrap broker(s) host[:port],... (default: KAFKA_BOOTSTRAP_SERVERS or localhost:9092)",
    )
    parser.add_argument(
        "-p",
        "--partition",
        type=int,
        default=None,
        help="Consume only this partition (default: all partitions)",
    )
    parser.add_argument(
        "-o",
        "--offset",
        default="beginning",
        help="Offset to start consuming from (default: beginning)",
    )
    parser.add_argument(
        "-d",
        "--delimiter",
        type=_delimiter,
        default=b"\n",
        help="Message delimiter byte, e.g. '\\n', '\\t', '\\x1f' (default: newline)",
    )
    parser.add_argument(
        "-k",
        "--key-delimiter",
        type=_delimiter,
        default=None,
        help="Print message keys, followed by this delimiter byte",
    )
    parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=None,
        help="Exit after consuming this many messages",
    )
    parser.add_argument(
        "-e",
        "--exit",
        action="store_true",
        dest="exit_on_eof",
        help="Exit once the end of every consumed partition is reached",
    )
    parser.add_argument(
        "-O",
        "--print-offset",
        action="store_true",
        help="Print each message's offset before the key and payload",
    )
    parser.add_argument(
        "-u",
        "--unbuffered",
        action="store_true",
        help="Flush output after every message",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v: end-of-partition notices, -vv: debug)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    parser.add_argument(
        "-X",
        dest="properties",
        action="append",
        default=[],
        metavar="property=value",
        help="Set a Kafka client property. '-X list' shows supported properties, "
        "'-X dump' prints the effective client configuration and exits",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: KFC_CONFIG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write JSON structured logs to this file",
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = set(args.properties) & {*LIST_COMMANDS, DUMP_COMMAND}
    if not args.topic and not commands:
        parser.error("topic missing")

    return args


def build_config(args: argparse.Namespace) -> ConsumerConfig:
    """
    Resolve CLI arguments, config file and environment into a ConsumerConfig.

    Raises:
        ConfigError: unreadable config file, unknown property or invalid setting
    """
    file_config = load_config(args.config)

    connection = ConnectionConfig.from_env().merged(file_config.connection)
    if args.brokers:
        connection = replace(connection, bootstrap_servers=args.brokers)
    connection = materialize_pem_env(connection)

    client_properties = dict(file_config.client_properties)
    for prop in args.properties:
        if prop in LIST_COMMANDS or prop == DUMP_COMMAND:
            continue
        key, value = parse_client_property(prop)
        client_properties[key] = value

    config = ConsumerConfig(
        topic=args.topic or "",
        partition=args.partition,
        offset=args.offset,
        delimiter=args.delimiter,
        key_delimiter=args.key_delimiter,
        count=args.count,
        exit_on_eof=args.exit_on_eof,
        print_offset=args.print_offset,
        unbuffered=args.unbuffered,
        verbosity=verbosity_from_args(args),
        connection=connection,
        client_properties=client_properties,
    )
    connection.validate()
    return config


def verbosity_from_args(args: argparse.Namespace) -> int:
    if args.quiet:
        return 0
    return 1 + args.verbose


def print_property_list(out=None) -> None:
    out = out or sys.stdout
    print("Supported client properties (-X name=value):", file=out)
    width = max(len(name) for name in SUPPORTED_CLIENT_PROPERTIES)
    for name, description in sorted(SUPPORTED_CLIENT_PROPERTIES.items()):
        print(f"  {name.replace('_', '.'):<{width}}  {description}", file=out)


def dump_client_config(config: ConsumerConfig, out=None) -> None:
    """Print the effective Kafka consumer configuration, secrets masked."""
    out = out or sys.stdout
    client_config = AIOKafkaClient(config.connection, config.client_properties).build_consumer_config()
    for key, value in sorted(client_config.items()):
        if key == "sasl_plain_password" and value:
            value = "********"
        elif key == "ssl_context":
            value = ", ".join(
                path
                for path in (
                    config.connection.ssl_cafile,
                    config.connection.ssl_certfile,
                    config.connection.ssl_keyfile,
                )
                if path
            ) or "default"
        print(f"{key} = {value}", file=out)


def main(argv: list[str] | None = None) -> int:
    load_dotenv(Path.cwd() / ".env")

    args = parse_args(argv)
    verbosity = verbosity_from_args(args)
    setup_logging(
        name="kfc",
        verbosity=verbosity,
        log_file=args.log_file,
        stage="consume",
        run_id=generate_run_id(),
    )

    if any(prop in LIST_COMMANDS for prop in args.properties):
        print_property_list()
        return EXIT_OK

    try:
        config = build_config(args)
        if DUMP_COMMAND in args.properties:
            dump_client_config(config)
            return EXIT_OK
    except ConfigError as e:
        log_exception(logger, e, str(e), include_traceback=False)
        return EXIT_FATAL

    try:
        return run_consumer(config)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down")
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
