"""
kfc: command-line Kafka topic consumer.

Reads one topic (or one partition of it) from a configurable starting offset
and writes every message to stdout in a delimited text format.

Subpackages:
    consumer - offset parsing, metadata, EOF tracking, formatting, consume loop

Dependencies:
    - core.*: Error hierarchy and logging
    - config: Settings from CLI, environment and YAML
    - aiokafka: Kafka client
"""

from core import __version__

__all__ = ["__version__"]
