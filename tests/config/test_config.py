import os
from pathlib import Path
from unittest.mock import patch

import pytest

from config.config import (
    SUPPORTED_CLIENT_PROPERTIES,
    ConnectionConfig,
    ConsumerConfig,
    FileConfig,
    _bootstrap_from_kafka_url,
    _expand_env_vars,
    coerce_property_value,
    load_config,
    load_yaml,
    normalize_property_name,
    parse_client_property,
    parse_delimiter,
)
from core.errors.exceptions import ConfigError

# =========================================================================
# load_yaml
# =========================================================================


class TestLoadYaml:
    def test_returns_empty_dict_for_nonexistent_file(self):
        assert load_yaml(Path("/nonexistent/path/config.yaml")) == {}

    def test_loads_yaml_file(self, tmp_path):
        config_file = tmp_path / "test.yaml"
        config_file.write_text("key: value\nnested:\n  a: 1\n")
        assert load_yaml(config_file) == {"key": "value", "nested": {"a": 1}}

    def test_returns_empty_dict_for_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_yaml(config_file) == {}


# =========================================================================
# _expand_env_vars
# =========================================================================


class TestExpandEnvVars:
    def test_expands_simple_variable(self):
        with patch.dict(os.environ, {"MY_VAR": "hello"}):
            assert _expand_env_vars("prefix-${MY_VAR}-suffix") == "prefix-hello-suffix"

    def test_expands_variable_with_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING_VAR:-fallback}") == "fallback"

    def test_uses_env_value_over_default(self):
        with patch.dict(os.environ, {"MY_VAR": "real_value"}):
            assert _expand_env_vars("${MY_VAR:-fallback}") == "real_value"

    def test_expands_in_nested_structures(self):
        with patch.dict(os.environ, {"BROKER": "kafka:9092"}):
            data = {"kafka": {"connection": {"bootstrap_servers": "${BROKER}"}}, "list": ["${BROKER}", 1]}
            result = _expand_env_vars(data)
            assert result == {"kafka": {"connection": {"bootstrap_servers": "kafka:9092"}}, "list": ["kafka:9092", 1]}

    def test_returns_non_string_unchanged(self):
        assert _expand_env_vars(42) == 42
        assert _expand_env_vars(None) is None

    def test_keeps_literal_when_no_env_var(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${UNDEFINED_VAR}") == "${UNDEFINED_VAR}"

    def test_empty_default_value(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING:-}") == ""


# =========================================================================
# parse_delimiter
# =========================================================================


class TestParseDelimiter:
    def test_single_character(self):
        assert parse_delimiter(",") == b","

    @pytest.mark.parametrize(
        "text, expected",
        [("\\n", b"\n"), ("\\t", b"\t"), ("\\r", b"\r"), ("\\0", b"\0"), ("\\\\", b"\\")],
    )
    def test_escapes(self, text, expected):
        assert parse_delimiter(text) == expected

    def test_hex_escape(self):
        assert parse_delimiter("\\x1f") == b"\x1f"

    def test_rejects_multiple_characters(self):
        with pytest.raises(ConfigError, match="Invalid delimiter"):
            parse_delimiter("ab")

    def test_rejects_bad_hex(self):
        with pytest.raises(ConfigError):
            parse_delimiter("\\xZZ")

    def test_rejects_multibyte_character(self):
        with pytest.raises(ConfigError, match="single byte"):
            parse_delimiter("é")

    def test_rejects_empty(self):
        with pytest.raises(ConfigError):
            parse_delimiter("")


# =========================================================================
# Client properties
# =========================================================================


class TestClientProperties:
    def test_normalizes_dotted_names(self):
        assert normalize_property_name("fetch.max.wait.ms") == "fetch_max_wait_ms"
        assert normalize_property_name("group-id") == "group_id"

    def test_strips_topic_prefix(self):
        assert normalize_property_name("topic.auto.offset.reset") == "auto_offset_reset"

    def test_coerces_values(self):
        assert coerce_property_value("fetch_max_wait_ms", "500") == 500
        assert coerce_property_value("check_crcs", "true") is True
        assert coerce_property_value("enable_auto_commit", "False") is False
        assert coerce_property_value("max_poll_records", 7) == 7

    @pytest.mark.parametrize(
        "name", ["group_id", "client_id", "isolation_level", "auto_offset_reset", "api_version"]
    )
    def test_string_properties_stay_strings(self, name):
        assert coerce_property_value(name, "123") == "123"
        assert coerce_property_value(name, 123) == "123"

    def test_parse_client_property(self):
        assert parse_client_property("group.id=kfc") == ("group_id", "kfc")
        assert parse_client_property("max.poll.records=10") == ("max_poll_records", 10)

    def test_numeric_group_id_is_string(self):
        assert parse_client_property("group.id=123") == ("group_id", "123")
        assert parse_client_property("client.id=42") == ("client_id", "42")

    def test_value_may_contain_equals(self):
        assert parse_client_property("client.id=a=b") == ("client_id", "a=b")

    def test_missing_equals(self):
        with pytest.raises(ConfigError, match="Expected -X property=value"):
            parse_client_property("group.id")

    def test_unknown_property(self):
        with pytest.raises(ConfigError, match="Unknown client property: bogus.setting"):
            parse_client_property("bogus.setting=1")

    def test_supported_properties_have_descriptions(self):
        assert all(SUPPORTED_CLIENT_PROPERTIES.values())


# =========================================================================
# ConnectionConfig
# =========================================================================


class TestConnectionConfig:
    def test_defaults(self):
        connection = ConnectionConfig()
        assert connection.bootstrap_servers == "localhost:9092"
        assert connection.security_protocol == "PLAINTEXT"
        assert connection.metadata_timeout_ms == 5000

    def test_password_not_in_repr(self):
        assert "secret" not in repr(ConnectionConfig(sasl_plain_password="secret"))

    def test_from_env_bootstrap_servers(self, monkeypatch):
        monkeypatch.setenv("KAFKA_BOOTSTRAP_SERVERS", "a:9092,b:9092")
        assert ConnectionConfig.from_env().bootstrap_servers == "a:9092,b:9092"

    def test_from_env_default(self):
        assert ConnectionConfig.from_env().bootstrap_servers == "localhost:9092"

    def test_from_env_kafka_url_enables_ssl(self, monkeypatch):
        monkeypatch.setenv("KAFKA_URL", "kafka+ssl://a.example:9096,kafka+ssl://b.example:9096")
        connection = ConnectionConfig.from_env()
        assert connection.bootstrap_servers == "a.example:9096,b.example:9096"
        assert connection.security_protocol == "SSL"

    def test_bootstrap_servers_win_over_kafka_url(self, monkeypatch):
        monkeypatch.setenv("KAFKA_BOOTSTRAP_SERVERS", "local:9092")
        monkeypatch.setenv("KAFKA_URL", "kafka+ssl://remote:9096")
        connection = ConnectionConfig.from_env()
        assert connection.bootstrap_servers == "local:9092"
        assert connection.security_protocol == "PLAINTEXT"

    def test_kafka_url_without_scheme(self):
        assert _bootstrap_from_kafka_url("a:9092 b:9092") == ("a:9092,b:9092", False)

    def test_merged_applies_known_keys(self):
        connection = ConnectionConfig().merged(
            {"bootstrap_servers": "broker:9092", "metadata_timeout_ms": "2500"}
        )
        assert connection.bootstrap_servers == "broker:9092"
        assert connection.metadata_timeout_ms == 2500

    def test_merged_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="Unknown kafka.connection settings"):
            ConnectionConfig().merged({"bootstrap": "x"})

    def test_merged_rejects_non_integer_timeout(self):
        with pytest.raises(ConfigError, match="metadata_timeout_ms must be an integer"):
            ConnectionConfig().merged({"metadata_timeout_ms": "soon"})

    def test_validate_security_protocol(self):
        with pytest.raises(ConfigError, match="security_protocol"):
            ConnectionConfig(security_protocol="TLS").validate()

    def test_validate_sasl_mechanism(self):
        with pytest.raises(ConfigError, match="sasl_mechanism"):
            ConnectionConfig(security_protocol="SASL_SSL", sasl_mechanism="GSSAPI").validate()

    def test_validate_requires_bootstrap(self):
        with pytest.raises(ConfigError, match="bootstrap_servers"):
            ConnectionConfig(bootstrap_servers="").validate()


# =========================================================================
# ConsumerConfig
# =========================================================================


class TestConsumerConfig:
    def test_defaults(self):
        config = ConsumerConfig(topic="events")
        assert config.partition is None
        assert config.offset == "beginning"
        assert config.delimiter == b"\n"
        assert config.key_delimiter is None
        assert config.message_limit is None
        config.validate()

    def test_is_frozen(self):
        config = ConsumerConfig(topic="events")
        with pytest.raises(AttributeError):
            config.topic = "other"

    def test_message_limit_ignores_zero(self):
        assert ConsumerConfig(topic="t", count=0).message_limit is None
        assert ConsumerConfig(topic="t", count=5).message_limit == 5

    def test_group_id_from_properties(self):
        config = ConsumerConfig(topic="t", client_properties={"group_id": "g"})
        assert config.group_id == "g"

    def test_requires_topic(self):
        with pytest.raises(ConfigError, match="topic missing"):
            ConsumerConfig(topic="").validate()

    def test_rejects_negative_partition(self):
        with pytest.raises(ConfigError, match="partition must be >= 0"):
            ConsumerConfig(topic="t", partition=-1).validate()

    def test_rejects_negative_count(self):
        with pytest.raises(ConfigError, match="count must be >= 0"):
            ConsumerConfig(topic="t", count=-3).validate()

    def test_rejects_multibyte_delimiter(self):
        with pytest.raises(ConfigError, match="delimiter"):
            ConsumerConfig(topic="t", delimiter=b"ab").validate()

    def test_stored_offset_requires_group(self):
        with pytest.raises(ConfigError, match="group.id"):
            ConsumerConfig(topic="t", offset="stored").validate()

    def test_stored_offset_with_group(self):
        ConsumerConfig(topic="t", offset="stored", client_properties={"group_id": "g"}).validate()

    def test_rejects_unknown_client_property(self):
        with pytest.raises(ConfigError, match="Unknown client property"):
            ConsumerConfig(topic="t", client_properties={"nope": 1}).validate()

    def test_validates_connection(self):
        with pytest.raises(ConfigError, match="security_protocol"):
            ConsumerConfig(topic="t", connection=ConnectionConfig(security_protocol="X")).validate()


# =========================================================================
# load_config
# =========================================================================


class TestLoadConfig:
    def test_no_path_and_no_env_returns_empty(self):
        assert load_config() == FileConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Configuration file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_loads_connection_and_properties(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_BROKER", "broker:9093")
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text(
            "kafka:\n"
            "  connection:\n"
            "    bootstrap_servers: ${TEST_BROKER}\n"
            "    security_protocol: SASL_SSL\n"
            "  consumer:\n"
            "    fetch.max.wait.ms: 250\n"
            "    group.id: kfc\n"
        )

        result = load_config(config_file)

        assert result.connection == {
            "bootstrap_servers": "broker:9093",
            "security_protocol": "SASL_SSL",
        }
        assert result.client_properties == {"fetch_max_wait_ms": 250, "group_id": "kfc"}

    def test_uses_kfc_config_env(self, tmp_path, monkeypatch):
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text("kafka:\n  consumer:\n    client.id: from-env-file\n")
        monkeypatch.setenv("KFC_CONFIG", str(config_file))

        assert load_config().client_properties == {"client_id": "from-env-file"}

    def test_numeric_group_id_in_yaml_is_string(self, tmp_path):
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text("kafka:\n  consumer:\n    group.id: 123\n")

        assert load_config(config_file).client_properties == {"group_id": "123"}

    def test_requires_kafka_section(self, tmp_path):
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text("other: {}\n")
        with pytest.raises(ConfigError, match="missing 'kafka:' section"):
            load_config(config_file)

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text("kafka: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(config_file)

    def test_unknown_consumer_property(self, tmp_path):
        config_file = tmp_path / "kfc.yaml"
        config_file.write_text("kafka:\n  consumer:\n    bogus: 1\n")
        with pytest.raises(ConfigError, match="Unknown client property"):
            load_config(config_file)
