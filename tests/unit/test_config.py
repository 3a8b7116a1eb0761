"""Unit tests for configuration loading

Tests YAML loading, port coercion, environment overrides and the
errors raised for unusable configuration.
"""
import pytest

from hostmon.core import config as config_module
from hostmon.core.config import DatabaseConfig, build_config, get_config, load_config_from
from hostmon.errors import ConfigError

VALID_YAML = """
log_level: DEBUG
database:
  host: influxdb.local
  port: "8086"
  username: collectd
  password: secret
  name: collectd
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep HOSTMON_* variables from the developer's shell out of the tests"""
    for field in DatabaseConfig.model_fields:
        monkeypatch.delenv(f"HOSTMON_DATABASE_{field.upper()}", raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda *args, **kwargs: False)


class TestDatabasePort:
    """database.port accepts numbers and numeral strings"""

    def test_integer(self):
        assert DatabaseConfig(host="h", name="n", port=8087).port == 8087

    def test_numeral_string(self):
        assert DatabaseConfig(host="h", name="n", port="8087").port == 8087

    def test_padded_string(self):
        assert DatabaseConfig(host="h", name="n", port=" 8087 ").port == 8087

    def test_non_numeral_is_config_error(self):
        with pytest.raises(ConfigError):
            build_config({"database": {"host": "h", "name": "n", "port": "eighty"}}, environ={})

    def test_default_port(self):
        assert DatabaseConfig(host="h", name="n").port == 8086

    def test_base_url(self):
        assert DatabaseConfig(host="h", name="n", port="9000").base_url == "http://h:9000"


class TestBuildConfig:
    """Validation and environment overrides"""

    def test_defaults(self):
        config = build_config({"database": {"host": "h", "name": "n"}}, environ={})
        assert config.port == 8000
        assert config.log_level == "INFO"
        assert config.database.timeout is None
        assert config.database.max_concurrency is None

    def test_missing_database_section(self):
        with pytest.raises(ConfigError):
            build_config({}, environ={})

    def test_missing_database_name(self):
        with pytest.raises(ConfigError):
            build_config({"database": {"host": "h"}}, environ={})

    def test_environment_overrides_file(self):
        environ = {"HOSTMON_DATABASE_PASSWORD": "from-env", "HOSTMON_DATABASE_PORT": "9999"}
        config = build_config({"database": {"host": "h", "name": "n", "password": "file"}}, environ=environ)
        assert config.database.password == "from-env"
        assert config.database.port == 9999

    def test_environment_alone_is_enough(self):
        environ = {"HOSTMON_DATABASE_HOST": "env-host", "HOSTMON_DATABASE_NAME": "env-db"}
        config = build_config({}, environ=environ)
        assert config.database.host == "env-host"
        assert config.database.name == "env-db"

    def test_concurrency_cap_must_be_positive(self):
        with pytest.raises(ConfigError):
            build_config({"database": {"host": "h", "name": "n", "max_concurrency": 0}}, environ={})


class TestLoadConfigFrom:
    """YAML files"""

    def test_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(VALID_YAML)

        config = load_config_from(str(path))

        assert config.log_level == "DEBUG"
        assert config.database.host == "influxdb.local"
        assert config.database.port == 8086
        assert config.database.username == "collectd"
        assert config.database.name == "collectd"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config_from(str(tmp_path / "absent.yaml"))

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("database: [unclosed")
        with pytest.raises(ConfigError):
            load_config_from(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config_from(str(path))

    def test_get_config_is_cached(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(VALID_YAML)
        monkeypatch.setenv("HOSTMON_CONFIG", str(path))
        monkeypatch.setattr(config_module, "_config", None)

        assert get_config() is get_config()
        assert get_config().database.host == "influxdb.local"
