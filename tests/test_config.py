import pytest

from pipetunnel.config import ClientConfig, ServerConfig
from pipetunnel.exceptions import ConfigError
from pipetunnel.models.enums import LogLevel


@pytest.mark.unit
class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig.from_env({})

        assert config.LOCAL_BIND_IP == "127.0.0.1"
        assert config.LOCAL_PORT == 5000
        assert config.SERVER_HOST == "127.0.0.1"
        assert config.SERVER_PORT == 7000
        assert config.STATS_INTERVAL_MS == 2000
        assert config.stats_interval == 2.0
        assert config.connect_timeout == 15.0
        assert config.LOG_LEVEL is LogLevel.INFO

    def test_reads_environment(self):
        config = ClientConfig.from_env(
            {
                "LOCAL_PORT": "6000",
                "SERVER_HOST": "tunnel.example.com",
                "SERVER_PORT": " 7443 ",
                "STATS_INTERVAL_MS": "500",
                "LOG_LEVEL": "DEBUG",
            }
        )

        assert config.LOCAL_PORT == 6000
        assert config.SERVER_HOST == "tunnel.example.com"
        assert config.SERVER_PORT == 7443
        assert config.stats_interval == 0.5
        assert config.LOG_LEVEL is LogLevel.DEBUG

    def test_empty_values_keep_defaults(self):
        config = ClientConfig.from_env({"LOCAL_PORT": "", "SERVER_HOST": ""})

        assert config.LOCAL_PORT == 5000
        assert config.SERVER_HOST == "127.0.0.1"

    def test_bind_address_is_not_configurable(self):
        config = ClientConfig.from_env({"LOCAL_BIND_IP": "0.0.0.0"})

        assert config.LOCAL_BIND_IP == "127.0.0.1"
        with pytest.raises(TypeError):
            ClientConfig(LOCAL_BIND_IP="0.0.0.0")

    def test_non_integer_port(self):
        with pytest.raises(ConfigError, match="LOCAL_PORT"):
            ClientConfig.from_env({"LOCAL_PORT": "five"})

    def test_port_out_of_range(self):
        with pytest.raises(ConfigError, match="SERVER_PORT"):
            ClientConfig.from_env({"SERVER_PORT": "70000"})

    def test_dial_port_cannot_be_zero(self):
        with pytest.raises(ConfigError, match="SERVER_PORT"):
            ClientConfig.from_env({"SERVER_PORT": "0"})

    def test_listen_port_zero_allowed(self):
        assert ClientConfig.from_env({"LOCAL_PORT": "0"}).LOCAL_PORT == 0

    def test_non_positive_interval(self):
        with pytest.raises(ConfigError, match="STATS_INTERVAL_MS"):
            ClientConfig.from_env({"STATS_INTERVAL_MS": "0"})

    def test_unknown_log_level(self):
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            ClientConfig.from_env({"LOG_LEVEL": "verbose"})

    def test_validate_after_override(self):
        config = ClientConfig.from_env({})
        config.CONNECT_TIMEOUT_MS = -1

        with pytest.raises(ConfigError):
            config.validate()


@pytest.mark.unit
class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig.from_env({})

        assert config.TUNNEL_BIND_IP == "0.0.0.0"
        assert config.TUNNEL_PORT == 7000
        assert config.TARGET_HOST == "127.0.0.1"
        assert config.TARGET_PORT == 8085
        assert config.TLS_CERT == "./cert.pem"
        assert config.TLS_KEY == "./key.pem"
        assert config.STATS_INTERVAL_MS == 2000

    def test_reads_environment(self):
        config = ServerConfig.from_env(
            {
                "TUNNEL_PORT": "8443",
                "TARGET_HOST": "10.0.0.8",
                "TARGET_PORT": "22",
                "TLS_CERT": "/etc/tunnel/cert.pem",
                "TLS_KEY": "/etc/tunnel/key.pem",
            }
        )

        assert config.TUNNEL_PORT == 8443
        assert config.TARGET_HOST == "10.0.0.8"
        assert config.TARGET_PORT == 22
        assert config.TLS_CERT == "/etc/tunnel/cert.pem"
        assert config.TLS_KEY == "/etc/tunnel/key.pem"

    def test_ignores_client_variables(self):
        config = ServerConfig.from_env({"LOCAL_PORT": "1234"})

        assert not hasattr(config, "LOCAL_PORT")

    def test_invalid_target_port(self):
        with pytest.raises(ConfigError) as exc_info:
            ServerConfig.from_env({"TARGET_PORT": "-1"})

        assert exc_info.value.name == "TARGET_PORT"
