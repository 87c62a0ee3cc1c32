"""Unit tests for ConfigLoader"""
import json

import pytest

from config import ClientConfig, ConfigLoader, EnvVarPreprocessor
from config.models.middleware import BearerMiddlewareModel, SimpleMiddlewareModel
from core.exceptions import ConfigError


@pytest.mark.unit
@pytest.mark.config
class TestConfigLoader:

    def test_from_yaml_with_env_preprocessor(self, client_config_yaml):
        """
        GIVEN a YAML client config with environment placeholders
        WHEN it is loaded with an EnvVarPreprocessor
        THEN placeholders are resolved and the config is fully validated
        """
        loader = ConfigLoader([EnvVarPreprocessor({"API_KEY": "k-123"})])

        cfg = loader.from_yaml(client_config_yaml)

        assert isinstance(cfg, ClientConfig)
        assert cfg.timeout == 2.5
        assert cfg.headers == {"User-Agent": "pipeline-test", "X-Api-Key": "k-123"}
        assert cfg.retry.max_attempts == 2
        assert cfg.retry.retry_status_codes == [503]
        assert cfg.allowed_status_codes == [200, 201]
        assert isinstance(cfg.middleware[0], SimpleMiddlewareModel)
        assert isinstance(cfg.middleware[1], BearerMiddlewareModel)
        assert cfg.transport.tcp_connection.limit == 20
        assert cfg.transport.tcp_connection.force_close is True

    def test_from_yaml_file(self, tmp_path, client_config_yaml):
        path = tmp_path / "client.yaml"
        path.write_text(client_config_yaml)
        loader = ConfigLoader()
        loader.add_preprocessor(EnvVarPreprocessor({"API_KEY": "file"}))

        assert loader.from_yaml(path).headers["X-Api-Key"] == "file"
        assert loader.from_yaml(str(path)).headers["X-Api-Key"] == "file"

    def test_from_json(self):
        cfg = ConfigLoader().from_json(json.dumps({"timeout": 0, "debug": True}))

        assert cfg.timeout == 0
        assert cfg.debug is True

    def test_empty_yaml_gives_defaults(self):
        cfg = ConfigLoader().from_yaml("")

        assert cfg.timeout == 5.0
        assert cfg.middleware == []

    def test_invalid_config_raises_config_error(self):
        with pytest.raises(ConfigError, match="invalid client config"):
            ConfigLoader().from_dict({"timeout": -1})

    def test_unknown_middleware_type_rejected(self):
        with pytest.raises(ConfigError):
            ConfigLoader().from_dict({"middleware": [{"type": "teleport"}]})

    def test_unparseable_source_raises_config_error(self):
        with pytest.raises(ConfigError, match="could not parse"):
            ConfigLoader().from_json("{not json")
