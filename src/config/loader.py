import json
import yaml
from typing import Any, Callable
from pathlib import Path

from pydantic import ValidationError

from config.models.client import ClientConfig
from config.preprocessor import ConfigPreprocessor, ConfigValue
from core.exceptions import ConfigError


class ConfigLoader:
    """
    Load + preprocess + validate client configs from YAML/JSON.

    - Preprocessors run on raw data before Pydantic validation.
    - Result is fully validated ClientConfig
    """

    def __init__(self, preprocessors: list[ConfigPreprocessor] | None = None):
        self._preprocessors = preprocessors or []

    def add_preprocessor(self, preprocessor: ConfigPreprocessor) -> None:
        self._preprocessors.append(preprocessor)

    def from_yaml(self, source: str | Path) -> ClientConfig:
        data = self._load(source, parser=yaml.safe_load)
        return self._build(data)

    def from_json(self, source: str | Path) -> ClientConfig:
        data = self._load(source, parser=json.loads)
        return self._build(data)

    def from_dict(self, data: dict[str, Any]) -> ClientConfig:
        return self._build(data)

    def _load(
        self,
        source: str | Path,
        *,
        parser: Callable[[str], Any],
    ) -> ConfigValue:
        """
        Load config from a file path or raw string, then parse.
        """
        text = self._read_source(source)
        try:
            return parser(text)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"could not parse client config: {e}") from e

    def _read_source(self, source: str | Path) -> str:
        """
        Read source as text.
        If `source` is a file path, read it.
        Otherwise treat it as raw content.
        """
        if isinstance(source, Path):
            return source.read_text()

        # string: path or raw content?
        if "\n" not in source:
            p = Path(source)
            if p.is_file():
                return p.read_text()

        return source

    def _build(self, data: ConfigValue) -> ClientConfig:
        """
        Apply preprocessors and validate into ClientConfig.
        """
        if data is None:
            data = {}

        for pre in self._preprocessors:
            data = pre.process(data)

        try:
            return ClientConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"invalid client config: {e}") from e
