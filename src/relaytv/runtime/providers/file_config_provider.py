"""
File-based channel configuration provider.

Loads the channel definition from a JSON or YAML file, chosen by suffix.

Expected format (YAML shown; JSON uses the same keys):

    sources:
      - nickjfuentes
      - joeldavis
    playlist:
      - {reference_id: v5fw85g, duration_sec: 1662}
      - parts:
          - {reference_id: v4qrqb0, duration_sec: 3676}
          - {reference_id: v4qskxc, duration_sec: 3765}
    poll_interval_sec: 60
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from ...infra.exceptions import ConfigurationError
from ..config import ChannelConfig

_logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


class FileChannelConfigProvider:
    """Loads a ChannelConfig from a channel file (loaded once, then cached)."""

    def __init__(self, config_path: Path | str):
        self._config_path = Path(config_path)
        self._config: ChannelConfig | None = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get_channel_config(self, **overrides: Any) -> ChannelConfig:
        """
        Return the channel configuration, loading it on first use.

        Keyword arguments (``poll_interval_sec``, ``tick_interval_sec``) are
        fallbacks for intervals the file does not set.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if self._config is None:
            data = self._read()
            self._config = ChannelConfig.from_dict(data, **overrides)
            _logger.info(
                "Loaded channel config from %s: %d sources, %d playlist entries",
                self._config_path,
                len(self._config.candidates),
                len(self._config.playlist),
            )
        return self._config

    def _read(self) -> dict[str, Any]:
        path = self._config_path
        if not path.is_file():
            raise ConfigurationError(f"Channel config file not found: {path}")

        suffix = path.suffix.lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix in JSON_SUFFIXES:
                    data = json.load(f)
                elif suffix in YAML_SUFFIXES:
                    data = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(
                        f"Unsupported channel config format {suffix!r}: {path}"
                    )
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read channel config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Channel config must be a mapping: {path}")
        return data
