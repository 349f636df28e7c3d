"""Client configuration.

Settings come from a YAML file (default `config/client.yaml`, or the path in
CHATBOT_CONFIG) and are then overridden by environment variables:

- CHATBOT_API_URL: base URL of the chat service
- CHATBOT_STORAGE_PATH: SQLite file backing the key-value store
- CHATBOT_LOG_LEVEL: log level for LoggerManager
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from chatcore.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "client.yaml"

ENV_OVERRIDES = {
    "CHATBOT_API_URL": "api_url",
    "CHATBOT_STORAGE_PATH": "storage_path",
    "CHATBOT_LOG_LEVEL": "log_level",
}


class ConfigLoader:
    """
    Loads and provides access to a YAML configuration file.
    Supports nested keys via dot notation.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.config = self._load()

    def _load(self) -> dict:
        path = self.path
        if not path.exists():
            logger.error("config.missing", extra={"extra_data": {"path": str(path)}})
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if data is None:
                data = {}
            if not isinstance(data, dict):
                logger.error("config.invalid_type", extra={"extra_data": {"path": str(path)}})
                raise ValueError(f"Invalid config (expected mapping) at {path}")
            logger.debug("config.loaded", extra={"extra_data": {"path": str(path)}})
            return data
        except Exception as e:
            logger.error(
                "config.load.fail",
                extra={"extra_data": {"path": str(path), "error": str(e)}},
                exc_info=True,
            )
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """Supports dot notation for nested access."""
        parts = key.split(".")
        val = self.config
        for part in parts:
            if isinstance(val, dict) and part in val:
                val = val[part]
            else:
                return default
        return val


class ClientSettings(BaseModel):
    """Resolved client settings.

    Attributes:
        api_url: Base URL of the chat service
        request_timeout: Per-request timeout in seconds
        storage_path: SQLite file for durable key-value storage
        log_level: Logging threshold
        log_json: Write file logs as JSON lines
        serialize_sends: Queue concurrent sends instead of letting them race
    """

    model_config = ConfigDict(extra="forbid")

    api_url: str = "http://localhost:5000"
    request_timeout: float = Field(30.0, gt=0)
    storage_path: Path = Path("data/chatbot_store.db")
    log_level: str = "INFO"
    log_json: bool = False
    serialize_sends: bool = False


def load_settings(path: Optional[str | Path] = None) -> ClientSettings:
    """Build ClientSettings from YAML plus environment overrides.

    Args:
        path: Config file; defaults to CHATBOT_CONFIG, then config/client.yaml.
            A missing file means model defaults.

    Returns:
        ClientSettings instance

    Raises:
        ValueError: If the YAML file is not a mapping or values fail validation
    """
    config_path = Path(path or os.getenv("CHATBOT_CONFIG") or DEFAULT_CONFIG_PATH)

    values: dict = {}
    if config_path.exists():
        loader = ConfigLoader(config_path)
        values = {
            "api_url": loader.get("api.url"),
            "request_timeout": loader.get("api.timeout_seconds"),
            "storage_path": loader.get("storage.path"),
            "log_level": loader.get("logging.level"),
            "log_json": loader.get("logging.json"),
            "serialize_sends": loader.get("chat.serialize_sends"),
        }
        values = {key: value for key, value in values.items() if value is not None}
    else:
        logger.debug(
            "config.defaults", extra={"extra_data": {"path": str(config_path)}}
        )

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    return ClientSettings(**values)
