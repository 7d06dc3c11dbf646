"""Loader for the JSON configuration documents."""

import json
import threading
from pathlib import Path
from typing import TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from .models import CombinationCatalog, ContextMapping, MappingsConfig, ServerConfig

logger = structlog.get_logger()

MAPPINGS_FILE = "context-mappings.json"
SERVER_CONFIG_FILE = "server-config.json"
COMBINATIONS_FILE = "context-combinations.json"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigurationError(Exception):
    """A configuration document is missing or malformed."""

    pass


class ConfigLoader:
    """Loads and memoizes the configuration documents.

    Each document is read once on first use. Concurrent first calls are
    serialized by a lock so every caller sees the same parsed object.
    """

    def __init__(self, config_dir: Path | str | None = None) -> None:
        self.config_dir = Path(config_dir or settings.config_dir)
        self._lock = threading.Lock()
        self._mappings: MappingsConfig | None = None
        self._server_config: ServerConfig | None = None
        self._combinations: CombinationCatalog | None = None

    def _load(self, filename: str, model: type[ModelT]) -> ModelT:
        path = self.config_dir / filename
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        try:
            parsed = model.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
        logger.debug("config.loaded", file=filename)
        return parsed

    def load_mappings(self) -> MappingsConfig:
        """Load context-mappings.json.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        with self._lock:
            if self._mappings is None:
                self._mappings = self._load(MAPPINGS_FILE, MappingsConfig)
            return self._mappings

    def load_server_config(self) -> ServerConfig:
        """Load server-config.json.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        with self._lock:
            if self._server_config is None:
                self._server_config = self._load(SERVER_CONFIG_FILE, ServerConfig)
            return self._server_config

    def load_combinations(self) -> CombinationCatalog:
        """Load context-combinations.json, parsing every condition.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        with self._lock:
            if self._combinations is None:
                self._combinations = self._load(COMBINATIONS_FILE, CombinationCatalog)
                logger.info(
                    "config.combinations_loaded",
                    count=len(self._combinations.combinations),
                )
            return self._combinations

    def get_mapping(self, query_type: str) -> ContextMapping | None:
        return self.load_mappings().mappings.get(query_type)

    def is_valid_query_type(self, query_type: str) -> bool:
        return query_type in self.load_mappings().allowed_query_types

    def get_allowed_query_types(self) -> list[str]:
        return list(self.load_mappings().allowed_query_types)

    def reset(self) -> None:
        """Drop every memoized document so the next call rereads from disk."""
        with self._lock:
            self._mappings = None
            self._server_config = None
            self._combinations = None


_loader: ConfigLoader | None = None
_loader_lock = threading.Lock()


def get_config_loader() -> ConfigLoader:
    """Get the process-wide config loader."""
    global _loader
    with _loader_lock:
        if _loader is None:
            _loader = ConfigLoader()
        return _loader
