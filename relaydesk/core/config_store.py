"""Bot config store: in-memory current value backed by a JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from relaydesk.core.fanout import EventPublisher
from relaydesk.exceptions import ConfigPersistenceError
from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.bot_config import BotConfig
from relaydesk.schemas.events import ObserverEvent

logger = get_logger("config_store")


class ConfigPersistence(Protocol):
    def load(self) -> Optional[BotConfig]: ...
    def save(self, config: BotConfig) -> None: ...


class JsonConfigFile:
    """Reads and writes the bot config as pretty-printed JSON."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[BotConfig]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return BotConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Failed to load bot config from %s: %s", self.path, e)
            return None

    def save(self, config: BotConfig) -> None:
        payload = json.dumps(config.to_wire(), indent=2, ensure_ascii=False)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise ConfigPersistenceError(f"Could not write {self.path}: {e}") from e


class ConfigStore:
    """
    Holds the current BotConfig. `replace` persists first and only then makes the
    new value current and broadcasts it.
    """

    def __init__(
        self,
        persistence: ConfigPersistence,
        publisher: Optional[EventPublisher] = None,
    ) -> None:
        self._persistence = persistence
        self._publisher = publisher
        self._config = BotConfig()

    @property
    def current(self) -> BotConfig:
        return self._config

    def load(self) -> BotConfig:
        loaded = self._persistence.load()
        if loaded is not None:
            self._config = loaded
            logger.info("Bot config loaded (status=%s)", loaded.status.value)
        return self._config

    def replace(self, raw: Any) -> Optional[BotConfig]:
        """
        Validate and apply a whole new config. Returns None (and changes nothing)
        when the payload is invalid or cannot be persisted.
        """
        try:
            config = raw if isinstance(raw, BotConfig) else BotConfig.model_validate(raw)
        except ValidationError as e:
            logger.warning("Ignoring invalid bot config update: %s", e)
            return None
        try:
            self._persistence.save(config)
        except ConfigPersistenceError as e:
            logger.error("Bot config not applied: %s", e)
            return None
        self._config = config
        if self._publisher is not None:
            self._publisher.publish(ObserverEvent.BOT_CONFIG_UPDATED, config.to_wire())
        return config
