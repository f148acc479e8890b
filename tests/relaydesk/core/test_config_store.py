"""Tests for ConfigStore and JsonConfigFile."""

import json

from relaydesk.core.config_store import ConfigStore, JsonConfigFile
from relaydesk.exceptions import ConfigPersistenceError
from relaydesk.schemas.bot_config import BotConfig, BotStatus
from relaydesk.schemas.events import ObserverEvent

NEW_CONFIG = {
    "status": "paused",
    "greeting": "Oi!",
    "farewell": "Tchau!",
    "autoReplies": [{"trigger": "pix", "content": "Aceitamos PIX."}],
}


class OrderedPersistence:
    """Records saves in the same log as publishes so ordering can be asserted."""

    def __init__(self, log, fail: bool = False) -> None:
        self.log = log
        self.fail = fail

    def load(self):
        return None

    def save(self, config):
        if self.fail:
            raise ConfigPersistenceError("disk full")
        self.log.append(("save", config.status))


class LoggingPublisher:
    def __init__(self, log) -> None:
        self.log = log

    def publish(self, event, data=None):
        self.log.append(("publish", event))


def test_defaults_without_file(tmp_path, publisher):
    store = ConfigStore(JsonConfigFile(tmp_path / "bot-config.json"), publisher)
    config = store.load()
    assert config.is_active
    assert [r.trigger for r in config.auto_replies] == ["preço", "horário", "emergência"]


def test_replace_persists_before_broadcast():
    log = []
    store = ConfigStore(OrderedPersistence(log), LoggingPublisher(log))

    result = store.replace(NEW_CONFIG)

    assert result is not None
    assert log == [("save", BotStatus.PAUSED), ("publish", ObserverEvent.BOT_CONFIG_UPDATED)]
    assert store.current.status == BotStatus.PAUSED


def test_failed_save_keeps_previous_config():
    log = []
    store = ConfigStore(OrderedPersistence(log, fail=True), LoggingPublisher(log))

    assert store.replace(NEW_CONFIG) is None
    assert log == []
    assert store.current.is_active


def test_invalid_payload_is_ignored(publisher, tmp_path):
    store = ConfigStore(JsonConfigFile(tmp_path / "bot-config.json"), publisher)
    assert store.replace({"status": "sleeping"}) is None
    assert store.replace({"autoReplies": "nope"}) is None
    assert publisher.events == []
    assert not (tmp_path / "bot-config.json").exists()


def test_file_round_trip_uses_camel_case(tmp_path, publisher):
    path = tmp_path / "bot-config.json"
    store = ConfigStore(JsonConfigFile(path), publisher)
    store.replace(NEW_CONFIG)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["autoReplies"] == [{"trigger": "pix", "content": "Aceitamos PIX."}]
    assert publisher.of(ObserverEvent.BOT_CONFIG_UPDATED) == [on_disk]

    reloaded = ConfigStore(JsonConfigFile(path)).load()
    assert reloaded == BotConfig.model_validate(NEW_CONFIG)


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "bot-config.json"
    path.write_text("{not json", encoding="utf-8")
    assert ConfigStore(JsonConfigFile(path)).load() == BotConfig()
