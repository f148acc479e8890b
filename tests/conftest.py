import pytest

from relaydesk.config import Settings

pytest_plugins = [
    "tests.fixtures.relay_fixtures",
]


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing every path at a per-test temporary directory."""
    return Settings(
        upload_dir=str(tmp_path / "uploads"),
        public_dir=str(tmp_path / "public"),
        bot_config_path=str(tmp_path / "bot-config.json"),
        provider_enabled=False,
        provider_webhook_secret=None,
        public_base_url=None,
        log_level="WARNING",
    )
