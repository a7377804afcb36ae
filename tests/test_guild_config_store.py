import asyncio
import json
from pathlib import Path

import pytest

from introcord.configuration.guild_config import ArchiveDuration, GuildConfig
from introcord.configuration.guild_config_store import ConfigStoreError, GuildConfigStore


@pytest.fixture()
def store(tmp_path: Path) -> GuildConfigStore:
    return GuildConfigStore(tmp_path / "configs")


@pytest.mark.asyncio
async def test_get_returns_defaults_without_writing(store: GuildConfigStore) -> None:
    config = await store.get("123")

    assert config.guild_id == "123"
    assert config.enabled_channels == set()
    assert config.include_bots is False
    assert config.title_template is None
    assert config.reply_message is None
    assert config.archive_duration == ArchiveDuration.ONE_DAY
    assert int(config.archive_duration) == 1440
    assert not store.config_path("123").exists()


@pytest.mark.asyncio
async def test_set_then_reload_round_trips(store: GuildConfigStore) -> None:
    original = GuildConfig(
        guild_id="42",
        enabled_channels={"100", "200"},
        include_bots=True,
        title_template="${author.username}: ${first50}",
        reply_message="Welcome ${author}",
        archive_duration=ArchiveDuration.ONE_WEEK,
        manually_renamed_threads={"900"},
    )

    await store.set("42", original)
    store.clear_cache()
    loaded = await store.get("42")

    assert loaded == original
    payload = json.loads(store.config_path("42").read_text(encoding="utf-8"))
    assert payload["enabledChannels"] == ["100", "200"]
    assert payload["manuallyRenamedThreads"] == ["900"]
    assert payload["archiveDuration"] == 10080


@pytest.mark.asyncio
async def test_update_persists_field_changes(store: GuildConfigStore) -> None:
    await store.update("7", archive_duration=ArchiveDuration.ONE_HOUR, include_bots=True)
    store.clear_cache()

    config = await store.get("7")
    assert config.archive_duration == ArchiveDuration.ONE_HOUR
    assert config.include_bots is True


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(store: GuildConfigStore) -> None:
    with pytest.raises(ValueError):
        await store.update("7", not_a_field=True)
    with pytest.raises(ValueError):
        await store.update("7", guild_id="8")


@pytest.mark.asyncio
async def test_concurrent_modifications_are_not_lost(store: GuildConfigStore) -> None:
    async def add_channel(channel_id: str) -> None:
        await store.modify("5", lambda config: config.enabled_channels.add(channel_id))

    await asyncio.gather(*(add_channel(str(i)) for i in range(10)))
    store.clear_cache()

    config = await store.get("5")
    assert config.enabled_channels == {str(i) for i in range(10)}


@pytest.mark.asyncio
async def test_failed_write_leaves_cache_untouched(store: GuildConfigStore, monkeypatch) -> None:
    await store.update("9", enabled_channels={"1"})

    def failing_write(path, payload):
        raise ConfigStoreError("disk full")

    monkeypatch.setattr(GuildConfigStore, "_write_file", staticmethod(failing_write))

    with pytest.raises(ConfigStoreError):
        await store.modify("9", lambda config: config.enabled_channels.add("2"))

    cached = store.get_cached("9")
    assert cached is not None
    assert cached.enabled_channels == {"1"}


@pytest.mark.asyncio
async def test_corrupt_file_raises_store_error(store: GuildConfigStore) -> None:
    store.config_path("11").write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigStoreError):
        await store.get("11")


@pytest.mark.asyncio
async def test_non_object_file_raises_store_error(store: GuildConfigStore) -> None:
    store.config_path("12").write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ConfigStoreError):
        await store.get("12")


def test_from_dict_falls_back_on_unsupported_archive_duration() -> None:
    config = GuildConfig.from_dict("1", {"archiveDuration": 30, "enabledChannels": [5, "6"]})

    assert config.archive_duration == ArchiveDuration.ONE_DAY
    assert config.enabled_channels == {"5", "6"}


def test_archive_duration_labels() -> None:
    assert ArchiveDuration.ONE_HOUR.label == "1 hour"
    assert ArchiveDuration.ONE_DAY.label == "24 hours"
    assert ArchiveDuration.THREE_DAYS.label == "3 days"
    assert ArchiveDuration.ONE_WEEK.label == "7 days"
