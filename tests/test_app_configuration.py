from pathlib import Path

import pytest

from introcord.configuration.app_configuration import AppConfig


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_path.write_text(
        "\n".join([
            'community_name: "Dodo Payments"',
            'builder_role_name: "Dodo Builder"',
            "intro_channel_id: 111",
            "working_channel_id: '222'",
            "showcase_channel_id: 333",
            "mod_role_id: 444",
            "builder_role_id: 555",
            "reminders:",
            "  delay_hours: 2",
            "  check_interval_seconds: 60",
            "completions:",
            "  ttl_hours: 1",
            "task_queue:",
            "  base_delay_seconds: 0.5",
            "  max_delay_seconds: 30",
        ]),
        encoding="utf-8",
    )

    config = AppConfig(config_path)

    assert config.community_name == "Dodo Payments"
    assert config.builder_role_name == "Dodo Builder"
    assert config.intro_channel_id == "111"
    assert config.working_channel_id == "222"
    assert config.showcase_channel_id == "333"
    assert config.mod_role_id == "444"
    assert config.builder_role_id == "555"
    assert config.reminder_delay_seconds == pytest.approx(7200.0)
    assert config.reminder_check_interval == pytest.approx(60.0)
    assert config.completion_ttl_seconds == pytest.approx(3600.0)
    assert config.completion_sweep_interval == pytest.approx(3600.0)
    assert config.task_queue_settings == {"base_delay": 0.5, "max_delay": 30.0, "inter_task_delay": 0.1}


def test_zero_ids_are_unset_and_showcase_falls_back(config_path: Path) -> None:
    config_path.write_text("intro_channel_id: 0\nworking_channel_id: 222\nshowcase_channel_id: 0\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.intro_channel_id is None
    assert config.showcase_channel_id == "222"
    assert config.builder_role_id is None


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.community_name == "our community"
    assert config.builder_role_name == "Builder"
    assert config.reminder_delay_seconds == pytest.approx(86400.0)
    assert config.completion_ttl_seconds == pytest.approx(86400.0)


def test_invalid_yaml_returns_empty_mapping(config_path: Path) -> None:
    config_path.write_text("reminders: [unterminated", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.data == {}


def test_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("community_name: First\n", encoding="utf-8")
    config = AppConfig(config_path)
    assert config.community_name == "First"

    config_path.write_text("community_name: Second\n", encoding="utf-8")
    config.reload()
    assert config.get("community_name") == "Second"
