import pytest

from aski.errors import ConfigError
from aski.settings import config_path, ensure_config, load_config, load_settings, select_profile, set_current_profile


def test_ensure_config_writes_default(aski_home):
    path = ensure_config()
    assert path == aski_home / "config.yaml"
    assert path.exists()
    app_config = load_config(path)
    assert app_config.current_profile == "default"
    assert {p.name for p in app_config.profiles} == {"default", "claude"}
    assert app_config.profile("claude").is_claude
    assert app_config.keep_partial_on_error is False


def test_ensure_config_keeps_existing_file(aski_home):
    path = config_path()
    path.write_text("current_profile: mine\nprofiles:\n  - name: mine\n    model: gpt-4o-mini\n", encoding="utf-8")
    ensure_config()
    assert load_config(path).current_profile == "mine"


def test_missing_and_empty_files_give_defaults(tmp_path):
    assert load_settings(tmp_path / "absent.yaml") == {}
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_config(empty).profile().name == "default"


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("profiles: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid YAML"):
        load_config(path)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_settings(path)


def test_invalid_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("profiles:\n  - name: x\n    response_format: xml\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_seed_messages_and_parameters(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "profiles:\n"
        "  - name: default\n"
        "    model: gpt-4o\n"
        "    messages:\n"
        "      - role: user\n"
        "        content: ping\n"
        "      - role: assistant\n"
        "        content: pong\n"
        "    custom_parameters:\n"
        "      temperature: 0.5\n"
        "      stop: END\n",
        encoding="utf-8",
    )
    profile = load_config(path).profile()
    assert [m.content for m in profile.messages] == ["ping", "pong"]
    assert profile.custom_parameters.stop == ["END"]


def test_select_profile_unknown(aski_home):
    app_config = load_config(ensure_config())
    with pytest.raises(ConfigError, match="Available: default, claude"):
        select_profile(app_config, "missing")


def test_set_current_profile(aski_home):
    path = ensure_config()
    set_current_profile("claude", path)
    app_config = load_config(path)
    assert app_config.current_profile == "claude"
    assert select_profile(app_config).name == "claude"


def test_set_current_profile_rejects_unknown(aski_home):
    path = ensure_config()
    with pytest.raises(ConfigError):
        set_current_profile("missing", path)
    assert load_config(path).current_profile == "default"
