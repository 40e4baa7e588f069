import configparser

import pytest
from pydantic import ValidationError

from xdl.exceptions import ConfigurationError
from xdl.models.config import TWITTER_API_URL_PATTERNS, XdlConfig
from xdl.storage.config_manager import ConfigManager
from xdl.utils.hosts import DEFAULT_ALLOWED_HOSTS


def test_defaults():
    config = XdlConfig()
    assert config.media_host == "video.twimg.com"
    assert config.api_url_patterns == TWITTER_API_URL_PATTERNS
    assert config.allowed_hosts == DEFAULT_ALLOWED_HOSTS
    assert config.folder_for("video") == ""
    assert "config_path" not in XdlConfig.get_ini_keys()


def test_model_normalizes_values():
    config = XdlConfig(
        image_folder="..\\pics/./shots/",
        video_folder=" clips ",
        allowed_hosts=["https://X.com/home", "x.com", "", "Dribbble.com"],
        media_host="https://Video.Twimg.com/",
    )
    assert config.image_folder == "pics/shots"
    assert config.folder_for("image") == "pics/shots"
    assert config.folder_for("video") == "clips"
    assert config.allowed_hosts == ["x.com", "dribbble.com"]
    assert config.media_host == "video.twimg.com"


@pytest.mark.parametrize(
    "field, value",
    [
        ("max_attempts", 0),
        ("max_stream_bytes", 10),
        ("default_tab_id", -1),
        ("tab_header", "X Tab"),
        ("media_host", ""),
        ("api_url_patterns", [" "]),
        ("download_dir", ""),
    ],
)
def test_model_rejects_invalid_values(field, value):
    with pytest.raises(ValidationError):
        XdlConfig(**{field: value})


def test_missing_file_yields_defaults(tmp_path):
    manager = ConfigManager(tmp_path / "config.ini")
    config = manager.load_config()
    assert config.max_attempts == 3
    assert config.config_path == str(tmp_path)
    assert not (tmp_path / "config.ini").exists()


def test_save_and_load(tmp_path):
    manager = ConfigManager(tmp_path / "xdl" / "config.ini")
    manager.save_new_config(
        {"video_folder": "100% clips", "allowed_hosts": ["x.com", "example.org"]}
    )
    config = ConfigManager(tmp_path / "xdl" / "config.ini").load_config()
    assert config.video_folder == "100% clips"
    assert config.allowed_hosts == ["x.com", "example.org"]


def test_cli_options_override_file(tmp_path):
    manager = ConfigManager(tmp_path / "config.ini")
    manager.save_new_config({"max_attempts": 5})
    assert ConfigManager(tmp_path / "config.ini").load_config(
        {"max_attempts": 2}
    ).max_attempts == 2


def test_migration_adds_and_removes_keys(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(
        "[DEFAULT]\nvideo_folder = clips\nlegacy_option = yes\n", encoding="utf-8"
    )
    config = ConfigManager(path).load_config()
    assert config.video_folder == "clips"

    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")
    keys = set(parser["DEFAULT"])
    assert "legacy_option" not in keys
    assert keys == XdlConfig.get_ini_keys()
    assert parser["DEFAULT"]["video_folder"] == "clips"


def test_invalid_integer_is_a_configuration_error(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[DEFAULT]\nmax_attempts = many\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="max_attempts"):
        ConfigManager(path).load_config()


def test_invalid_value_is_a_configuration_error(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[DEFAULT]\nmax_attempts = 50\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="validation failed"):
        ConfigManager(path).load_config()


def test_unparseable_file_is_a_configuration_error(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("no section header\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigManager(path).load_config()


def test_update_config(tmp_path):
    manager = ConfigManager(tmp_path / "config.ini")
    manager.update_config(allowed_hosts=["example.org"])
    assert ConfigManager(tmp_path / "config.ini").load_config().allowed_hosts == [
        "example.org"
    ]
