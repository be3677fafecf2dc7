import json

from deemix_wrapper.config.loader import (
    camel_to_snake,
    convert_keys,
    convert_to_camel,
    get_config_path,
    load_config,
    save_config,
    snake_to_camel,
)
from deemix_wrapper.config.schema import Config


def test_camel_to_snake_basic() -> None:
    assert camel_to_snake("callbackPort") == "callback_port"
    assert camel_to_snake("clientIdEnv") == "client_id_env"


def test_snake_to_camel_basic() -> None:
    assert snake_to_camel("callback_port") == "callbackPort"
    assert snake_to_camel("client_id_env") == "clientIdEnv"


def test_convert_keys_nested() -> None:
    data = {
        "authTimeout": 30,
        "extra": {"searchLimit": 5},
        "items": [{"deemixPath": "/usr/bin/deemix"}],
    }
    out = convert_keys(data)
    assert out["auth_timeout"] == 30
    assert out["extra"]["search_limit"] == 5
    assert out["items"][0]["deemix_path"] == "/usr/bin/deemix"


def test_convert_to_camel_nested() -> None:
    data = {
        "auth_timeout": 30,
        "extra": {"search_limit": 5},
        "items": [{"deemix_path": "/usr/bin/deemix"}],
    }
    out = convert_to_camel(data)
    assert out["authTimeout"] == 30
    assert out["extra"]["searchLimit"] == 5
    assert out["items"][0]["deemixPath"] == "/usr/bin/deemix"


def test_load_config_defaults_when_missing(tmp_path) -> None:
    config = load_config(tmp_path / "missing.json")

    assert config == Config()
    assert config.redirect_uri == "http://localhost:5000/callback"


def test_load_config_reads_camel_case_and_ignores_unknown_keys(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"callbackPort": 8888, "authTimeout": 60, "somethingElse": True}))

    config = load_config(path)

    assert config.callback_port == 8888
    assert config.auth_timeout == 60
    assert config.redirect_uri == "http://localhost:8888/callback"


def test_load_config_falls_back_on_corrupt_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json")

    assert load_config(path) == Config()


def test_save_config_writes_camel_case(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    save_config(Config(search_limit=3), path)

    data = json.loads(path.read_text())
    assert data["searchLimit"] == 3
    assert load_config(path).search_limit == 3


def test_paths_follow_xdg_dirs(isolated_dirs) -> None:
    config = Config()

    assert get_config_path() == isolated_dirs / "config" / "deemix-wrapper" / "config.json"
    assert config.cache_path == isolated_dirs / "cache" / "deemix-wrapper"
