import json

import pytest

from osmcat.config import DEFAULTS, GENERATOR_DEFAULT, CatSettings, load_config
from osmcat.clean import CleanOptions
from osmcat.exceptions import ConfigError


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return str(path)


def test_defaults_without_file():
    assert load_config() == DEFAULTS


def test_file_values_override_defaults(tmp_path):
    cfg = load_config(_write(tmp_path, {
        "buffer_size": 500,
        "output_header": {"xml_josm_upload": "false"},
        "overwrite": True,
    }))
    assert cfg["buffer_size"] == 500
    assert cfg["output_header"] == {"xml_josm_upload": "false"}
    assert cfg["overwrite"] is True
    assert cfg["generator"] == GENERATOR_DEFAULT


def test_unknown_key(tmp_path):
    with pytest.raises(ConfigError, match="Unknown keys.*colour"):
        load_config(_write(tmp_path, {"colour": "red"}))


@pytest.mark.parametrize("data", [
    {"buffer_size": "big"},
    {"buffer_size": True},
    {"buffer_size": 0},
    {"output_header": ["a=b"]},
    {"fsync": "yes"},
])
def test_invalid_values(tmp_path, data):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, data))


def test_not_an_object(tmp_path):
    with pytest.raises(ConfigError, match="JSON object"):
        load_config(_write(tmp_path, [1, 2]))


def test_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(str(path))


def test_settings_defaults():
    settings = CatSettings(input_files=("a.opl",), output_file="out.opl")
    assert settings.clean == CleanOptions()
    assert settings.object_types == ()
    assert settings.generator == GENERATOR_DEFAULT
    assert not settings.overwrite
