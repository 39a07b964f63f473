# tests/test_config_schema.py
import json

import pytest

from nexjob._shared.config import ConfigError, SiteConfig
from portal import config_schema


@pytest.fixture
def write_config(tmp_path, monkeypatch):
    def _write(data, name="config.json"):
        p = tmp_path / name
        if name.endswith(".json"):
            p.write_text(json.dumps(data), encoding="utf-8")
        else:
            p.write_text(data, encoding="utf-8")
        monkeypatch.setenv("CONFIG_PATH", str(p))
        return p

    return _write


def test_defaults_without_config_path():
    cfg = config_schema.load_config()
    config_schema.validate(cfg)
    assert cfg["page_size"] == 24
    assert cfg["auth_token"] == ""

    settings = SiteConfig.from_mapping(cfg)
    assert settings.jobs_url == "https://cms.nexjob.tech/wp-json/wp/v2/lowongan-kerja"
    assert settings.scroll_root_margin == 200


def test_json_config_overrides_and_token_env(write_config, monkeypatch):
    monkeypatch.setenv("NEXJOB_TOKEN", "tok-123")
    write_config({
        "api_url": "https://cms.example.test/wp-json/wp/v2/",
        "page_size": "12",
        "auth_token_env": "NEXJOB_TOKEN",
        "jobs_path": "/jobs/",
    })

    cfg = config_schema.load_config()
    config_schema.validate(cfg)

    assert cfg["api_url"] == "https://cms.example.test/wp-json/wp/v2"
    assert cfg["page_size"] == 12
    assert cfg["auth_token"] == "tok-123"
    assert "auth_token_env" not in cfg

    settings = SiteConfig.from_mapping(cfg)
    assert settings.jobs_url == "https://cms.example.test/wp-json/wp/v2/jobs"
    assert "tok-123" not in repr(settings)


def test_yaml_config(write_config):
    path = write_config("api_url: https://cms.example.test/wp-json/wp/v2\nscroll_threshold: 0.5\n", name="c.yaml")
    cfg = config_schema.load_config(str(path))
    config_schema.validate(cfg)
    assert cfg["scroll_threshold"] == 0.5


@pytest.mark.parametrize(
    "override, message",
    [
        ({"api_url": "cms.example.test"}, "absolute http"),
        ({"page_size": 0}, "page_size"),
        ({"page_size": True}, "page_size"),
        ({"page_size": 101}, "page_size"),
        ({"scroll_threshold": 1.5}, "scroll_threshold"),
        ({"bookmarks_path": ""}, "bookmarks_path"),
        ({"auth_token": 123}, "auth_token"),
    ],
)
def test_validate_rejects_bad_values(override, message):
    cfg = {**config_schema.load_config(), **override}
    with pytest.raises(ConfigError, match=message):
        config_schema.validate(cfg)


def test_missing_or_broken_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        config_schema.load_config(str(tmp_path / "nope.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        config_schema.load_config(str(bad))


def test_site_config_requires_api_url():
    with pytest.raises(ConfigError, match="api_url"):
        SiteConfig.from_mapping({})
    with pytest.raises(ConfigError, match="page_size"):
        SiteConfig.from_mapping({"api_url": "https://x.test", "page_size": 0})
    with pytest.raises(ConfigError, match="1..100"):
        SiteConfig.from_mapping({"api_url": "https://x.test", "page_size": 200})
