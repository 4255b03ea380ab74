"""
Unit tests for paste_gateway.config.

Covers:
    - Per-host resolution (override wins, fallback to defaults, unknown host)
    - Shallow merge of nested blocks
    - Shape validation (padding, alphabet, idLen)
    - YAML loading with environment credentials
    - Endpoint mode aliases and secret coercion
"""

import pytest
import yaml
from pydantic import ValidationError

from paste_gateway.config import EndpointMode, GatewayConfig, load_config, resolve_config
from paste_gateway.errors import ConfigurationError


def test_unknown_host_resolves_to_base(config):
    assert resolve_config(config, "nowhere.example") is config
    assert resolve_config(config, None) is config


def test_override_keys_win_and_others_fall_back(config):
    effective = resolve_config(config, "other.example")
    assert effective.project == "9999"
    assert effective.upload_keys == {"p": EndpointMode.PLAIN}
    # Absent from the profile -> defaults
    assert effective.branch == config.branch
    assert effective.token == config.token
    assert effective.secret == config.secret
    assert effective.characters == config.characters
    assert effective.waaai == config.waaai


def test_resolution_does_not_mutate_base(config):
    resolve_config(config, "other.example")
    assert config.project == "1234"
    assert "txt" in config.upload_keys


def test_resolved_config_keeps_override_table(config):
    effective = resolve_config(config, "other.example")
    assert effective.overrides == config.overrides


def test_snake_case_override_keys_are_accepted():
    base = GatewayConfig(overrides={"h.example": {"upload_allow_insecure": True, "id_len": 10}})
    effective = resolve_config(base, "h.example")
    assert effective.upload_allow_insecure is True
    assert effective.id_len == 10


def test_nested_blocks_are_replaced_whole():
    base = GatewayConfig(
        waaai={"api": "https://a.example", "apikey": "k1"},
        overrides={"h.example": {"waaai": {"api": "https://b.example"}}},
    )
    effective = resolve_config(base, "h.example")
    assert effective.waaai.api == "https://b.example"
    assert effective.waaai.apikey == ""


def test_padding_too_small_is_rejected():
    with pytest.raises(ValidationError):
        GatewayConfig(secret=b"x" * 60, id_len=8, padding_len=64)


def test_padding_exactly_large_enough_is_accepted():
    cfg = GatewayConfig(secret=b"x" * 58, id_len=8, padding_len=64)
    assert cfg.padding_len == 64


@pytest.mark.parametrize(
    "kwargs",
    [
        {"characters": ""},
        {"characters": "aab"},
        {"id_len": 2},
        {"date_rotation": 0},
        {"uploadKeys": {"x": "unknown-mode"}},
        {"unexpected": 1},
    ],
)
def test_invalid_shapes_are_rejected(kwargs):
    with pytest.raises(ValidationError):
        GatewayConfig(**kwargs)


def test_mode_alias_and_secret_list():
    cfg = GatewayConfig.model_validate({"uploadKeys": {"s": "waaai", "b": "BASE64"}, "secret": [1, 2, 3]})
    assert cfg.upload_keys == {"s": EndpointMode.SHORTENER, "b": EndpointMode.BASE64}
    assert cfg.secret == b"\x01\x02\x03"
    assert cfg.char_len == len(cfg.characters)


def test_load_config_from_yaml_with_env_credentials(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "idLen": 10,
                "secret": "file-secret",
                "project": "42",
                "uploadKeys": {"txt": "plain"},
                "overrides": {"h.example": {"branch": "pages"}},
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(str(path), environ={"PASTE_TOKEN": "env-token", "PASTE_SECRET": "env-secret"})
    assert cfg.id_len == 10
    assert cfg.project == "42"
    assert cfg.token == "env-token"
    assert cfg.secret == b"env-secret"
    assert resolve_config(cfg, "h.example").branch == "pages"


def test_load_config_missing_file_uses_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "absent.yaml"), environ={})
    assert cfg == GatewayConfig()


def test_load_config_rejects_broken_override(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"overrides": {"h.example": {"idLen": 1}}}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})
