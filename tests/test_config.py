import json

import pytest

from termview.config import RenderConfig, dump_config, load_config, parse_color


def test_defaults():
    config = RenderConfig()
    assert (config.min_width, config.min_height, config.dpi, config.border) == (64, 64, 300, 30)
    assert config.background_rgba is None
    assert config.foreground_rgba == (105, 105, 105, 255)
    assert config.mermaid_background_rgba == (255, 255, 255, 255)
    assert config.scale_bounds is None


def test_scale_bounds_respects_minimums():
    assert RenderConfig(width=10).scale_bounds == (64, 64)
    assert RenderConfig(width=200, height=100).scale_bounds == (200, 100)


def test_parse_color():
    assert parse_color("transparent") is None
    assert parse_color("#ff000000") is None
    assert parse_color("#102030") == (16, 32, 48, 255)
    with pytest.raises(ValueError):
        parse_color("not-a-color")


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        RenderConfig(font_variant="italic")
    with pytest.raises(ValueError):
        RenderConfig(border=-1)


def test_load_config_file_and_overrides(tmp_path):
    path = tmp_path / "termview.toml"
    path.write_text(
        '[render]\nwidth = 320\nbackground = "black"\nmermaid_icons = ["@iconify-json/mdi"]\n',
        encoding="utf-8",
    )
    config = load_config(path, {"width": 640, "dpi": None})
    assert config.width == 640
    assert config.dpi == 300
    assert config.background_rgba == (0, 0, 0, 255)
    assert config.mermaid_icons == ("@iconify-json/mdi",)


def test_load_config_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.toml"
    path.write_text("[render]\npage = 2\n", encoding="utf-8")
    monkeypatch.setenv("TERMVIEW_CONFIG_PATH", str(path))
    assert load_config().page == 2


def test_load_config_missing_file(tmp_path):
    assert load_config(tmp_path / "absent.toml") == RenderConfig()


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "termview.toml"
    path.write_text("[render]\ncolour = 'red'\n", encoding="utf-8")
    with pytest.raises(ValueError) as exc:
        load_config(path)
    assert "colour" in str(exc.value)


def test_dump_config_round_trips_field_names():
    payload = json.loads(dump_config(RenderConfig(width=12)))
    assert payload["width"] == 12
    assert "background_rgba" not in payload
