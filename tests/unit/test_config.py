import logging

import pytest

from rexit import config
from rexit.config import Theme, default_config_path, load_theme, parse_color, parse_modifiers
from rexit.errors import ConfigError


def test_defaults_when_no_file_exists(caplog):
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme()
    assert theme == Theme()
    assert caplog.records == []


def test_defaults_match_stock_look():
    theme = Theme()
    assert theme.title == " rexit "
    assert theme.border.style == "rounded"
    assert theme.colors.border == "cyan"
    assert theme.layout.min_width == 30
    assert theme.layout.max_width == 60
    assert theme.help_text.enabled is True


def test_partial_file_overrides_only_given_keys(theme_file):
    path = theme_file(
        {
            "title": " power ",
            "colors": {"border": "#ff8800", "selected_modifier": ["bold", "italic"]},
            "layout": {"auto_scale": False},
        }
    )
    theme = load_theme(path)
    assert theme.title == " power "
    assert theme.colors.border == "#ff8800"
    assert theme.colors.selected_modifier == ("bold", "italic")
    assert theme.colors.foreground == "white"
    assert theme.layout.auto_scale is False
    assert theme.layout.min_height == 10


def test_single_modifier_string_is_accepted(theme_file):
    theme = load_theme(theme_file({"colors": {"help_key_modifier": "italic"}}))
    assert theme.colors.help_key_modifier == ("italic",)


def test_env_var_selects_file(theme_file, monkeypatch):
    path = theme_file({"border": {"style": "double"}})
    monkeypatch.setenv("REXIT_CONFIG", str(path))
    assert default_config_path() == path
    assert load_theme().border.style == "double"


def test_xdg_location_is_used(isolated_config):
    target = isolated_config / "rexit" / "config.yaml"
    target.parent.mkdir(parents=True)
    target.write_text("help_text:\n  enabled: false\n")
    assert load_theme().help_text.enabled is False


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert Theme.from_file(path) == Theme()


def test_invalid_yaml_falls_back_with_warning(tmp_path, caplog):
    path = tmp_path / "broken.yaml"
    path.write_text("colors: [unclosed\n")
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme(path)
    assert theme == Theme()
    assert "Failed to parse" in caplog.text


def test_wrong_type_falls_back_with_warning(theme_file, caplog):
    path = theme_file({"layout": {"min_width": "wide"}})
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme(path)
    assert theme == Theme()
    assert "layout.min_width" in caplog.text


@pytest.mark.parametrize(
    "data,message",
    [
        ({"border": {"enabled": "yes"}}, "border.enabled"),
        ({"layout": {"padding": -1}}, "layout.padding"),
        ({"layout": {"padding": True}}, "layout.padding"),
        ({"title": 5}, "theme.title"),
        ({"colors": ["cyan"]}, "[colors]"),
        ({"colors": {"selected_modifier": [1]}}, "colors.selected_modifier"),
    ],
)
def test_from_mapping_rejects_bad_values(data, message):
    with pytest.raises(ConfigError) as excinfo:
        Theme.from_mapping(data)
    assert message in str(excinfo.value)


def test_non_mapping_root_is_an_error(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigError, match="root must be a mapping"):
        Theme.from_file(path)


def test_explicit_missing_file_is_logged(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme(tmp_path / "nope.yaml")
    assert theme == Theme()
    assert "not found" in caplog.text


def test_unknown_keys_are_ignored():
    theme = Theme.from_mapping({"actions": ["shutdown"], "layout": {"animation": "matrix"}})
    assert theme == Theme()


@pytest.mark.parametrize(
    "name,expected",
    [
        ("gray", "white"),
        ("white", "bright_white"),
        ("DarkGray", "bright_black"),
        ("lightcyan", "bright_cyan"),
        ("#FF8800", "#ff8800"),
        ("#zzzzzz", "bright_white"),
        ("chartreuse", "bright_white"),
    ],
)
def test_parse_color(name, expected):
    assert parse_color(name) == expected


def test_parse_modifiers():
    flags = parse_modifiers(["bold", "Underlined", "crossedout", "sparkly"])
    assert flags == {"bold": True, "underline": True, "strike": True}


def test_theme_style():
    style = Theme().style("black", ("bold",), bgcolor="white")
    assert style.bold
    assert style.color.name == "black"
    assert style.bgcolor.name == "bright_white"


@pytest.mark.parametrize(
    "data,message",
    [
        ({"colors": {"border": "orange"}}, "colors.border: unknown color 'orange'"),
        ({"colors": {"selected_bg": "#12345g"}}, "colors.selected_bg"),
        ({"animation": {"color": "sparkle"}}, "animation.color"),
        ({"animation": {"animation_type": "fog"}}, "animation.animation_type"),
        ({"animation": {"density": 101}}, "animation.density"),
    ],
)
def test_unknown_colors_and_animation_values_are_rejected(data, message):
    with pytest.raises(ConfigError) as excinfo:
        Theme.from_mapping(data)
    assert message in str(excinfo.value)


def test_unknown_color_in_file_warns_once_and_uses_defaults(theme_file, caplog):
    path = theme_file({"colors": {"border": "orange"}})
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme(path)
    assert theme == Theme()
    assert len(caplog.records) == 1
    assert "orange" in caplog.text


def test_animation_section(theme_file):
    theme = load_theme(
        theme_file({"animation": {"animation_type": "snow", "color": "white", "density": 30, "speed_ms": 120}})
    )
    assert theme.animation.animation_type == "snow"
    assert theme.animation.color == "white"
    assert theme.animation.density == 30
    assert theme.animation.speed_ms == 120
    assert theme.animation.enabled is True


def test_default_animation_is_green_matrix():
    animation = Theme().animation
    assert animation.enabled is True
    assert animation.animation_type == "matrix"
    assert animation.speed_ms == 80
    assert animation.color == "green"
    assert animation.density == 50


def test_inaccessible_config_location_falls_back(monkeypatch, caplog):
    def denied(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(config.Path, "exists", denied)
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        theme = load_theme()
    monkeypatch.undo()

    assert theme == Theme()
    assert "Cannot access config file" in caplog.text


def test_styles_are_built_once_per_color(caplog):
    theme = Theme()
    with caplog.at_level(logging.WARNING, logger="rexit.config"):
        styles = [theme.style("no-such-colour-for-cache") for _ in range(10)]
    assert all(style is styles[0] for style in styles)
    assert len(caplog.records) == 1
