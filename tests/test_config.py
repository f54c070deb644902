import pytest
import yaml

from liptint.config import DEFAULTS, load_and_merge, load_yaml, merge_config, resolve_color
from liptint.keypoints import UPPER_LIP_CONTOUR


def test_defaults():
    cfg = merge_config()
    assert cfg["lipstick"]["opacity"] == 0.7
    assert cfg["lipstick"]["lightness_scale"] == 0.9
    assert cfg["landmarks"]["upper_lip"] == UPPER_LIP_CONTOUR
    assert cfg["fallback"]["flatten"] == 0.7


def test_merge_does_not_mutate_defaults():
    cfg = merge_config(cli_overrides={"fallback": {"x_span": [0.1, 0.9]}})
    cfg["landmarks"]["upper_lip"].append(999)
    assert DEFAULTS["fallback"]["x_span"] == [0.3, 0.7]
    assert 999 not in DEFAULTS["landmarks"]["upper_lip"]


def test_yaml_and_cli_precedence(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        yaml.safe_dump({"lipstick": {"color": "#112233", "opacity": 0.4}, "runtime": {"workers": 2}}),
        encoding="utf-8",
    )
    cfg = load_and_merge(path, {"lipstick": {"opacity": 0.9}})
    assert cfg["lipstick"]["color"] == "#112233"
    assert cfg["lipstick"]["opacity"] == 0.9
    assert cfg["lipstick"]["lightness_scale"] == 0.9
    assert cfg["runtime"]["workers"] == 2
    assert cfg["runtime"]["log_level"] == "INFO"


def test_missing_yaml_is_empty(tmp_path):
    assert load_yaml(tmp_path / "nope.yaml") == {}
    assert load_yaml(None) == {}


def test_yaml_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(path)


@pytest.mark.parametrize(
    "override",
    [
        {"lipstick": {"opacity": 1.5}},
        {"lipstick": {"opacity": "high"}},
        {"lipstick": {"color": "#12345"}},
        {"shades": {"odd": "blue"}},
    ],
)
def test_invalid_values_rejected(override):
    with pytest.raises(ValueError):
        merge_config(cli_overrides=override)


def test_resolve_color():
    cfg = merge_config(cli_overrides={"lipstick": {"color": "#abcdef"}})
    assert resolve_color(cfg) == "#abcdef"
    assert resolve_color(cfg, "nude") == "#a76140"
    with pytest.raises(KeyError):
        resolve_color(cfg, "chartreuse")
