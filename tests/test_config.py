import pytest

from inkstand.config import (
    DEFAULT_CONFIG,
    ConfigError,
    content_root,
    load_config,
    output_root,
)


def test_load_config_defaults(tmp_path):
    config = load_config(tmp_path)
    assert config == DEFAULT_CONFIG
    # Defaults are copied, not shared
    config["layouts"]["drafts"] = "post"
    assert "drafts" not in DEFAULT_CONFIG["layouts"]
    assert content_root(tmp_path, config) == tmp_path.resolve()
    assert output_root(tmp_path, config) == (tmp_path / "_manifest").resolve()


def test_load_config_overrides_and_keeps_unknown_keys(tmp_path):
    (tmp_path / "inkstand.yaml").write_text(
        "author: Site Owner\n"
        "layouts:\n  /notes/: post\n"
        "permalink: /:year/:slug/\n"
        "theme: chirpy\n",
        encoding="utf-8",
    )
    config = load_config(tmp_path)
    assert config["author"] == "Site Owner"
    assert config["layouts"] == {"notes": "post"}
    assert config["permalink"] == "/:year/:slug/"
    assert config["theme"] == "chirpy"
    assert config["exclude"] == DEFAULT_CONFIG["exclude"]


def test_empty_config_file_uses_defaults(tmp_path):
    (tmp_path / "inkstand.yaml").write_text("", encoding="utf-8")
    assert load_config(tmp_path) == DEFAULT_CONFIG
    (tmp_path / "inkstand.yaml").write_text("author:\n", encoding="utf-8")
    assert load_config(tmp_path)["author"] == ""


@pytest.mark.parametrize(
    "text, message",
    [
        ("- a\n- b\n", "configuration must be a mapping"),
        ("author: [unclosed\n", "invalid YAML"),
        ("layouts: [_posts]\n", "layouts must map directories"),
        ("exclude: _site\n", "exclude must be a list"),
    ],
)
def test_invalid_config(tmp_path, text, message):
    (tmp_path / "inkstand.yaml").write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as exc:
        load_config(tmp_path)
    assert message in exc.value.message
    assert exc.value.source_path.name == "inkstand.yaml"
