"""Unit tests for config.py"""

import pytest

from mdsite.config import Settings, StageSpec, load_config


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory so no project config.yaml is picked up."""
    monkeypatch.chdir(tmp_path)


def test_load_config_defaults(tmp_path, monkeypatch):
    """Settings defaults are used when no config.yaml, env var, or CLI override exists."""
    monkeypatch.chdir(tmp_path)
    settings = load_config()
    assert settings.output_dir == "public"
    assert settings.workers == 4
    assert settings.strict_assets is True
    assert settings.required_fields == ["title", "date"]
    assert [s.name for s in settings.sources] == ["blog", "assets"]


def test_load_config_reads_camel_case_site(tmp_path, monkeypatch):
    """siteUrl and the other camelCase site keys are accepted."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text(
        "site:\n  title: Alchemy Reaction\n  siteUrl: https://luizdamim.com\n  social: {twitter: luizdamim}\n"
    )
    settings = load_config()
    assert settings.site.title == "Alchemy Reaction"
    assert settings.site.site_url == "https://luizdamim.com"
    assert settings.site.social.twitter == "luizdamim"


def test_load_config_env_workers(monkeypatch):
    """MDSITE_WORKERS env var is coerced to int and applied to settings."""
    monkeypatch.setenv("MDSITE_WORKERS", "8")
    settings = load_config()
    assert settings.workers == 8


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """MDSITE_OUTPUT_DIR takes precedence over config.yaml output_dir."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("output_dir: site\n")
    monkeypatch.setenv("MDSITE_OUTPUT_DIR", "env-out")
    settings = load_config()
    assert settings.output_dir == "env-out"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the MDSITE_WORKERS env var."""
    monkeypatch.setenv("MDSITE_WORKERS", "3")
    settings = load_config(overrides={"workers": 1, "output_dir": None})
    assert settings.workers == 1
    assert settings.output_dir == "public"


def test_load_config_env_bool(monkeypatch):
    """MDSITE_STRICT_ASSETS=false switches to the lenient asset policy."""
    monkeypatch.setenv("MDSITE_STRICT_ASSETS", "false")
    assert load_config().strict_assets is False


def test_load_config_invalid_yaml(tmp_path, monkeypatch):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_non_mapping(tmp_path, monkeypatch):
    """A YAML list at the top level is rejected."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="expected a mapping"):
        load_config()


def test_load_config_missing_explicit_file(tmp_path):
    """An explicitly requested config file must exist."""
    with pytest.raises(ValueError, match="not found"):
        load_config(config_file=tmp_path / "nope.yaml")


def test_load_config_invalid_value(monkeypatch):
    """Out-of-range values fail validation (pydantic ValidationError is a ValueError)."""
    monkeypatch.setenv("MDSITE_WORKERS", "0")
    with pytest.raises(ValueError):
        load_config()


def test_load_config_base_dir_is_config_parent(tmp_path):
    """Relative paths resolve against the directory holding the config file."""
    cfg = tmp_path / "site" / "config.yaml"
    cfg.parent.mkdir()
    cfg.write_text("sources: [{path: posts, name: blog}]\n")
    settings = load_config(config_file=cfg)
    assert settings.source_roots() == [(tmp_path / "site" / "posts", "blog")]


# --- stage list ---

def test_stage_spec_from_identifier():
    """A bare string entry becomes a spec with no options."""
    spec = StageSpec.model_validate("gatsby-remark-smartypants")
    assert spec.resolve == "gatsby-remark-smartypants"
    assert spec.options == {}


def test_stages_keep_order_and_duplicates():
    """Repeated entries are kept in declaration order."""
    settings = Settings(stages=[
        {"resolve": "gatsby-remark-images", "options": {"maxWidth": 590}},
        "gatsby-remark-copy-linked-files",
        "gatsby-remark-copy-linked-files",
    ])
    assert [s.resolve for s in settings.stages] == [
        "gatsby-remark-images", "gatsby-remark-copy-linked-files", "gatsby-remark-copy-linked-files",
    ]
    assert settings.stages[0].options == {"maxWidth": 590}


def test_unknown_site_key_rejected():
    with pytest.raises(ValueError):
        Settings(site={"titel": "typo"})
