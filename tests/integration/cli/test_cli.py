"""Integration tests for the mdsite CLI commands"""

import pytest
from typer.testing import CliRunner

from mdsite.cli.cli import app


CONFIG = """\
site:
  title: Alchemy Reaction
  siteUrl: https://luizdamim.com
stages:
  - resolve: gatsby-remark-prismjs
    options: {inlineCodeMarker: ">"}
  - gatsby-remark-copy-linked-files
  - gatsby-remark-copy-linked-files
  - gatsby-remark-smartypants
"""

runner = CliRunner()


@pytest.fixture(autouse=True)
def chdir_site(site_dir, monkeypatch):
    """Run each command from the site root with a config.yaml in place."""
    monkeypatch.chdir(site_dir)
    (site_dir / "config.yaml").write_text(CONFIG)


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("build", "check", "stages", "list"):
        assert command in result.output


def test_build_cmd_runs_full_pipeline(site_dir, write_post):
    """build writes records and the feed, printing one status line per document."""
    write_post("hello-world", body="Hello `>foo`")
    result = runner.invoke(app, ["build", "--workers", "2"])
    assert result.exit_code == 0, result.output
    assert "built: blog:/hello-world/" in result.output
    assert "1 built, 0 failed" in result.output
    assert (site_dir / "public" / "blog" / "hello-world.json").exists()
    assert (site_dir / "public" / "rss.xml").exists()


def test_build_cmd_exit_code_on_document_failure(site_dir, write_post):
    """A failed document still lets the others build but the exit code is 1."""
    write_post("good")
    write_post("undated", date=None)
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "built: blog:/good/" in result.output
    assert "failed:" in result.output
    assert "missing required frontmatter field 'date'" in result.output


def test_build_cmd_out_dir(tmp_path, write_post):
    write_post("hello-world")
    out = tmp_path / "elsewhere"
    result = runner.invoke(app, ["build", "--out-dir", str(out)])
    assert result.exit_code == 0, result.output
    assert (out / "blog" / "hello-world.json").exists()


def test_build_cmd_lenient_assets(write_post):
    write_post("hello-world", body="[d](./missing.pdf)")
    assert runner.invoke(app, ["build"]).exit_code == 1
    result = runner.invoke(app, ["build", "--lenient-assets"])
    assert result.exit_code == 0, result.output


def test_build_cmd_unknown_stage(site_dir):
    (site_dir / "config.yaml").write_text("stages: [gatsby-remark-nope]\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Error: Build failed" in result.output
    assert "Unknown stage 'gatsby-remark-nope'" in result.output


def test_build_cmd_missing_root(site_dir):
    (site_dir / "content" / "assets").rmdir()
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "collection 'assets' not found" in result.output


def test_build_cmd_invalid_config(site_dir):
    (site_dir / "config.yaml").write_text("stages: [unclosed\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Error: Invalid config.yaml" in result.output


def test_build_cmd_explicit_config(tmp_path, site_dir, write_post):
    write_post("hello-world")
    cfg = site_dir / "site.yaml"
    cfg.write_text("output_dir: dist\n")
    result = runner.invoke(app, ["build", "--config", str(cfg)])
    assert result.exit_code == 0, result.output
    assert (site_dir / "dist" / "rss.xml").exists()


# --- check / stages / list ---

def test_check_cmd(site_dir, write_post):
    write_post("good")
    result = runner.invoke(app, ["check"])
    assert result.exit_code == 0, result.output
    assert "Checked 1 document(s), 0 invalid" in result.output
    assert not (site_dir / "public").exists()


def test_check_cmd_reports_invalid(write_post):
    write_post("good")
    write_post("undated", date=None)
    result = runner.invoke(app, ["check"])
    assert result.exit_code == 1
    assert "invalid:" in result.output
    assert "Checked 2 document(s), 1 invalid" in result.output


def test_stages_cmd():
    result = runner.invoke(app, ["stages"])
    assert result.exit_code == 0
    assert "prismjs (alias: gatsby-remark-prismjs)" in result.output
    assert "inlineCodeMarker = None" in result.output
    assert "maxWidth = 650" in result.output


def test_list_cmd(write_post):
    write_post("one")
    write_post("two")
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith("blog\t2\t")
    assert lines[1].startswith("assets\t0\t")
