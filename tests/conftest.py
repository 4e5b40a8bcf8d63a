"""Root test configuration: a throwaway site tree and settings pointing at it"""

import os
from pathlib import Path

import pytest

from mdsite.config import ENV_PREFIX, Settings


POST_TEMPLATE = """\
---
title: {title}
{date_line}tags: [{tags}]
---

{body}
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MDSITE_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture(name="site_dir")
def site_dir_fixture(tmp_path) -> Path:
    """A site root with empty blog and assets collections."""
    (tmp_path / "content" / "blog").mkdir(parents=True)
    (tmp_path / "content" / "assets").mkdir(parents=True)
    return tmp_path


@pytest.fixture(name="write_post")
def write_post_fixture(site_dir):
    """Write content/blog/<name>/index.md; date=None omits the date field."""
    def write(name: str, title: str = "A Post", date: str = "2019-05-01",
              body: str = "Some body text.", tags: str = "") -> Path:
        path = site_dir / "content" / "blog" / name / "index.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        date_line = f"date: {date}\n" if date is not None else ""
        path.write_text(POST_TEMPLATE.format(title=title, date_line=date_line, tags=tags, body=body))
        return path
    return write


@pytest.fixture(name="settings")
def settings_fixture(site_dir) -> Settings:
    return Settings(base_dir=str(site_dir), workers=2)
