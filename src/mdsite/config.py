"""Application configuration: site, sources, stage list and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSITE_"


class _Options(BaseModel):
    """Accepts both snake_case and camelCase keys (siteUrl, maxWidth, ...)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class Social(_Options):
    twitter: str = ""
    github:  str = ""


class SiteMetadata(_Options):
    title:       str = "Untitled"
    author:      str = ""
    description: str = ""
    site_url:    str = Field(default="http://localhost", description="Absolute base URL, no trailing slash")
    social:      Social = Social()


class SourceRoot(_Options):
    path: str = Field(..., description="Content root, relative to the config file")
    name: str = Field(..., min_length=1, description="Collection name")


class StageSpec(_Options):
    """One entry of the ordered stage list: a bare identifier or {resolve, name, options}."""
    resolve: str
    name:    Optional[str] = None
    options: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _from_identifier(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"resolve": data}
        return data


class FeedOptions(_Options):
    path:            str = "rss.xml"
    title:           Optional[str] = None
    require_entries: bool = Field(default=False, description="Fail the build when the feed is empty")


class ManifestOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name:             str
    short_name:       str
    start_url:        str = "/"
    background_color: str = "#ffffff"
    theme_color:      str = "#663399"
    display:          Literal["fullscreen", "standalone", "minimal-ui", "browser"] = "minimal-ui"
    icon:             Optional[str] = Field(default=None, description="Icon file, relative to the config file")


def _default_sources() -> list[SourceRoot]:
    return [SourceRoot(path="content/blog", name="blog"), SourceRoot(path="content/assets", name="assets")]


class Settings(BaseModel):
    app_name:        str = "mdsite"
    base_dir:        str = Field(default=".",      description="Directory relative paths are resolved against")
    output_dir:      str = Field(default="public", description="Directory for records, assets, feed and manifest")
    workers:         int = Field(default=4,   ge=1, description="Documents processed in parallel")
    strict_assets:   bool = Field(default=True,     description="Fail a document on an unresolved asset; else warn")
    excerpt_length:  int = Field(default=140, ge=1, description="Max characters of a generated excerpt")
    parser_config:   str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    manifest_path:   str = Field(default="manifest.webmanifest", description="Manifest file name in output_dir")
    log_level:       str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    required_fields: list[str] = ["title", "date"]
    site:            SiteMetadata = SiteMetadata()
    sources:         list[SourceRoot] = Field(default_factory=_default_sources)
    stages:          list[StageSpec] = []
    feed:            FeedOptions = FeedOptions()
    manifest:        Optional[ManifestOptions] = None

    def resolve(self, path: str) -> Path:
        """Return path resolved against base_dir unless already absolute."""
        p = Path(path)
        return p if p.is_absolute() else Path(self.base_dir) / p

    def source_roots(self) -> list[tuple[Path, str]]:
        return [(self.resolve(s.path), s.name) for s in self.sources]


_ENV_FIELDS = [name for name, f in Settings.model_fields.items() if f.annotation in (str, int, bool)]


def load_config(overrides: dict[str, Any] = None, config_file: Path = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    path = Path(config_file) if config_file else Path(CONFIG_FILE)
    data: dict[str, Any] = {}
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {path.name}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {path.name}: expected a mapping, got {type(data).__name__}")
        data.setdefault("base_dir", str(path.parent))
    elif config_file:
        raise ValueError(f"Config file not found: {path}")

    for name in _ENV_FIELDS:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
