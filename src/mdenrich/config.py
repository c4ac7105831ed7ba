"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from mdenrich.util.errors import ConfigurationError


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDENRICH_"

DEFAULT_FEATURED_KEYWORDS = ["getting-started", "getting started", "installation", "basics", "first-steps"]
DEFAULT_SUBJECT_AREAS = ["Python", "web development", "databases", "DevOps", "security", "testing"]

# Conventional provider variables honored when the prefixed ones are unset
_FALLBACK_ENV = {
    "openai_api_key": "OPENAI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
}


class Settings(BaseModel):
    app_name:      str = "mdenrich"
    db_url:        str = "sqlite:///mdenrich.db"
    content_dir:   str = Field(default="content",    description="Directory scanned for .md/.mdx articles")
    parser_config: str = Field(default="commonmark", description="MarkdownIt parser preset name")

    # --- loader ---
    load_on_startup:            bool = Field(default=False, description="Always load when the loader starts")
    clear_existing_before_load: bool = Field(default=False, description="Delete all records before each load")
    force_load_env_override:    bool = Field(default=False, description="Deployment override forcing a startup load")
    startup_delay: float = Field(default=1.0, ge=0, description="Seconds to wait before the startup gate check")
    max_workers:   int   = Field(default=1,   ge=1, description="Documents processed concurrently within a load")

    # --- enrichment ---
    enrichment_provider: str  = Field(default="openai", pattern="^(openai|anthropic|disabled)$")
    ai_tagging:          bool = Field(default=False, description="Ask the provider for tags before the taxonomy")
    ai_excerpts:         bool = Field(default=False, description="Ask the provider for excerpts during a load")
    openai_api_key:      str  = ""
    openai_base_url:     str  = "https://api.openai.com/v1"
    openai_model:        str  = "gpt-4o-mini"
    anthropic_api_key:   str  = ""
    anthropic_base_url:  str  = "https://api.anthropic.com/v1"
    anthropic_model:     str  = "claude-3-haiku-20240307"
    request_timeout:     float = Field(default=20.0, gt=0, le=30, description="Per-request timeout in seconds")

    # --- derived fields ---
    words_per_minute: int = Field(default=225, ge=1)
    max_tags:         int = Field(default=8, ge=1, le=8, description="Max tags stored per record")
    read_time_floor:  int = Field(default=6, ge=0, description="Stored read times below this are re-estimated")
    featured_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_FEATURED_KEYWORDS))
    subject_areas:     list[str] = Field(default_factory=lambda: list(DEFAULT_SUBJECT_AREAS))
    taxonomy_file:  Optional[str] = Field(default=None, description="YAML mapping of keyword -> [tag, ...]")
    default_author: Optional[str] = None

    # --- logging ---
    log_level: str  = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_logs: bool = False


def _env_value(name: str, raw: str) -> Any:
    """Split comma-separated env values for list fields; leave the rest for pydantic to coerce."""
    annotation = Settings.model_fields[name].annotation
    if annotation == list[str]:
        return [part.strip() for part in raw.split(",") if part.strip()]
    return raw


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDENRICH_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = _env_value(name, val)
        elif name in _FALLBACK_ENV and name not in data and (val := os.getenv(_FALLBACK_ENV[name])):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
