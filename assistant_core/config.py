"""Pydantic models for assistant-core settings and config file loading."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field
from rich.console import Console

from assistant_core.constants import (
    ANTHROPIC_API_URL,
    DEFAULT_CACHE_TTL,
    DEFAULT_CONTEXT_TOKENS,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_PROXY_URL,
    DEFAULT_SYSTEM_PROMPT,
    MANAGED_FUNCTION_NAME,
    MAX_CACHE_ENTRIES,
    PROXY_HEALTH_TIMEOUT,
    RECENT_MESSAGE_WINDOW,
    SUMMARY_INTERVAL,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

console = Console()

# --- Config File Loading ---

CONFIG_PATH = Path.home() / ".config" / "assistant-core" / "config.toml"
CONFIG_PATH_2 = Path("assistant-core-config.toml")

Platform = Literal["web", "native"]


def _replace_dashed_keys(cfg: dict[str, Any]) -> dict[str, Any]:
    """Replace dashed keys with underscores in the config options."""
    return {k.replace("-", "_"): v for k, v in cfg.items()}


def load_config(config_path_str: str | None = None) -> dict[str, Any]:
    """Load the TOML configuration file, one table per settings section."""
    if config_path_str:
        config_path = Path(config_path_str)
    elif CONFIG_PATH.exists():
        config_path = CONFIG_PATH
    elif CONFIG_PATH_2.exists():
        config_path = CONFIG_PATH_2
    else:
        return {}

    if config_path.exists():
        with config_path.open("rb") as f:
            cfg = tomllib.load(f)
            return {
                k.replace("-", "_"): _replace_dashed_keys(v) if isinstance(v, dict) else v
                for k, v in cfg.items()
            }

    console.print(f"[bold red]Config file not found at {config_path_str}[/bold red]")
    return {}


# --- Pydantic Models for Configuration ---


class ProviderConfig(BaseModel):
    """Language model provider credentials and request defaults."""

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    api_url: str = ANTHROPIC_API_URL


class GatewayConfig(BaseModel):
    """How the gateway reaches the provider."""

    platform: Platform = "native"
    proxy_url: str = DEFAULT_PROXY_URL
    function_url: str | None = None
    health_timeout: float = PROXY_HEALTH_TIMEOUT


class BackendConfig(BaseModel):
    """Hosted backend (Supabase) connection."""

    url: str | None = None
    anon_key: str | None = None

    @property
    def configured(self) -> bool:
        """True when both URL and key are present."""
        return bool(self.url and self.anon_key)


class ContextConfig(BaseModel):
    """Context window and summarization settings."""

    max_tokens: int = DEFAULT_CONTEXT_TOKENS
    recent_window: int = RECENT_MESSAGE_WINDOW
    summary_interval: int = SUMMARY_INTERVAL


class CacheConfig(BaseModel):
    """In-process cache settings."""

    default_ttl: float = DEFAULT_CACHE_TTL
    max_entries: int = MAX_CACHE_ENTRIES


class Settings(BaseModel):
    """All settings for one assistant-core instance."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @property
    def function_url(self) -> str | None:
        """Managed chat function URL, derived from the backend URL if unset."""
        if self.gateway.function_url:
            return self.gateway.function_url
        if self.backend.url:
            return f"{self.backend.url.rstrip('/')}/functions/v1/{MANAGED_FUNCTION_NAME}"
        return None


def load_settings(
    config_file: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build settings from the config file, then overlay environment variables."""
    env = os.environ if environ is None else environ
    cfg = load_config(config_file)
    settings = Settings.model_validate(cfg)

    api_key = env.get("CLAUDE_API_KEY") or env.get("EXPO_PUBLIC_CLAUDE_API_KEY")
    if api_key:
        settings.provider.api_key = api_key
    if env.get("SUPABASE_URL"):
        settings.backend.url = env["SUPABASE_URL"]
    if env.get("SUPABASE_ANON_KEY"):
        settings.backend.anon_key = env["SUPABASE_ANON_KEY"]
    if env.get("ASSISTANT_PROXY_URL"):
        settings.gateway.proxy_url = env["ASSISTANT_PROXY_URL"]
    return settings
