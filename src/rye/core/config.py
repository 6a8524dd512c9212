"""Configuration loading (env vars and .env)."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()

DEFAULT_PROVIDER = "anthropic"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 4096

ENV_MAP = {
    "anthropic": "ANTHROPIC_API_KEY",
}

_VI_EDITORS = ("vi", "vim", "nvim", "nvi", "gvim", "mvim", "view", "elvis", "vile")


@dataclass(frozen=True, slots=True)
class RyeConfig:
    """Resolved runtime configuration."""

    conversations_dir: Path
    vi_mode: bool = False
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    max_tokens: int = DEFAULT_MAX_TOKENS


def default_conversations_dir() -> Path:
    return Path.home() / ".rye"


def conversations_dir(env: Mapping[str, str] | None = None) -> Path:
    """Directory holding conversation files (``RYE_CONVERSATIONS`` or ``~/.rye``)."""
    env = os.environ if env is None else env
    if custom := env.get("RYE_CONVERSATIONS"):
        return Path(custom).expanduser()
    return default_conversations_dir()


def editor_uses_vi(env: Mapping[str, str] | None = None) -> bool:
    """Infer vi key bindings from ``VISUAL`` / ``EDITOR``."""
    env = os.environ if env is None else env
    editor = env.get("VISUAL") or env.get("EDITOR") or ""
    if not editor.strip():
        return False
    command = editor.split()[0]
    name = Path(command).name.lower()
    return name in _VI_EDITORS


def resolve_api_key(provider: str, env: Mapping[str, str] | None = None) -> str | None:
    """Resolve the credential for *provider* from the environment."""
    env = os.environ if env is None else env
    env_var = ENV_MAP.get(provider)
    if env_var:
        return env.get(env_var) or None
    return None


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer (using %d)", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive (using %d)", name, raw, default)
        return default
    return value


def load_config(env: Mapping[str, str] | None = None) -> RyeConfig:
    """Build a :class:`RyeConfig` from environment variables."""
    env = os.environ if env is None else env
    provider = (env.get("RYE_PROVIDER") or DEFAULT_PROVIDER).lower()
    model = env.get("RYE_MODEL") or env.get("ANTHROPIC_MODEL") or DEFAULT_MODEL
    return RyeConfig(
        conversations_dir=conversations_dir(env),
        vi_mode=editor_uses_vi(env),
        provider=provider,
        model=model,
        api_key=resolve_api_key(provider, env),
        max_tokens=_int_setting(env, "RYE_MAX_TOKENS", DEFAULT_MAX_TOKENS),
    )
