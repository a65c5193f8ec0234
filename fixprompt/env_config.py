"""Environment configuration — .env loading plus FIXPROMPT_* variables.

Provider keys (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...) are read by LiteLLM
itself; this module only reports whether they are present.

Usage:
    from fixprompt.env_config import get_env_config, check_providers

    cfg = get_env_config()
    print(cfg.model)        # "gpt-4-turbo"
    print(cfg.rate_limit)   # 10

    status = check_providers()
    # {"openai": {"status": "configured", ...}, "anthropic": {"status": "no_key", ...}}
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fixprompt.models import GatewayConfig

logger = logging.getLogger("fixprompt.env_config")

PROVIDER_KEY_MAP: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "groq": "GROQ_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "azure": "AZURE_API_KEY",
}

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "https://chatgpt.com",
    "https://www.chatgpt.com",
    "https://claude.ai",
    "https://www.claude.ai",
]


@dataclass
class EnvConfig:
    """Resolved environment configuration."""
    # Gateway
    model: str = "gpt-4-turbo"
    temperature: float = 0.3
    top_p: float = 0.9
    max_tokens: int = 1000
    timeout: int = 30
    max_retries: int = 1

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "production"
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    rate_limit: int = 10
    max_body_bytes: int = 10 * 1024

    # Logging
    log_level: str = "info"
    log_format: str = "color"
    log_file: str | None = None

    # Providers (resolved)
    providers: dict[str, dict[str, Any]] = field(default_factory=dict)

    def gateway_config(self) -> GatewayConfig:
        return GatewayConfig(
            model=self.model,
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )


def load_dotenv_if_available(path: str | Path | None = None) -> None:
    """Load a .env file if it exists. Variables already set in the environment win."""
    candidates = [path] if path else [".env", Path.home() / ".fixprompt" / ".env"]

    for candidate in candidates:
        if candidate and Path(candidate).is_file():
            logger.debug(f"Loading .env from {candidate}")
            with open(candidate) as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip().strip("'\"")
                    if key and value and key not in os.environ:
                        os.environ[key] = value
            return


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def get_env_config(dotenv_path: str | Path | None = None) -> EnvConfig:
    """Read all config from environment variables.

    Priority: explicit args (create_app / CLI) > env vars > .env file > defaults
    """
    load_dotenv_if_available(dotenv_path)

    providers: dict[str, dict[str, Any]] = {}
    for name, key_var in PROVIDER_KEY_MAP.items():
        providers[name] = {"has_key": bool(os.getenv(key_var, "")), "key_var": key_var}

    origins_str = os.getenv("FIXPROMPT_ALLOWED_ORIGINS", "")

    return EnvConfig(
        model=os.getenv("FIXPROMPT_MODEL", "gpt-4-turbo"),
        temperature=float(os.getenv("FIXPROMPT_TEMPERATURE", "0.3")),
        top_p=float(os.getenv("FIXPROMPT_TOP_P", "0.9")),
        max_tokens=int(os.getenv("FIXPROMPT_MAX_TOKENS", "1000")),
        timeout=int(os.getenv("FIXPROMPT_TIMEOUT", "30")),
        max_retries=int(os.getenv("FIXPROMPT_MAX_RETRIES", "1")),
        host=os.getenv("FIXPROMPT_HOST", "0.0.0.0"),
        port=int(os.getenv("FIXPROMPT_PORT", os.getenv("PORT", "3000"))),
        environment=os.getenv("FIXPROMPT_ENV", "production"),
        allowed_origins=_split_list(origins_str) if origins_str else list(DEFAULT_ALLOWED_ORIGINS),
        rate_limit=int(os.getenv("FIXPROMPT_RATE_LIMIT", "10")),
        max_body_bytes=int(os.getenv("FIXPROMPT_MAX_BODY_BYTES", str(10 * 1024))),
        log_level=os.getenv("FIXPROMPT_LOG_LEVEL", "info"),
        log_format=os.getenv("FIXPROMPT_LOG_FORMAT", "color"),
        log_file=os.getenv("FIXPROMPT_LOG_FILE") or None,
        providers=providers,
    )


def check_providers(env: EnvConfig | None = None) -> dict[str, dict[str, Any]]:
    """Report which provider keys are configured.

    Returns dict of provider_name -> {status, key_var, detail}.
    """
    cfg = env or get_env_config()
    results: dict[str, dict[str, Any]] = {}

    for name, info in cfg.providers.items():
        if info["has_key"]:
            results[name] = {
                "status": "configured",
                "key_var": info["key_var"],
                "detail": f"{info['key_var']} set",
            }
        else:
            results[name] = {
                "status": "no_key",
                "key_var": info["key_var"],
                "detail": f"{info['key_var']} not set (skip)",
            }

    return results
