"""
Client settings — JSON config file under ~/.llmchat with env overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

CONFIG_FILE = Path.home() / ".llmchat" / "config.json"

DEFAULT_BASE_URL = "http://localhost:8080"
MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
ALLOWED_EXTENSIONS = (
    ".txt", ".py", ".go", ".c", ".cpp", ".h", ".hpp", ".js", ".ts", ".java",
    ".html", ".css", ".md", ".json", ".xml", ".yaml", ".yml",
)

ENV_OVERRIDES = {
    "LLMCHAT_BASE_URL": "base_url",
    "LLMCHAT_TOKEN": "token",
}


class ClientSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = 30.0
    # Backend caps a turn at 120s and sends a heartbeat every 5s.
    stream_timeout: float = 130.0
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES
    allowed_extensions: list[str] = Field(default_factory=lambda: list(ALLOWED_EXTENSIONS))
    default_model: Optional[str] = None
    default_persona: Optional[str] = None


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        return json.loads((path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(cfg, indent=2))


def load_settings(path: Optional[Path] = None, environ: Optional[dict[str, str]] = None) -> ClientSettings:
    """Build settings from the config file, then apply LLMCHAT_* environment overrides."""
    cfg = load_config(path)
    env = os.environ if environ is None else environ
    for var, field in ENV_OVERRIDES.items():
        if env.get(var):
            cfg[field] = env[var]
    return ClientSettings.model_validate(cfg)
