"""
Presentation helpers for the CLI — markdown rendering and relative dates.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.text import Text

logger = logging.getLogger(__name__)


def render(text: str, code_theme: str = "monokai") -> RenderableType:
    """Markdown renderable for a message; falls back to the raw text."""
    try:
        return Markdown(text, code_theme=code_theme)
    except Exception as e:
        logger.debug(f"Markdown render failed, showing raw text: {e}")
        return Text(text)


def format_relative(ts: Optional[datetime], now: Optional[datetime] = None) -> str:
    if ts is None:
        return ""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    minutes = int((now - ts).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return _ago(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _ago(hours, "hour")
    days = hours // 24
    if days < 7:
        return _ago(days, "day")
    return ts.date().isoformat()


def _ago(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'} ago"
