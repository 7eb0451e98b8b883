"""Presentation helpers."""

from datetime import datetime, timedelta, timezone

from rich.markdown import Markdown

from llmchat.render import format_relative, render

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def test_render_markdown():
    assert isinstance(render("# Title\n\n```py\nx = 1\n```"), Markdown)


def test_format_relative():
    assert format_relative(NOW - timedelta(seconds=20), NOW) == "just now"
    assert format_relative(NOW - timedelta(minutes=5), NOW) == "5 minutes ago"
    assert format_relative(NOW - timedelta(hours=3), NOW) == "3 hours ago"
    assert format_relative(NOW - timedelta(days=2), NOW) == "2 days ago"
    assert format_relative(NOW - timedelta(days=30), NOW) == "2024-04-10"
    assert format_relative(None, NOW) == ""


def test_naive_timestamps_are_utc():
    assert format_relative(datetime(2024, 5, 10, 11, 0), NOW) == "1 hour ago"
