"""Markdown rendering."""

from .markdown import format_language_rows, render_fallback, render_profile

__all__ = [
    "format_language_rows",
    "render_fallback",
    "render_profile",
]
