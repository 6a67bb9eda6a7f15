"""Terminal rendering of model replies."""

from codev.render.markdown import render_markdown, strip_ansi, visible_len

__all__ = ["render_markdown", "strip_ansi", "visible_len"]
