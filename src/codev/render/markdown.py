"""
Markdown to ANSI terminal rendering.
Created: 2026-09-12

Turns a model reply written in Markdown into styled, word-wrapped terminal
text. Rendering is a fixed sequence of regex passes; each pass is a pure
function over text so it can be tested on its own:

     1. extract_code_blocks    fenced blocks -> placeholders (rendered + highlighted)
     2. style_headings         # .. ######
     3. style_rules            ---, ***, ___
     4. extract_inline_code    `code` -> placeholders (rendered)
     5. style_emphasis         **bold**, __bold__, *italic*, _italic_
     6. style_strikethrough    ~~text~~
     7. style_links            [text](url)
     8. style_blockquotes      > text
     9. style_lists            -, *, + and 1. items
    10. restore_placeholders
    11. normalize_blank_lines
    12. wrap_lines             to terminal width - 4, by visible length

Code is pulled out first so later passes never touch it.
"""

from __future__ import annotations

import logging
import re
import shutil

from rich.color import ColorSystem
from rich.console import Console
from rich.style import Style
from rich.syntax import Syntax
from rich.text import Text

logger = logging.getLogger(__name__)

CODE_BORDER_WIDTH = 50
RULE_WIDTH = 60
WRAP_MARGIN = 4
MIN_WRAP_WIDTH = 20
CODE_INDENT = "    "
CODE_THEME = "ansi_dark"

# Visible indentation per heading level (levels 1-2 get blank lines instead)
_HEADING_INDENTS = {3: "  ", 4: "   ", 5: "    ", 6: "      "}
_HEADING_STYLES = {
    1: "bold underline magenta",
    2: "bold underline magenta",
    3: "bold green",
    4: "bold green",
    5: "green",
    6: "dim green",
}

# ---------------------------------------------------------------------------
# Regex helpers
# ---------------------------------------------------------------------------
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
_CODE_FENCE_RE = re.compile(r"```(\w*)\r?\n([\s\S]*?)```")
_PLACEHOLDER_RE = re.compile(r"\x00(CODE|INLINE)(\d+)\x00")
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$", re.MULTILINE)
_RULE_RE = re.compile(r"^[-*_]{3,}[ \t]*$", re.MULTILINE)
_INLINE_CODE_RE = re.compile(r"`([^`\n\r]+)`")
_BOLD_STAR_RE = re.compile(r"\*\*(?!\s)(.+?)(?<!\s)\*\*")
_BOLD_UNDERSCORE_RE = re.compile(r"__(?!\s)(.+?)(?<!\s)__")
_ITALIC_STAR_RE = re.compile(r"(?<!\*)\*(?![\s*])([^*\n]+?)(?<![\s*])\*(?!\*)")
# An SGR escape before the opening "_" counts as a boundary (group 1 is kept)
_ITALIC_UNDERSCORE_RE = re.compile(
    r"(^|[^\w_]|\x1b\[[0-9;]*m)_(?![\s_])([^_\n]+?)(?<![\s_])_(?![\w_])"
)
_STRIKETHROUGH_RE = re.compile(r"~~(.+?)~~")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_BLOCKQUOTE_RE = re.compile(r"^>[ \t]+(.+)$", re.MULTILINE)
_UNORDERED_ITEM_RE = re.compile(r"^([ \t]*)[-*+][ \t]+(.+)$", re.MULTILINE)
_ORDERED_ITEM_RE = re.compile(r"^([ \t]*)(\d+)\.[ \t]+(.+)$", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n{3,}")

# Only used to resolve styles when turning highlighted Text into ANSI
_ANSI_CONSOLE = Console(color_system="standard", force_terminal=True, width=1000)


def strip_ansi(text: str) -> str:
    """Remove ANSI style sequences."""
    return _ANSI_RE.sub("", text)


def visible_len(text: str) -> int:
    """Printable length of ``text``, ignoring style sequences."""
    return len(strip_ansi(text))


def _style(text: str, spec: str) -> str:
    return Style.parse(spec).render(text, color_system=ColorSystem.STANDARD)


def _text_to_ansi(text: Text) -> str:
    return "".join(
        segment.style.render(segment.text, color_system=ColorSystem.STANDARD)
        if segment.style
        else segment.text
        for segment in text.render(_ANSI_CONSOLE)
    )


def _placeholder(kind: str, index: int) -> str:
    return f"\x00{kind}{index}\x00"


# ---------------------------------------------------------------------------
# Code
# ---------------------------------------------------------------------------
def highlight_code(code: str, language: str = "") -> list[str]:
    """Syntax-highlight ``code`` into indented ANSI lines.

    Tabs are kept as they are. If highlighting fails for any reason the
    lines come back unstyled.
    """
    lines = code.split("\n")
    try:
        highlighted = Syntax(
            code,
            language or "text",
            theme=CODE_THEME,
            background_color="default",
            tab_size=0,
        ).highlight(code)
        rendered = [_text_to_ansi(line) for line in highlighted.split("\n", allow_blank=True)]
        if len(rendered) < len(lines):
            raise ValueError("highlighter dropped lines")
        rendered = rendered[: len(lines)]
    except Exception as e:
        logger.debug("Highlighting failed for %r block: %s", language, e)
        rendered = lines
    return [f"{CODE_INDENT}{line}" for line in rendered]


def render_code_block(code: str, language: str = "") -> str:
    """Border rule, optional language label, highlighted body, border rule."""
    code = code.replace("\r\n", "\n").strip("\n")
    border = _style("─" * CODE_BORDER_WIDTH, "bright_black")
    label = _style(f"  [{language}]", "dim") if language else ""
    body = "\n".join(highlight_code(code, language))
    return f"\n{border}{label}\n{body}\n{border}\n"


def extract_code_blocks(text: str) -> tuple[str, list[str]]:
    """Replace fenced code blocks with placeholders and return (text, rendered_blocks)."""
    blocks: list[str] = []

    def _replace(m: re.Match) -> str:
        blocks.append(render_code_block(m.group(2), m.group(1)))
        return _placeholder("CODE", len(blocks) - 1)

    return _CODE_FENCE_RE.sub(_replace, text), blocks


def extract_inline_code(text: str) -> tuple[str, list[str]]:
    """Replace `code` spans with placeholders and return (text, rendered_spans)."""
    spans: list[str] = []

    def _replace(m: re.Match) -> str:
        spans.append(_style(f" {m.group(1)} ", "yellow on bright_black"))
        return _placeholder("INLINE", len(spans) - 1)

    return _INLINE_CODE_RE.sub(_replace, text), spans


def restore_placeholders(
    text: str, code_blocks: list[str], inline_spans: list[str] | None = None
) -> str:
    """Put rendered code back where its placeholder sits."""
    inline_spans = inline_spans or []

    def _replace(m: re.Match) -> str:
        index = int(m.group(2))
        stash = code_blocks if m.group(1) == "CODE" else inline_spans
        return stash[index] if index < len(stash) else m.group(0)

    return _PLACEHOLDER_RE.sub(_replace, text)


# ---------------------------------------------------------------------------
# Block and inline styling
# ---------------------------------------------------------------------------
def style_headings(text: str) -> str:
    def _replace(m: re.Match) -> str:
        level = len(m.group(1))
        styled = _style(m.group(2), _HEADING_STYLES[level])
        if level <= 2:
            return f"\n{styled}\n"
        return f"{_HEADING_INDENTS[level]}{styled}"

    return _HEADING_RE.sub(_replace, text)


def style_rules(text: str) -> str:
    rule = _style("─" * RULE_WIDTH, "bright_black")
    return _RULE_RE.sub(lambda m: rule, text)


def style_emphasis(text: str) -> str:
    """Bold first, then italics; the lookarounds keep ``**`` from reading as two ``*``."""
    text = _BOLD_STAR_RE.sub(lambda m: _style(m.group(1), "bold"), text)
    text = _BOLD_UNDERSCORE_RE.sub(lambda m: _style(m.group(1), "bold"), text)
    text = _ITALIC_STAR_RE.sub(lambda m: _style(m.group(1), "italic"), text)
    text = _ITALIC_UNDERSCORE_RE.sub(lambda m: m.group(1) + _style(m.group(2), "italic"), text)
    return text


def style_strikethrough(text: str) -> str:
    return _STRIKETHROUGH_RE.sub(lambda m: _style(m.group(1), "strike dim"), text)


def style_links(text: str) -> str:
    return _LINK_RE.sub(
        lambda m: f"{_style(m.group(1), 'underline blue')} {_style(f'({m.group(2)})', 'dim')}",
        text,
    )


def style_blockquotes(text: str) -> str:
    return _BLOCKQUOTE_RE.sub(lambda m: _style(f"  │ {m.group(1)}", "italic bright_black"), text)


def style_lists(text: str) -> str:
    text = _UNORDERED_ITEM_RE.sub(
        lambda m: f"{m.group(1)}  {_style('•', 'cyan')} {m.group(2)}", text
    )
    text = _ORDERED_ITEM_RE.sub(
        lambda m: f"{m.group(1)}  {_style(m.group(2) + '.', 'cyan')} {m.group(3)}", text
    )
    return text


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
def normalize_blank_lines(text: str) -> str:
    """Collapse runs of blank lines to a single blank line."""
    return _BLANK_RUN_RE.sub("\n\n", text)


def _is_preformatted(line: str) -> bool:
    plain = strip_ansi(line)
    return "─" in plain or plain.startswith(CODE_INDENT)


def wrap_line(line: str, width: int) -> list[str]:
    """Greedy wrap on single spaces, measuring visible length.

    A word longer than ``width`` gets a line of its own and is not split.
    """
    if visible_len(line) <= width or _is_preformatted(line):
        return [line]

    segments: list[str] = []
    current: list[str] = []
    current_len = 0
    for word in line.split(" "):
        word_len = visible_len(word)
        if current and current_len + 1 + word_len > width:
            segments.append(" ".join(current))
            current = [word]
            current_len = word_len
        else:
            current_len = current_len + 1 + word_len if current else word_len
            current.append(word)
    if current:
        segments.append(" ".join(current))
    return segments


def wrap_lines(text: str, width: int) -> str:
    """Wrap every line independently to ``width`` visible columns."""
    return "\n".join(segment for line in text.split("\n") for segment in wrap_line(line, width))


def terminal_width() -> int:
    return shutil.get_terminal_size((80, 24)).columns


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def render_markdown(markdown: str, width: int | None = None) -> str:
    """Render Markdown as styled terminal text.

    Args:
        markdown: Markdown source, usually a model reply.
        width: Terminal width in columns. Defaults to the current terminal.

    Returns:
        ANSI-styled text wrapped to ``width - 4`` visible columns.
    """
    if not markdown:
        return ""

    if width is None:
        width = terminal_width()
    wrap_width = max(width - WRAP_MARGIN, MIN_WRAP_WIDTH)

    text, code_blocks = extract_code_blocks(markdown)
    text = style_headings(text)
    text = style_rules(text)
    text, inline_spans = extract_inline_code(text)
    text = style_emphasis(text)
    text = style_strikethrough(text)
    text = style_links(text)
    text = style_blockquotes(text)
    text = style_lists(text)
    text = restore_placeholders(text, code_blocks, inline_spans)
    text = normalize_blank_lines(text)
    text = wrap_lines(text, wrap_width)
    return text.strip("\n")
