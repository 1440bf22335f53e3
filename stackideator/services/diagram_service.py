"""
Helpers for the Mermaid diagram sources carried by a blueprint.

The rendering service only ever receives the raw source text; this module
normalizes what the model returns, runs a cheap syntax sanity check, and
builds the URLs the presentation layer points at.
"""

import base64
import json
import re
from typing import List

from stackideator.constants import (
    DIAGRAM_EDITOR_URL,
    DIAGRAM_RENDER_URL,
    ER_DIAGRAM_KEYWORD,
    SEQUENCE_DIAGRAM_KEYWORD,
)

FENCE = "```"

_FENCED_BLOCK = re.compile(r"```[ \t]*(?:mermaid)?[ \t]*\n([\s\S]*?)```", re.IGNORECASE)
_ER_ENTITY_OPEN = re.compile(r"^[\w\-\"`]+(\s*\[[^\]]*\])?\s*\{$")
_ER_RELATIONSHIP = re.compile(r"^\S+\s+[|}o]{1,2}(--|\.\.)[|{o]{1,2}\s+\S+")
_SEQUENCE_MESSAGE = re.compile(r"^[^:]+?(-{1,2}(>>|>|x|\))[+-]?)[^:]+:")
_SEQUENCE_BLOCK_OPEN = re.compile(r"^(loop|alt|opt|par|critical|break|rect|box)\b")

DARK_THEME_VARIABLES = {
    "darkMode": True,
    "background": "#1e293b",
    "primaryColor": "#6366f1",
    "lineColor": "#94a3b8",
}


def strip_fences(text: str) -> str:
    """Remove a surrounding ``` / ```mermaid fence, if the model added one."""
    if not text:
        return ""
    stripped = text.strip()
    match = _FENCED_BLOCK.search(stripped)
    if match:
        return match.group(1).strip()
    # Unterminated fence
    if stripped.startswith(FENCE):
        lines = stripped.splitlines()[1:]
        if lines and lines[-1].strip() == FENCE:
            lines = lines[:-1]
        return "\n".join(lines).strip()
    return stripped


def _meaningful_lines(source: str) -> List[str]:
    lines = []
    in_front_matter = False
    for raw in source.splitlines():
        line = raw.strip()
        if line == "---":
            in_front_matter = not in_front_matter
            continue
        if in_front_matter or not line or line.startswith("%%"):
            continue
        lines.append(line)
    return lines


def _check_er(body: List[str]) -> List[str]:
    problems = []
    depth = 0
    statements = 0
    for line in body:
        if _ER_ENTITY_OPEN.match(line):
            if depth:
                problems.append(f"nested entity block: {line!r}")
            depth += 1
            statements += 1
        elif line == "}":
            if not depth:
                problems.append("unmatched '}'")
            else:
                depth -= 1
        elif _ER_RELATIONSHIP.match(line):
            statements += 1
    if depth:
        problems.append("unclosed entity block")
    if not statements:
        problems.append("no entities or relationships")
    return problems


def _check_sequence(body: List[str]) -> List[str]:
    problems = []
    depth = 0
    messages = 0
    for line in body:
        if _SEQUENCE_BLOCK_OPEN.match(line):
            depth += 1
        elif line == "end":
            if not depth:
                problems.append("unmatched 'end'")
            else:
                depth -= 1
        elif _SEQUENCE_MESSAGE.match(line):
            messages += 1
    if depth:
        problems.append("unclosed block (missing 'end')")
    if not messages:
        problems.append("no messages")
    return problems


def check_diagram(source: str, keyword: str) -> List[str]:
    """
    Sanity-check Mermaid source of the given dialect.

    This is not a full parser; it catches the failures that otherwise only
    surface at render time (fences, wrong dialect, unbalanced blocks).

    Args:
        source: Mermaid source text
        keyword: Dialect header, e.g. ``erDiagram`` or ``sequenceDiagram``

    Returns:
        List of problems found; empty when the source looks renderable
    """
    if FENCE in source:
        return ["contains fence markers"]
    lines = _meaningful_lines(source)
    if not lines:
        return ["empty diagram"]
    header, body = lines[0], lines[1:]
    if header.split()[0] != keyword:
        return [f"expected {keyword!r} header, got {header!r}"]
    if keyword == ER_DIAGRAM_KEYWORD:
        return _check_er(body)
    if keyword == SEQUENCE_DIAGRAM_KEYWORD:
        return _check_sequence(body)
    return []


def _encode(state: dict, urlsafe: bool) -> str:
    raw = json.dumps(state).encode("utf-8")
    encoded = base64.urlsafe_b64encode(raw) if urlsafe else base64.b64encode(raw)
    return encoded.decode("ascii")


def render_url(source: str, theme: str = "dark") -> str:
    """Image URL of the rendering service for the given source."""
    mermaid = {"theme": theme}
    if theme == "dark":
        mermaid["themeVariables"] = DARK_THEME_VARIABLES
    return DIAGRAM_RENDER_URL + _encode({"code": source, "mermaid": mermaid}, urlsafe=True)


def editor_url(source: str) -> str:
    """Live-editor link for the given source."""
    return DIAGRAM_EDITOR_URL + _encode({"code": source, "mermaid": {"theme": "default"}}, urlsafe=False)
