"""
Front-matter parser for agents.md documents.

Splits the YAML front-matter block from the markdown body and decodes it.
Field semantics are left to the schema validator.

Format:
---
name: "React + TypeScript"
description: "Guidelines for a Vite React app"
category: "Frontend Framework"
author: "someone"
authorUrl: "https://github.com/someone"
tags: ["react", "typescript"]
lastUpdated: "2024-05-01"
---
# Markdown body
"""

from __future__ import annotations

import json
import math
import re
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ParseError

DELIMITER = "---"
BOM = "\ufeff"

_PLAIN_KEY = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
# Characters a YAML reader refuses or folds inside double quotes
_NON_PRINTABLE = re.compile("[^\x09\x0A\x0D\x20-\x7E\xA0-\u2027\u202A-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def _is_delimiter(line: str) -> bool:
    return line.rstrip() == DELIMITER


def split_front_matter(text: str, source_ref: Optional[str] = None) -> Tuple[str, str]:
    """Split raw document text into (front-matter block, body).

    Args:
        text: Raw document text
        source_ref: Where the text came from (for error reporting)

    Returns:
        Tuple of (raw block between the delimiters, body after the closing delimiter)

    Raises:
        ParseError: If the text does not start with a delimited block

    Example:
        >>> block, body = split_front_matter('---\\nname: "x"\\n---\\n# Title\\n')
        >>> block
        'name: "x"\\n'
        >>> body
        '# Title\\n'
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    lines = text.splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        raise ParseError("document must start with a '---' front-matter delimiter", source_ref)

    for i in range(1, len(lines)):
        if _is_delimiter(lines[i]):
            block = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            return block, body

    raise ParseError("front-matter block is not closed by a '---' delimiter", source_ref)


def load_front_matter(block: str, source_ref: Optional[str] = None) -> Dict[str, Any]:
    """Decode a raw front-matter block into a dictionary.

    An empty block yields an empty dictionary so the validator can report
    every missing field.

    Raises:
        ParseError: If the block is not valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise ParseError(f"front matter is not valid YAML: {exc}", source_ref) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(
            f"front matter must be a mapping of fields, got: {type(data).__name__}",
            source_ref,
        )

    return {str(key): value for key, value in data.items()}


def parse_document(text: str, source_ref: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
    """Split and decode a document in one step.

    Returns:
        Tuple of (front-matter fields, body)
    """
    block, body = split_front_matter(text, source_ref)
    return load_front_matter(block, source_ref), body


def _quote(text: str) -> str:
    quoted = json.dumps(text, ensure_ascii=False)
    return _NON_PRINTABLE.sub(lambda match: f"\\u{ord(match.group()):04x}", quoted)


def _render_key(key: Any) -> str:
    if isinstance(key, str):
        # Plain only when it reads back as the same string ("yes", "null" do not)
        if _PLAIN_KEY.fullmatch(key) and yaml.safe_load(key) == key:
            return key
        return _quote(key)
    return _render_value(key)


def _render_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, date):
        # Plain scalar so it loads back as a date (or datetime), not a string
        return value.isoformat()
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return ".nan"
        return ".inf" if value > 0 else "-.inf"
    if isinstance(value, Mapping):
        items = (f"{_render_key(k)}: {_render_value(v)}" for k, v in value.items())
        return "{" + ", ".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_render_value(item) for item in value) + "]"
    if isinstance(value, float):
        text = repr(value)
        # YAML 1.1 floats need a dot in the mantissa
        if "e" in text and "." not in text:
            mantissa, exponent = text.split("e")
            text = f"{mantissa}.0e{exponent}"
        return text
    if isinstance(value, (bool, int)):
        return json.dumps(value)
    return _quote(str(value))


def serialize_front_matter(fields: Mapping[str, Any], body: str = "") -> str:
    """Write fields and body back in the on-disk document layout.

    Fields are written in mapping order. Strings are double-quoted, dates are
    plain YAML dates and ``None`` is written as ``null``, at any depth, so
    decoding the output gives back the same values.

    Example:
        >>> serialize_front_matter({"name": "x", "tags": ["a", "b"]}, "# Body\\n")
        '---\\nname: "x"\\ntags: ["a", "b"]\\n---\\n# Body\\n'
    """
    lines = [DELIMITER]
    for key, value in fields.items():
        lines.append(f"{_render_key(key)}: {_render_value(value)}")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n" + body
