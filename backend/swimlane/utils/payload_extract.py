"""
Payload extraction from free-form generator output.

The generator is asked for bare JSON but routinely wraps it in prose,
markdown fences, or emits a BPMN document instead. This module only locates
the payload span; it never fixes syntax inside it.
"""

import re
from dataclasses import dataclass
from typing import Optional

from swimlane.config import trace
from swimlane.ir.errors import NoPayloadFound

OBJECT_FORM = "object"
XML_FORM = "xml"

_XML_START = re.compile(r"<\?xml\b|<(?:[A-Za-z_][\w.-]*:)?definitions\b")
_XML_ROOT_TAG = re.compile(r"<([A-Za-z_][\w.:-]*)")
_BARE_KEY = re.compile(r'"(?:nodes|lanes|edges)"\s*:')
_MEMBER_KEY = re.compile(r'\s*"(?:[^"\\]|\\.)*"\s*:\s*')
_MEMBER_SEPARATOR = re.compile(r"\s*,")
_SCALAR = re.compile(r"-?\d[\d.eE+-]*|true|false|null")


@dataclass(frozen=True)
class ExtractedPayload:
    form: str   # object | xml
    text: str


# ============================================================
# Scanning helpers
# ============================================================

def _string_end(text: str, start: int) -> Optional[int]:
    """Index just past the JSON string literal opening at `start`."""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return None


def _balanced_end(text: str, start: int) -> Optional[int]:
    """
    Index just past the bracket matching the one at `start`.
    Brackets inside string literals are ignored.
    """
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            if end is None:
                return None
            i = end
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


def _value_end(text: str, start: int) -> Optional[int]:
    if start >= len(text):
        return None
    ch = text[start]
    if ch in "{[":
        return _balanced_end(text, start)
    if ch == '"':
        return _string_end(text, start)
    match = _SCALAR.match(text, start)
    return match.end() if match else None


# ============================================================
# Object form
# ============================================================

def _bare_members(text: str, start: int) -> Optional[str]:
    """
    `"nodes": [...], "edges": [...]` without the enclosing braces.
    Returns the member list wrapped as an object, or None when the key is
    only mentioned in prose and no value follows it.
    """
    pos = start
    members_end = start
    while True:
        key = _MEMBER_KEY.match(text, pos)
        if not key:
            break
        value_end = _value_end(text, key.end())
        if value_end is None:
            if text[key.end():key.end() + 1] in ("{", "["):
                # Unterminated value; hand the remainder to the parser as is
                return "{" + text[start:] + "}"
            break
        members_end = value_end
        separator = _MEMBER_SEPARATOR.match(text, value_end)
        if not separator:
            break
        pos = separator.end()

    if members_end == start:
        return None
    return "{" + text[start:members_end] + "}"


def _find_object(text: str) -> Optional[tuple]:
    brace = text.find("{")
    bare = _BARE_KEY.search(text)

    if bare and (brace == -1 or bare.start() < brace):
        members = _bare_members(text, bare.start())
        if members is not None:
            return bare.start(), members

    if brace == -1:
        return None

    end = _balanced_end(text, brace)
    if end is None:
        # Truncated output: the parser reports where it breaks
        return brace, text[brace:]
    return brace, text[brace:end]


# ============================================================
# Tag form
# ============================================================

def _find_xml(text: str) -> Optional[tuple]:
    match = _XML_START.search(text)
    if not match:
        return None

    start = match.start()
    pos = start
    if text.startswith("<?", start):
        pos = text.find("?>", start)
        pos = len(text) if pos == -1 else pos + 2

    # Comments and doctype never match the tag pattern
    root = _XML_ROOT_TAG.search(text, pos)
    if not root:
        return start, text[start:]

    closing = f"</{root.group(1)}"
    close_at = text.rfind(closing)
    if close_at == -1 or close_at < root.start():
        return start, text[start:]
    end = text.find(">", close_at)
    end = len(text) if end == -1 else end + 1
    return start, text[start:end]


# ============================================================
# Public entry point
# ============================================================

def extract_payload(text: str) -> ExtractedPayload:
    """
    Locate the first structured payload in generator output.

    Whichever form (JSON object or XML document) starts first wins.
    Raises NoPayloadFound when neither is present.
    """
    if not text or not isinstance(text, str):
        raise NoPayloadFound("input text is empty")

    candidates = []

    obj = _find_object(text)
    if obj:
        candidates.append((obj[0], OBJECT_FORM, obj[1]))

    xml = _find_xml(text)
    if xml:
        candidates.append((xml[0], XML_FORM, xml[1]))

    if not candidates:
        raise NoPayloadFound()

    offset, form, payload = min(candidates, key=lambda c: c[0])
    trace("EXTRACTOR", f"found {form} payload at offset {offset} ({len(payload)} chars)")
    return ExtractedPayload(form=form, text=payload)
