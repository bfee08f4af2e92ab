# agent_router/generate/extract.py
"""Turn a raw model completion into a JSON payload.

Models are asked for bare JSON but often wrap it in markdown fences or add a
sentence before and after. Fences are removed, then the text between the first
``{`` and the last ``}`` is parsed. Several top-level objects in one answer
are not separated; the span simply covers all of them.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from agent_router.errors import GenerationParseError

FENCE_MARKERS = ("```json\n", "```\n", "\n```", "```")

ENTRY_POINT = "/App.js"
SOURCE_SUFFIX = ".js"

# import './x.css';  import "../x.css"
_CSS_IMPORT_RE = [
    re.compile(r"""import\s+['"]\./[^'"]*\.css['"];?\n?"""),
    re.compile(r"""import\s+['"]\.\./[^'"]*\.css['"];?\n?"""),
]


def strip_fences(text: str) -> str:
    for marker in FENCE_MARKERS:
        text = text.replace(marker, "")
    return text


def brace_span(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1:
        return text[start:end + 1]
    return text


def extract_json_object(raw: str, error: str = "Failed to parse generated code") -> Dict[str, Any]:
    candidate = brace_span(strip_fences(raw or ""))
    try:
        parsed = json.loads(candidate)
    except ValueError as exc:
        raise GenerationParseError(error, raw) from exc
    if not isinstance(parsed, dict):
        raise GenerationParseError(error, raw)
    return parsed


def strip_css_imports(source: str) -> str:
    for pattern in _CSS_IMPORT_RE:
        source = pattern.sub("", source)
    return source


def extract_html_payload(raw: str) -> Dict[str, Any]:
    """``{html, css, js}``; missing keys are left to the caller."""
    return extract_json_object(raw)


def extract_app_payload(raw: str) -> Dict[str, Any]:
    """``{files: {path: source}}`` with component stylesheet imports removed.

    Only the entry point may import CSS in the target sandbox, so relative
    ``.css`` imports are stripped from every other ``.js`` file.
    """
    payload = extract_json_object(
        raw,
        "Failed to parse generated code. The model may have returned the wrong "
        "format. Try again or use another model.",
    )
    files = payload.get("files")
    if isinstance(files, dict):
        for path, source in files.items():
            if path.endswith(SOURCE_SUFFIX) and path != ENTRY_POINT and isinstance(source, str):
                files[path] = strip_css_imports(source)
    return payload


__all__ = [
    "strip_fences",
    "brace_span",
    "extract_json_object",
    "strip_css_imports",
    "extract_html_payload",
    "extract_app_payload",
]
