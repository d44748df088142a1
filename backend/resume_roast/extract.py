"""
Pull a JSON object out of free-form model output.

Models wrap JSON in markdown fences, prefix it with chatter, or add a closing
remark. The scanner walks the text once, tracking string and escape state so
that braces inside string values do not end an object early.
"""
import json
from typing import Any, Iterator, List, Optional, Tuple


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield each outermost balanced {...} span, left to right."""
    first = text.find("{")
    if first == -1:
        return

    spans: List[Tuple[int, int]] = []
    open_at: List[int] = []
    in_string = False
    escaped = False
    for i in range(first, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            open_at.append(i)
        elif ch == "}" and open_at:
            spans.append((open_at.pop(), i))

    # Spans nest or are disjoint; an unclosed outer brace leaves its inner
    # objects as the outermost closed ones
    covered_to = -1
    for start, end in sorted(spans):
        if start > covered_to:
            yield text[start:end + 1]
            covered_to = end


def _greedy_object(text: str) -> Optional[str]:
    """First '{' to last '}', like the regex \\{[\\s\\S]*\\} but linear."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def extract_json(text: str) -> Optional[str]:
    """Return the first JSON object embedded in `text`, or None.

    Prefers the first balanced span that actually decodes to an object and
    falls back to the greedy first-'{'-to-last-'}' match.
    """
    if not text:
        return None
    for candidate in _balanced_objects(text):
        try:
            if isinstance(json.loads(candidate), dict):
                return candidate
        except ValueError:
            continue
    return _greedy_object(text)


def parse_model_json(text: str) -> Any:
    """Decode the JSON object in `text`; raises ValueError when there is none."""
    return json.loads(extract_json(text) or text)
