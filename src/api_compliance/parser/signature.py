"""Reads a callable's formal parameters out of its source text.

The parameter list is split by a small single-pass scanner that tracks
bracket depth and quote state, so commas inside annotations such as
``dict[str, int]``, default values like ``"a,b"`` or trailing comments
never cause a false split.
"""

import inspect
import logging
import re
import textwrap
from enum import Enum
from typing import Any, Callable, Iterable

from api_compliance.base import ClassifiedParameters, ParsedParameter

logger = logging.getLogger(__name__)

OPENERS = "([{"
CLOSERS = ")]}"
SELF_NAMES = ("self", "cls")

_DEF_RE = re.compile(r"^[ \t]*(?:async[ \t]+)?def[ \t]+\w+[ \t]*\(", re.MULTILINE)
_LAMBDA_RE = re.compile(r"\blambda\b")


class ScanState(Enum):
    NORMAL = "normal"
    IN_SINGLE_QUOTE = "in_single_quote"
    IN_DOUBLE_QUOTE = "in_double_quote"
    IN_COMMENT = "in_comment"


class Scanner:
    """Character-at-a-time state machine over Python parameter text."""

    def __init__(self, depth: int = 0):
        self.state = ScanState.NORMAL
        self.depth = depth
        self._escaped = False

    @property
    def at_top_level(self) -> bool:
        return self.state is ScanState.NORMAL and self.depth == 0

    def feed(self, ch: str) -> bool:
        """Consume one character; return False if it belongs to a comment."""
        state = self.state
        if state is ScanState.IN_COMMENT:
            if ch == "\n":
                self.state = ScanState.NORMAL
            return False

        if state in (ScanState.IN_SINGLE_QUOTE, ScanState.IN_DOUBLE_QUOTE):
            quote = "'" if state is ScanState.IN_SINGLE_QUOTE else '"'
            if self._escaped:
                self._escaped = False
            elif ch == "\\":
                self._escaped = True
            elif ch == quote:
                self.state = ScanState.NORMAL
            return True

        if ch == "#":
            self.state = ScanState.IN_COMMENT
            return False
        if ch == "'":
            self.state = ScanState.IN_SINGLE_QUOTE
        elif ch == '"':
            self.state = ScanState.IN_DOUBLE_QUOTE
        elif ch in OPENERS:
            self.depth += 1
        elif ch in CLOSERS:
            self.depth = max(self.depth - 1, 0)
        return True


def split_parameters(text: str) -> list[str]:
    """Split parameter text on top-level commas only."""
    pieces = []
    current: list[str] = []
    scanner = Scanner()
    for ch in text:
        if ch == "," and scanner.at_top_level:
            pieces.append("".join(current))
            current = []
            continue
        if scanner.feed(ch):
            current.append(ch)
    pieces.append("".join(current))
    return [p.strip() for p in pieces if p.strip()]


def _find_top_level(text: str, target: str) -> int:
    scanner = Scanner()
    for index, ch in enumerate(text):
        if ch == target and scanner.at_top_level:
            return index
        scanner.feed(ch)
    return -1


def extract_parameter_text(source: str) -> str | None:
    """Return the text between the parentheses of the first ``def`` in *source*.

    Falls back to the parameters of a ``lambda`` expression.
    """
    source = textwrap.dedent(source)
    match = _DEF_RE.search(source)
    if match:
        scanner = Scanner(depth=1)
        start = match.end()
        for index in range(start, len(source)):
            ch = source[index]
            scanner.feed(ch)
            if scanner.depth == 0 and scanner.state is ScanState.NORMAL:
                return source[start:index]
        return None

    match = _LAMBDA_RE.search(source)
    if match:
        rest = source[match.end():]
        end = _find_top_level(rest, ":")
        if end >= 0:
            return rest[:end]
    return None


def parse_parameter(raw: str) -> ParsedParameter | None:
    """Parse one raw parameter; bare ``*`` and ``/`` markers yield None."""
    text = raw.strip()
    if text in ("*", "/", ""):
        return None

    is_keywords = text.startswith("**")
    is_rest = not is_keywords and text.startswith("*")
    body = text.lstrip("*").strip()

    default = None
    eq = _find_top_level(body, "=")
    if eq >= 0:
        default = body[eq + 1:].strip()
        body = body[:eq].strip()

    declared_type = None
    colon = _find_top_level(body, ":")
    if colon >= 0:
        declared_type = body[colon + 1:].strip() or None
        body = body[:colon].strip()

    return ParsedParameter(
        raw_text=text,
        name=body,
        declared_type=declared_type,
        default=default,
        is_rest=is_rest,
        is_keywords=is_keywords,
    )


def parse_parameter_text(text: str) -> list[ParsedParameter]:
    parsed = (parse_parameter(raw) for raw in split_parameters(text))
    return [p for p in parsed if p is not None]


def _source_of(func: Callable[..., Any]) -> str | None:
    func = getattr(func, "__func__", func)
    try:
        return inspect.getsource(func)
    except (OSError, TypeError) as exc:
        logger.debug("No source available for %r: %s", func, exc)
        return None


def inspect_callable(func: Callable[..., Any], skip_self: bool = True) -> list[ParsedParameter] | None:
    """Parameters of *func* in declaration order.

    Returns None when the source cannot be retrieved; callers treat that
    as "no opinion" rather than as a failure.
    """
    source = _source_of(func)
    if source is None:
        return None
    text = extract_parameter_text(source)
    if text is None:
        logger.debug("Could not locate a parameter list in the source of %r", func)
        return None

    params = parse_parameter_text(text)
    if skip_self and params and params[0].name in SELF_NAMES and not params[0].is_variadic:
        params = params[1:]
    return params


def classify_parameters(params: Iterable[ParsedParameter], placeholders: Iterable[str]) -> ClassifiedParameters:
    placeholder_names = set(placeholders)
    classified = ClassifiedParameters()
    for param in params:
        if param.is_variadic:
            classified.options_candidates.append(param)
        elif param.name in placeholder_names:
            classified.path_params_in_signature.append(param)
        else:
            classified.request_candidates.append(param)
    return classified
