"""Doc-comment parameter parser.

Handler docstrings may describe their parameters in stanzas such as::

    @Parameter(
        name="limit",
        in="query",
        type="integer",
        required=false,
    )

Parsing happens in two passes. The first cuts the text into stanzas at the
open and close markers; the second tokenizes each stanza into ``key=value``
pairs. Malformed stanzas are skipped, never raised.
"""

import inspect
import re

from api_tester.catalog.handlers import HandlerRef
from api_tester.catalog.models import ParameterDescriptor

OPEN_MARKER = re.compile(r"^@(?:SWG\\)?Parameter\($")
CLOSE_MARKERS = (")", "),")
KEY_PATTERN = re.compile(r"^(\w+)\s*=(.*)$")
QUOTES = "'\""


def extract_parameters(handler: HandlerRef) -> list[ParameterDescriptor]:
    """Return the documented parameters of a resolved handler."""
    entry = handler.entry_point()
    if entry is None:
        return []
    doc = inspect.getdoc(entry)
    if not doc:
        return []
    return parse_docblock(doc)


def parse_docblock(text: str) -> list[ParameterDescriptor]:
    """Parse every well-formed parameter stanza in ``text``, in source order."""
    parameters = []
    for stanza in _split_stanzas(text.splitlines()):
        pairs = _tokenize(stanza)
        if not pairs:
            continue
        data = dict(pairs)
        name = data.pop("name", None)
        if not name:
            continue
        parameters.append(ParameterDescriptor(name=name, attributes=data))
    return parameters


def _split_stanzas(lines: list[str]) -> list[list[str]]:
    """Pass 1: collect the body lines of each terminated stanza."""
    stanzas: list[list[str]] = []
    current: list[str] | None = None

    for raw in lines:
        line = raw.strip()
        if OPEN_MARKER.match(line):
            # A second opener drops the unterminated stanza before it
            current = []
        elif current is not None and line in CLOSE_MARKERS:
            stanzas.append(current)
            current = None
        elif current is not None:
            current.append(line)

    return stanzas


def _tokenize(body: list[str]) -> list[tuple[str, str]]:
    """Pass 2: split stanza lines into key and value lists, then zip them.

    Returns [] when the two lists do not line up.
    """
    keys: list[str] = []
    values: list[str] = []

    for line in body:
        match = KEY_PATTERN.match(line)
        if not match:
            continue
        value = _clean_value(match.group(2))
        if not value:
            continue
        keys.append(match.group(1))
        values.append(value)

    if len(keys) != len(values):
        return []
    return list(zip(keys, values))


def _clean_value(raw: str) -> str:
    value = raw.strip().rstrip(",").rstrip()
    if value and value[0] in QUOTES:
        value = value[1:]
    if value and value[-1] in QUOTES:
        value = value[:-1]
    return value.strip(",")
