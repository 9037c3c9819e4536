"""
Header field containers and the Cache-Control parser.

Tokens and quoted strings follow RFC 9110 Section 5.6.
"""

from __future__ import annotations

import string
import sys
from dataclasses import dataclass
from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

# Delta-seconds are capped at 2^31 - 1, see RFC 9111 Section 1.2.2.
MAX_DELTA_SECONDS = 2147483647

# A bare max-stale accepts a response of any staleness.
UNBOUNDED = sys.maxsize

NUMERIC_DIRECTIVES = ("max-age", "s-maxage", "max-stale", "min-fresh")

# tchar, RFC 9110 Section 5.6.2
TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def is_token(c: str) -> bool:
    """
    Whether `c` may appear in a token.

    Examples:
        >>> is_token("a"), is_token("-"), is_token(","), is_token("=")
        (True, True, False, False)
    """
    return c in TOKEN_CHARS


def is_qd_text(c: str) -> bool:
    """qdtext = HTAB / SP / %x21 / %x23-5B / %x5D-7E / obs-text"""
    if len(c) != 1:
        return False
    code = ord(c)
    return code in (0x09, 0x20, 0x21) or 0x23 <= code <= 0x5B or 0x5D <= code <= 0x7E or code >= 0x80


def http_unquote(raw: str) -> Tuple[int, str]:
    """
    Reads the quoted-string at the start of `raw`.

    Returns the number of characters consumed and the unescaped content, or
    `(-1, "")` when `raw` does not start with a complete quoted-string.
    Characters a quoted-string may not contain are replaced with "?".

    Examples:
        >>> http_unquote('"hello"')
        (7, 'hello')
        >>> http_unquote('"hello\\"world" rest')
        (14, 'hello"world')
        >>> http_unquote('"test')
        (-1, '')
    """
    if not raw.startswith('"'):
        return -1, ""

    chars: List[str] = []
    escaped = False
    for position, char in enumerate(raw[1:], start=1):
        if escaped:
            chars.append(char if is_qd_text(char) or char in '"\\' else "?")
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return position + 1, "".join(chars)
        else:
            chars.append(char if is_qd_text(char) else "?")
    return -1, ""


class Headers(Mapping[str, str]):
    """
    An immutable, ordered, case-insensitive multi-map of HTTP header fields.

    Every `(name, value)` line is kept in arrival order with its original
    casing, so repeated fields such as several `Cache-Control` lines
    survive a round trip. Iterating yields each distinct lower-cased name
    once; `__getitem__` joins repeated values with ", ".
    """

    def __init__(
        self,
        headers: Union[Mapping[str, Union[str, List[str]]], Iterable[Tuple[str, str]], None] = None,
    ) -> None:
        items: List[Tuple[str, str]] = []
        if headers is None:
            pass
        elif isinstance(headers, Headers):
            items.extend(headers._items)
        elif isinstance(headers, Mapping):
            for key, value in headers.items():
                if isinstance(value, str):
                    items.append((key, value))
                else:
                    items.extend((key, v) for v in value)
        else:
            items.extend((key, value) for key, value in headers)
        self._items: Tuple[Tuple[str, str], ...] = tuple(items)

    def get_list(self, key: str) -> List[str]:
        key = key.lower()
        return [value for name, value in self._items if name.lower() == key]

    def get_first(self, key: str) -> Optional[str]:
        key = key.lower()
        for name, value in self._items:
            if name.lower() == key:
                return value
        return None

    def multi_items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def with_header(self, key: str, value: str) -> "Headers":
        """Return a copy with one more `key: value` line appended."""
        return Headers(self._items + ((key, value),))

    def without(self, *keys: str) -> "Headers":
        """Return a copy with every line of the given names removed."""
        excluded = {key.lower() for key in keys}
        return Headers([(name, value) for name, value in self._items if name.lower() not in excluded])

    def replace(self, key: str, value: str) -> "Headers":
        """Return a copy where `key` has exactly one line, holding `value`."""
        return self.without(key).with_header(key, value)

    def __getitem__(self, key: str) -> str:
        values = self.get_list(key)
        if not values:
            raise KeyError(key)
        return ", ".join(values)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_first(key) is not None

    def __iter__(self) -> Iterator[str]:
        seen: Set[str] = set()
        for name, _ in self._items:
            lowered = name.lower()
            if lowered not in seen:
                seen.add(lowered)
                yield lowered

    def __len__(self) -> int:
        return len({name.lower() for name, _ in self._items})

    def __repr__(self) -> str:
        return f"Headers({list(self._items)!r})"

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._lowered() == other_headers._lowered()

    def __hash__(self) -> int:
        return hash(self._lowered())

    def _lowered(self) -> Tuple[Tuple[str, str], ...]:
        return tuple((name.lower(), value) for name, value in self._items)


@dataclass(frozen=True)
class Vary:
    """Field names listed by the Vary lines of a response, lower-cased, in order."""

    values: List[str]

    @classmethod
    def from_values(cls, vary_values: List[str]) -> "Vary":
        return cls([name.strip().lower() for value in vary_values for name in value.split(",") if name.strip()])


@dataclass(frozen=True)
class Directive:
    """A single Cache-Control token: a lower-cased name and its raw argument."""

    name: str
    value: Optional[str] = None


def parse_int_value(value: str) -> Optional[int]:
    """Parse a (possibly negative) decimal integer, return None if invalid."""
    digits = value[1:] if value.startswith("-") else value
    if not digits or not (digits.isascii() and digits.isdigit()):
        return None
    return int(value)


def parse_field_names(value: str) -> List[str]:
    """Splits a `no-cache="a, b"` style argument into canonically cased field names."""
    return [
        "-".join(part.capitalize() for part in name.strip().split("-")) for name in value.split(",") if name.strip()
    ]


def _skip(value: str, position: int, chars: str) -> int:
    while position < len(value) and value[position] in chars:
        position += 1
    return position


def parse_directives(value: str) -> List[Directive]:
    """
    Splits one Cache-Control header value into directives.

    Quoted arguments are unescaped. An unquoted argument ends at the next
    comma, so only the quoted form of `no-cache` and `private` can carry a
    list of field names. Characters that cannot start a token are skipped.

    Examples:
        >>> parse_directives("public, max-age=3600")
        [Directive(name='public', value=None), Directive(name='max-age', value='3600')]
    """
    directives: List[Directive] = []
    position = 0
    length = len(value)

    while True:
        position = _skip(value, position, " \t,")
        if position >= length:
            return directives

        end = position
        while end < length and is_token(value[end]):
            end += 1
        if end == position:
            position += 1
            continue

        name = value[position:end].lower()
        position = _skip(value, end, " \t")

        if position >= length or value[position] != "=":
            directives.append(Directive(name))
            continue

        position = _skip(value, position + 1, " \t")
        if position >= length or value[position] == ",":
            directives.append(Directive(name, ""))
            continue

        if value[position] == '"':
            consumed, argument = http_unquote(value[position:])
            if consumed == -1:
                # Unterminated quote, keep the raw remainder so it fails to parse
                directives.append(Directive(name, value[position:]))
                return directives
            directives.append(Directive(name, argument))
            position += consumed
            continue

        end = position
        while end < length and value[end] not in " \t,":
            end += 1
        directives.append(Directive(name, value[position:end].rstrip(",")))
        position = end


class CacheControl:
    """
    Merged Cache-Control directives of every Cache-Control line of a message.

    Numeric directives keep the smallest value seen, which is the most
    conservative reading when a directive is repeated. A numeric directive
    whose argument cannot be parsed is listed in `malformed` so callers can
    fail closed instead of silently ignoring it.

    Supported Directives:
    - max-age [RFC9111, Section 5.2.1.1, 5.2.2.1]
    - max-stale [RFC9111, Section 5.2.1.2]
    - min-fresh [RFC9111, Section 5.2.1.3]
    - must-revalidate [RFC9111, Section 5.2.2.2]
    - no-cache [RFC9111, Section 5.2.1.4, 5.2.2.4]
    - no-store [RFC9111, Section 5.2.1.5, 5.2.2.5]
    - proxy-revalidate [RFC9111, Section 5.2.2.8]
    - s-maxage [RFC9111, Section 5.2.2.10]

    no_cache can be:
        - False: directive not present
        - True: directive present without field names
        - List[str]: directive present with specific field names
    """

    def __init__(self, directives: Optional[List[Directive]] = None) -> None:
        self.directives: List[Directive] = directives or []

        self.max_age: Optional[int] = None
        self.s_maxage: Optional[int] = None
        self.max_stale: Optional[int] = None
        self.min_fresh: Optional[int] = None

        self.no_cache: Union[bool, List[str]] = False
        self.no_store: bool = False
        self.must_revalidate: bool = False
        self.proxy_revalidate: bool = False

        self.malformed: Set[str] = set()
        self.extensions: List[str] = []

        for directive in self.directives:
            self._apply(directive)

    def has_directive(self, name: str) -> bool:
        name = name.lower()
        return any(directive.name == name for directive in self.directives)

    def _apply(self, directive: Directive) -> None:
        token, value = directive.name, directive.value

        if token in NUMERIC_DIRECTIVES:
            self._apply_numeric(token, value)

        elif token == "no-cache":
            fields = parse_field_names(value) if value is not None else []
            if not fields:
                # An empty field list still forbids reuse without validation
                self.no_cache = True
            elif self.no_cache is not True:
                previous = self.no_cache if isinstance(self.no_cache, list) else []
                self.no_cache = previous + fields

        elif token == "no-store":
            self.no_store = True

        elif token == "must-revalidate":
            self.must_revalidate = True

        elif token == "proxy-revalidate":
            self.proxy_revalidate = True

        else:
            self.extensions.append(token if value is None else f"{token}={value}")

    def _apply_numeric(self, token: str, value: Optional[str]) -> None:
        attribute = token.replace("-", "_")
        current: Optional[int] = getattr(self, attribute)

        if token == "max-stale" and value is None:
            # A numeric max-stale elsewhere is the tighter bound
            if current is None:
                self.max_stale = UNBOUNDED
            return

        parsed = parse_int_value(value.strip()) if value is not None else None

        if parsed is None:
            self.malformed.add(token)
            # max-stale with a bad argument tolerates no staleness at all
            parsed = 0 if token == "max-stale" else None
        elif parsed < 0:
            if token == "min-fresh":
                self.malformed.add(token)
                return
            if token == "max-stale":
                parsed = 0

        if parsed is None:
            return

        parsed = min(parsed, MAX_DELTA_SECONDS)
        if current is None or current == UNBOUNDED or parsed < current:
            setattr(self, attribute, parsed)

    def __repr__(self) -> str:
        fields = ", ".join(
            directive.name if directive.value is None else f"{directive.name}={directive.value}"
            for directive in self.directives
        )
        return f"<{type(self).__name__} {fields}>"


def parse_cache_control(values: Union[str, List[str], None]) -> CacheControl:
    """
    Parse one or more Cache-Control header values from a request or response.

    This is the main entry point for parsing. Pass `headers.get_list("cache-control")`
    to merge every Cache-Control line of a message.

    Examples:
        >>> cc = parse_cache_control(["public, max-age=3600", "max-age=60, must-revalidate"])
        >>> cc.max_age
        60
        >>> cc.must_revalidate
        True

        >>> cc = parse_cache_control("max-stale")
        >>> cc.max_stale == UNBOUNDED
        True

        >>> cc = parse_cache_control("max-age=soon")
        >>> cc.max_age is None, sorted(cc.malformed)
        (True, ['max-age'])
    """
    if values is None:
        return CacheControl()
    if isinstance(values, str):
        values = [values]

    directives: List[Directive] = []
    for value in values:
        directives.extend(parse_directives(value))
    return CacheControl(directives)
