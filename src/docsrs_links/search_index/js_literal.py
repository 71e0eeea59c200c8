"""Parser for the restricted JavaScript used by the oldest search index format.

The payload is a tiny program that only declares and assigns literals:

```js
var N=null,E="",T="t",U="u",searchIndex={};
var R=["backtrace","option","context"];
searchIndex["anyhow"]={"doc":"…","i":[[3,"Chain",R[6],"…",N,N]],"p":[[3,"Error"]]};
initSearch(searchIndex);addSearchOptions(searchIndex);
```

Parsing evaluates it into a generic value tree of plain Python values
(None, bool, int, str, list, dict). Variable aliases and indexed references
like ``R[7]`` are substituted while parsing, so the result contains no
symbolic references. The parser knows nothing about search index fields.
"""

from __future__ import annotations

import re
from typing import Any

from docsrs_links.errors import DecodeError

_WHITESPACE = " \t\r\n"
_QUOTES = ('"', "'")
_DIGITS = "0123456789"
# Runs of characters that need no attention inside a string literal
_PLAIN_RUNS = {
    '"': re.compile(r'[^"\\\n]+'),
    "'": re.compile(r"[^'\\\n]+"),
}
_SIMPLE_ESCAPES = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_LITERAL_WORDS = {"null": None, "true": True, "false": False}
_GENERATION = "v1"
# Deepest array or object nesting accepted
_MAX_DEPTH = 256


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch in "_$")


def _is_ident_continue(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch in "_$")


class _Parser:
    """Single pass recursive descent over the whole payload."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.variables: dict[str, Any] = {}
        self.depth = 0

    # Error reporting

    def error(self, message: str, pos: int | None = None) -> DecodeError:
        pos = self.pos if pos is None else pos
        offset = len(self.text[:pos].encode("utf-8"))
        return DecodeError(message, offset=offset, generation=_GENERATION)

    # Lexing helpers

    def skip_ws(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in _WHITESPACE:
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, ch: str) -> None:
        if self.peek() != ch:
            found = self.text[self.pos] if self.pos < len(self.text) else "end of input"
            raise self.error(f"expected {ch!r}, found {found!r}")
        self.pos += 1

    def accept(self, ch: str) -> bool:
        if self.peek() == ch:
            self.pos += 1
            return True
        return False

    def identifier(self) -> str:
        self.skip_ws()
        start = self.pos
        if start >= len(self.text) or not _is_ident_start(self.text[start]):
            raise self.error("expected an identifier")
        self.pos += 1
        while self.pos < len(self.text) and _is_ident_continue(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]

    def integer(self) -> int:
        self.skip_ws()
        start = self.pos
        if self.text.startswith("-", self.pos):
            self.pos += 1
        digits_start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _DIGITS:
            self.pos += 1
        if self.pos == digits_start:
            raise self.error("expected an integer", start)
        return int(self.text[start : self.pos])

    def string(self) -> str:
        self.skip_ws()
        start = self.pos
        quote = self.text[self.pos]
        plain = _PLAIN_RUNS[quote]
        self.pos += 1
        chunks: list[str] = []
        text = self.text
        while True:
            run = plain.match(text, self.pos)
            if run:
                chunks.append(run.group())
                self.pos = run.end()
            if self.pos >= len(text) or text[self.pos] == "\n":
                raise self.error("unterminated string literal", start)
            if text[self.pos] == quote:
                self.pos += 1
                return "".join(chunks)

            escape_pos = self.pos
            self.pos += 1
            if self.pos >= len(text):
                raise self.error("unterminated string literal", start)
            esc = text[self.pos]
            self.pos += 1
            if esc in _SIMPLE_ESCAPES:
                chunks.append(_SIMPLE_ESCAPES[esc])
            elif esc in "ux":
                width = 4 if esc == "u" else 2
                digits = text[self.pos : self.pos + width]
                if len(digits) != width or any(
                    c not in "0123456789abcdefABCDEF" for c in digits
                ):
                    raise self.error(f"invalid \\{esc} escape", escape_pos)
                chunks.append(chr(int(digits, 16)))
                self.pos += width
                if esc == "u" and 0xDC00 <= ord(chunks[-1]) <= 0xDFFF and len(chunks) > 1:
                    high = ord(chunks[-2]) if len(chunks[-2]) == 1 else 0
                    if 0xD800 <= high <= 0xDBFF:
                        # Join a UTF-16 surrogate pair into one code point
                        low = ord(chunks.pop())
                        chunks[-1] = chr(
                            0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)
                        )
            else:
                raise self.error(f"invalid escape sequence \\{esc}", escape_pos)

    # Grammar

    def value(self) -> Any:
        ch = self.peek()
        if not ch:
            raise self.error("unexpected end of input")
        if ch in _QUOTES:
            return self.string()
        if ch == "[":
            return self.array()
        if ch == "{":
            return self.obj()
        if ch == "-" or ch in _DIGITS:
            return self.integer()
        if _is_ident_start(ch):
            return self.reference()
        raise self.error(f"unexpected character {ch!r}")

    def nest(self) -> None:
        self.depth += 1
        if self.depth > _MAX_DEPTH:
            raise self.error(f"nesting too deep (more than {_MAX_DEPTH} levels)")

    def array(self) -> list[Any]:
        self.expect("[")
        self.nest()
        values: list[Any] = []
        while not self.accept("]"):
            values.append(self.value())
            if not self.accept(","):
                self.expect("]")
                break
        self.depth -= 1
        return values

    def obj(self) -> dict[str, Any]:
        self.expect("{")
        self.nest()
        values: dict[str, Any] = {}
        while not self.accept("}"):
            key = self.string() if self.peek() in _QUOTES else self.identifier()
            self.expect(":")
            values[key] = self.value()
            if not self.accept(","):
                self.expect("}")
                break
        self.depth -= 1
        return values

    def reference(self) -> Any:
        start = self.pos
        name = self.identifier()
        if name in _LITERAL_WORDS:
            return _LITERAL_WORDS[name]
        if name not in self.variables:
            raise self.error(f"reference to undeclared variable {name!r}", start)
        value = self.variables[name]
        if self.peek() != "[":
            return value

        self.expect("[")
        index_pos = self.pos
        index = self.integer()
        self.expect("]")
        if not isinstance(value, list):
            raise self.error(f"variable {name!r} is not an array", start)
        if not 0 <= index < len(value):
            raise self.error(
                f"index {index} out of range for {name!r} of length {len(value)}",
                index_pos,
            )
        return value[index]

    def statement(self) -> None:
        start = self.pos
        name = self.identifier()
        ch = self.peek()
        if name == "var":
            self.declarations()
        elif ch == "[":
            self.assignment(name, start)
        elif ch in ("(", "."):
            self.call()
        else:
            raise self.error(f"unexpected statement starting with {name!r}", start)
        # Statements may be separated by ';' or only by newlines
        self.accept(";")

    def declarations(self) -> None:
        while True:
            name = self.identifier()
            self.expect("=")
            self.variables[name] = self.value()
            if not self.accept(","):
                return

    def assignment(self, name: str, start: int) -> None:
        if name not in self.variables:
            raise self.error(f"assignment to undeclared variable {name!r}", start)
        target = self.variables[name]
        self.expect("[")
        key = self.value()
        self.expect("]")
        self.expect("=")
        value = self.value()
        if isinstance(target, dict) and isinstance(key, str):
            target[key] = value
        elif isinstance(target, list) and isinstance(key, int) and 0 <= key < len(target):
            target[key] = value
        else:
            raise self.error(f"invalid assignment target {name}[{key!r}]", start)

    def call(self) -> None:
        while self.accept("."):
            self.identifier()
        self.expect("(")
        while not self.accept(")"):
            self.value()
            if not self.accept(","):
                self.expect(")")
                break

    def program(self) -> dict[str, Any]:
        while self.peek():
            if self.accept(";"):
                continue
            self.statement()
        return self.variables


def parse_js_literals(text: str) -> dict[str, Any]:
    """Evaluate a search index program into its declared variables.

    Args:
        text: The whole payload

    Returns:
        Mapping of variable name to its final value

    Raises:
        DecodeError: On a lexical error, an undeclared variable or an indexed
            reference outside its array, or on nesting deeper than the parser
            accepts
    """
    parser = _Parser(text)
    try:
        return parser.program()
    except RecursionError as e:
        raise parser.error("nesting too deep") from e
