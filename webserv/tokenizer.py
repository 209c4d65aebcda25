"""Split a configuration file into tokens."""

from __future__ import annotations

from typing import Iterable

from webserv.config_errors import ConfigError, ConfigParseError, Token, parsing_error
from webserv.utils import is_space

_QUOTES = "'\""
_CHUNK_BREAKS = ";{}#"
_SEPARATORS = (";", "{", "}")
_ESCAPE = "\\"


def _next_chunk(token: str) -> str:
    """Return the leading piece of a word, cut before the first bare separator."""
    escaped = False
    quote: str | None = None
    for position, char in enumerate(token):
        if not escaped and char in _QUOTES:
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        elif quote is None and not escaped and char in _CHUNK_BREAKS:
            return token[: position or 1]
        escaped = char == _ESCAPE and not escaped
    return token


def _normalize(chunk: str, line_num: int) -> Token:
    """Strip quotes and escapes from a chunk and classify it."""
    kept: list[str] = []
    escaped = False
    quote: str | None = None
    possible_sep = True
    for char in chunk:
        if not escaped and char in _QUOTES:
            if quote is None:
                quote = char
                continue
            if char == quote:
                quote = None
                continue
        if char == _ESCAPE and not escaped:
            possible_sep = False
            escaped = True
            continue
        escaped = False
        kept.append(char)

    if quote is not None and kept == [quote]:
        kept = []
    text = "".join(kept)
    return Token(text, line_num, possible_sep and text in _SEPARATORS)


class ConfigTokenizer:
    """Turns configuration lines into a flat list of tokens.

    Words are split on whitespace; ``;``, ``{`` and ``}`` become tokens of
    their own; quoted text may hold whitespace and span several lines; a
    backslash escapes the next character; ``#`` starts a comment.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._source = list(lines)
        self._reset()

    def _reset(self) -> None:
        self._lines = iter(self._source)
        self._line = ""
        self._pos = 0
        self._line_num = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Return every token of the configuration, in order."""
        self._reset()
        for line in self._lines:
            self._line_num += 1
            self._line = line
            self._pos = 0
            self._process_line()
        return self._tokens

    def _at_end(self) -> bool:
        return self._pos >= len(self._line)

    def _skip_spaces(self) -> None:
        while not self._at_end() and is_space(self._line[self._pos]):
            self._pos += 1

    def _process_line(self) -> None:
        while True:
            self._skip_spaces()
            if self._at_end():
                return
            quote = self._leading_quote()
            word = self._read_word() if quote is None else self._read_quoted(quote)
            self._append(word)

    def _leading_quote(self) -> str | None:
        """Return the first bare quote of the current word, if it has one."""
        escaped = False
        for char in self._line[self._pos:]:
            if not escaped and char in _QUOTES:
                return char
            if is_space(char):
                return None
            escaped = char == _ESCAPE and not escaped
        return None

    def _read_word(self) -> str:
        start = self._pos
        while not self._at_end() and not is_space(self._line[self._pos]):
            self._pos += 1
        return self._line[start:self._pos]

    def _read_quoted(self, quote: str) -> str:
        chars: list[str] = []
        opened = False
        while True:
            self._scan_quoted(chars, quote, opened)
            reopened = self._scan_after_quote(chars)
            if reopened is None:
                return "".join(chars)
            quote = reopened
            opened = True

    def _scan_quoted(self, chars: list[str], quote: str, opened: bool) -> None:
        """Consume text up to and including the quote that closes the string."""
        escaped = False
        while True:
            if self._at_end():
                chars.append("\n")
                self._advance_line()
                escaped = False
                continue
            char = self._line[self._pos]
            self._pos += 1
            chars.append(char)
            if not escaped and char == quote:
                if opened:
                    return
                opened = True
            escaped = char == _ESCAPE and not escaped

    def _scan_after_quote(self, chars: list[str]) -> str | None:
        """Consume the rest of the word; return a quote that opens a new string."""
        escaped = False
        while not self._at_end() and not is_space(self._line[self._pos]):
            char = self._line[self._pos]
            self._pos += 1
            chars.append(char)
            if not escaped and char in _QUOTES:
                return char
            escaped = char == _ESCAPE and not escaped
        return None

    def _advance_line(self) -> None:
        try:
            self._line = next(self._lines)
        except StopIteration:
            raise parsing_error(
                ConfigParseError.END_OF_FILE, Token("", self._line_num), ""
            ) from None
        self._pos = 0
        self._line_num += 1

    def _append(self, word: str) -> None:
        while word:
            if word[0] == "#":
                self._pos = len(self._line)
                return
            chunk = _next_chunk(word)
            word = word[len(chunk):]
            self._tokens.append(_normalize(chunk, self._line_num))


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def tokenize_text(text: str) -> list[Token]:
    """Tokenize configuration text held in memory."""
    return ConfigTokenizer(_split_lines(text)).tokenize()


def tokenize_file(file_name: str) -> list[Token]:
    """Tokenize the configuration file at ``file_name``."""
    try:
        with open(
            file_name, encoding="utf-8", errors="surrogateescape", newline=""
        ) as handle:
            text = handle.read()
    except OSError as exc:
        raise ConfigError("Failed to open the configuration file!") from exc
    return tokenize_text(text)