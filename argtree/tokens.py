"""
Argtree tokenizer.

Overview
- split(text): quoting-aware whitespace splitting of an unsplit command line
  (double quotes group, quotes are dropped, unterminated quotes run to the end).
- tokenize(raw, root=None): turn a command line (str) or an argv-like iterable
  into typed, immutable Token values, each carrying its (start, length) span in
  the raw text so completions can map back to cursor offsets.
- join(words): the inverse of split(), quoting words that are empty or hold
  whitespace.

Classification
- DIRECTIVE: "[name]" / "[name:value]", only as a contiguous prefix.
- DOUBLE_DASH: the literal "--"; every later token is UNKNOWN (passthrough).
- OPTION: a known option alias in the current scope (or, without a symbol tree,
  anything that looks like "-x"/"--name" and is not a negative number).
- OPTION_ARGUMENT: the value half of "--opt:value"/"--opt=value", or the
  attached tail of a bundled short option ("-lsomelib.so").
- COMMAND_OR_ARGUMENT: everything else, subcommand names included.

Notes
- The tokenizer never raises on user input: problems are reported by the
  matcher, not by lexing.
- With a symbol tree, the tokenizer follows subcommands as they appear so that
  option classification uses the right scope.
"""
import re
from collections.abc import Iterable
from enum import IntEnum
from typing import NamedTuple

from .settings import Settings
from .symbols import Command, Option


class TokenType(IntEnum):
    COMMAND_OR_ARGUMENT = 1
    OPTION              = 2
    OPTION_ARGUMENT     = 3
    DIRECTIVE           = 4
    DOUBLE_DASH         = 5
    UNKNOWN             = 6


class Token(NamedTuple):
    text: str
    type: TokenType
    position: tuple[int, int]

    def __str__(self):
        return self.text


class _Word(NamedTuple):
    text: str
    start: int
    length: int
    offsets: tuple[int, ...]  # raw index of each character of text


def _scan(text):
    """
    split raw text into words, remembering where each character came from.

    a double quote toggles quoting without ending the current word, so
    '--opt:"a b"' stays one word ('--opt:a b'). an unterminated quote keeps
    everything up to the end of the input.
    """
    words = []
    buffer = []
    offsets = []
    start = None
    quoted = False

    for index, char in enumerate(text):
        if char == '"':
            if start is None:
                start = index
            quoted = not quoted
            continue
        if char.isspace() and not quoted:
            if start is not None:
                words.append(_Word("".join(buffer), start, index - start, tuple(offsets)))
                buffer, offsets, start = [], [], None
            continue
        if start is None:
            start = index
        buffer.append(char)
        offsets.append(index)

    if start is not None:
        words.append(_Word("".join(buffer), start, len(text) - start, tuple(offsets)))

    return words


def _words(raw):
    if isinstance(raw, str):
        return _scan(raw)
    if not isinstance(raw, Iterable):
        raise TypeError("tokenize() argument must be a string or an iterable of strings")

    words = []
    start = 0
    for item in raw:
        if not isinstance(item, str):
            raise TypeError("tokenize() items must be strings")
        words.append(_Word(item, start, len(item), tuple(range(start, start + len(item)))))
        start += len(item) + 1
    return words


def split(text, /):
    """
    split an unsplit command line into words, honoring double quotes.

    >>> split('verb --name:"a b" "" x')
    ['verb', '--name:a b', '', 'x']
    """
    if not isinstance(text, str):
        raise TypeError("split() argument must be a string")
    return [word.text for word in _scan(text)]


def join(words, /):
    """
    inverse of split(): rejoin words with single spaces, double-quoting the
    ones that are empty or contain whitespace.

    >>> join(["verb", "--name:a b", ""])
    'verb "--name:a b" ""'

    raises ValueError for a word holding a double quote, which split() has no
    way to express.
    """
    if isinstance(words, str):
        raise TypeError("join() argument must be an iterable of strings")
    parts = []
    for word in words:
        if not isinstance(word, str):
            raise TypeError("join() items must be strings")
        if '"' in word:
            raise ValueError("join() items cannot contain double quotes")
        parts.append('"%s"' % word if not word or re.search(r"\s", word) else word)
    return " ".join(parts)


def _directive(text):
    return len(text) > 2 and text[0] == "[" and text[-1] == "]" and text[1] not in "]:"


def _optionlike(text):
    return len(text) > 1 and text[0] == "-" and not re.fullmatch(r"-\d+(\.\d*)?", text)


def _unquote(text):
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


def _delimited(word, command, delimiters):
    """
    split '<alias><delimiter><value>' when <alias> is a known option in scope.
    """
    indexes = [index for index in map(word.text.find, delimiters) if index > 0]
    if not indexes:
        return None
    index = min(indexes)
    if not isinstance(command.lookup(word.text[:index]), Option):
        return None

    pivot = word.offsets[index]
    end = word.start + word.length
    return [
        Token(word.text[:index], TokenType.OPTION, (word.start, pivot - word.start)),
        Token(_unquote(word.text[index + 1:]), TokenType.OPTION_ARGUMENT, (pivot + 1, end - pivot - 1)),
    ]


def _unbundled(word, command):
    """
    expand POSIX-style bundles ("-abc" -> "-a -b -c"). a letter naming an
    option that takes values swallows the rest of the word as its argument.
    """
    text = word.text
    if len(text) < 3 or text[0] != "-" or text[1] == "-":
        return None

    tokens = []
    end = word.start + word.length
    for index in range(1, len(text)):
        symbol = command.lookup("-" + text[index])
        if not isinstance(symbol, Option):
            return None
        if index == 1:
            position = (word.start, word.offsets[1] + 1 - word.start)
        else:
            position = (word.offsets[index], 1)
        tokens.append(Token("-" + text[index], TokenType.OPTION, position))
        if symbol.arity.maximum > 0 and symbol.type is not bool and index + 1 < len(text):
            pivot = word.offsets[index + 1]
            tokens.append(Token(text[index + 1:], TokenType.OPTION_ARGUMENT, (pivot, end - pivot)))
            break
    return tokens


def tokenize(raw, root=None, /, settings=Settings()):
    """
    tokenize a raw command line or an argv-like iterable.

    parameters
    - raw: str | Iterable[str]
      a string is split with split() semantics; an iterable is taken as-is and
      positions are computed as if its items were joined by single spaces.
    - root: Command | None
      when given, options are classified against the current command scope,
      which follows subcommands as they appear; attached values and bundles
      are only split for known options.
    - settings: Settings
      delimiters, directives and bundling switches.

    returns
    - tuple[Token, ...]

    raises
    - TypeError: raw is neither a string nor an iterable of strings.
    """
    if root is not None and not isinstance(root, Command):
        raise TypeError("tokenize() root must be a command")

    tokens = []
    command = root
    prefix = settings.directives
    passthrough = False

    for word in _words(raw):
        text = word.text
        position = (word.start, word.length)

        if passthrough:
            tokens.append(Token(text, TokenType.UNKNOWN, position))
            continue

        if prefix and _directive(text):
            tokens.append(Token(text, TokenType.DIRECTIVE, position))
            continue
        prefix = False

        if text == "--":
            passthrough = True
            tokens.append(Token(text, TokenType.DOUBLE_DASH, position))
            continue

        if command is None:
            type = TokenType.OPTION if _optionlike(text) else TokenType.COMMAND_OR_ARGUMENT
            tokens.append(Token(text, type, position))
            continue

        match command.lookup(text):
            case Command() as symbol:
                command = symbol
                tokens.append(Token(text, TokenType.COMMAND_OR_ARGUMENT, position))
            case Option():
                tokens.append(Token(text, TokenType.OPTION, position))
            case _:
                if settings.delimiters and (split := _delimited(word, command, settings.delimiters)):
                    tokens.extend(split)
                elif settings.bundling and (bundle := _unbundled(word, command)):
                    tokens.extend(bundle)
                else:
                    tokens.append(Token(text, TokenType.COMMAND_OR_ARGUMENT, position))

    return tuple(tokens)


__all__ = (
    "TokenType",
    "Token",
    "split",
    "join",
    "tokenize",
)
