"""
Argtree completion engine.

Overview
- CompletionContext: what is being completed. Two variants:
  • TextCompletionContext(result, text, position=None): the unsplit command
    line and a cursor offset are known, so the word under the cursor can be
    sliced exactly (a cursor past the end means a trailing space).
  • TokenCompletionContext(result, position=None): only the tokens are known;
    the last token is the word unless it already names an option or command.
- CompletionItem: label, kind ("keyword" for symbols, "value" for values),
  sort text, insert text and documentation.
- complete(context, settings=Settings()) -> Completions
  • Completions is lazy and restartable: every iteration re-parses the input
    preceding the word and recomputes the candidates from scratch.

Candidates
- while an option still expects values: that option's completion source, plus
  (once its minimum is met) everything the command would offer.
- after "--": the values of the next positional argument only.
- otherwise: visible subcommands, visible option aliases that are not
  arity-exhausted, and the completion source of the open or next positional
  argument.
- candidates are filtered by case-sensitive prefix, deduplicated by label and
  sorted by sort text.

Quick example:
    >>> from argtree import Command, Option, parse, complete
    >>> root = Command("root", Command("verb", Option("-x", completions=["one", "two"])))
    >>> [item.label for item in complete(parse(root, "verb -x t").completion_context())]
    ['two']
"""
import re

from .parsing import MatchState, Parser
from .settings import Settings
from .symbols import Argument, Option
from .tokens import TokenType
from .utils import *
from .utils import Introspective


class CompletionItem(metaclass=Introspective):
    """
    one completion candidate.

    two items are equal when their label and kind are equal; sort_text and
    insert_text default to the label.
    """
    __introspectable__ = ("label", "kind", "sort_text", "insert_text", "documentation", "detail")
    __displayable__ = ("label", "kind")

    def __init__(self, label, /, kind="value", sort_text=None, insert_text=None, documentation=None, detail=None):
        if not isinstance(label, str):
            raise TypeError(f"{type(self).__typename__} 'label' must be a string")
        self._label = label
        self._kind = kind
        self._sort_text = label if sort_text is None else sort_text
        self._insert_text = label if insert_text is None else insert_text
        self._documentation = documentation
        self._detail = detail

    def __eq__(self, other):
        if not isinstance(other, CompletionItem):
            return NotImplemented
        return (self._label, self._kind) == (other._label, other._kind)

    def __hash__(self):
        return hash((self._label, self._kind))

    def __str__(self):
        return self._label


class CompletionContext(metaclass=Introspective):
    """
    base of the completion contexts.

    attributes
    - result: the ParseResult the request was made from.
    - word: the word under completion ("" means: suggest the next token).
    - position: the cursor position, when known.
    """
    __introspectable__ = ("result", "word", "position")

    def _prefix(self):
        """
        return the raw input preceding the word under completion.
        """
        raise NotImplementedError


class TextCompletionContext(CompletionContext):
    __introspectable__ = ("result", "text", "word", "position")

    def __init__(self, result, text, /, position=None):
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__typename__} 'text' must be a string")
        if position is None:
            position = len(text)
        elif not isinstance(position, int) or isinstance(position, bool):
            raise TypeError(f"{type(self).__typename__} 'position' must be an integer")
        elif position < 0:
            raise ValueError(f"{type(self).__typename__} 'position' cannot be negative")
        elif position > len(text):
            text += " "
            position = len(text)

        before, after = text[:position], text[position:]
        head = re.search(r"\S*$", before).group()
        tail = re.match(r"\S*", after).group()

        self._result = result
        self._text = text
        self._position = position
        self._word = head + tail
        self._before = before[:len(before) - len(head)]

    def at_cursor_position(self, position, /):
        """
        return a new context for the same text and a different cursor.
        """
        return type(self)(self._result, self._text, position)

    def _prefix(self):
        return self._before


class TokenCompletionContext(CompletionContext):
    def __init__(self, result, /, position=None):
        tokens = result.tokens
        if position is not None:
            tokens = tuple(token for token in tokens if token.position[0] < position)

        word = ""
        if tokens and (last := tokens[-1]).type not in (TokenType.DIRECTIVE, TokenType.DOUBLE_DASH):
            if last not in result._matched:
                word = last.text
                tokens = tokens[:-1]

        self._result = result
        self._position = position
        self._word = word
        self._tokens = tokens

    def _prefix(self):
        return [token.text for token in self._tokens]


def _documentation(symbol):
    return coalesce(symbol.descr)


def _values(symbol, context):
    for candidate in symbol.candidates(context):
        if isinstance(candidate, CompletionItem):
            yield candidate
        else:
            yield CompletionItem(str(candidate), "value", documentation=_documentation(symbol))


def _exhausted(result, option):
    if (binding := result.results.get(option)) is None or binding.implicit:
        return False
    return option.arity.maximum <= 1 or len(binding.tokens) >= option.arity.maximum


def _keywords(result):
    command = result.command
    for child in command.commands:
        if not child.hidden:
            for alias in child.aliases:
                yield CompletionItem(alias, "keyword", documentation=_documentation(child))
    for option in command.scope():
        if not option.hidden and not _exhausted(result, option):
            for alias in option.aliases:
                yield CompletionItem(alias, "keyword", documentation=_documentation(option))


class Completions:
    """
    lazy, finite and restartable sequence of CompletionItem.

    nothing is computed until iteration, and every iteration starts over from
    the context, so the same Completions can be iterated any number of times.
    """

    def __init__(self, context, /, settings=Settings()):
        if not isinstance(context, CompletionContext):
            raise TypeError("complete() argument must be a completion context")
        self.context = context
        self.settings = settings

    def __repr__(self):
        return f"Completions(word={self.context.word!r})"

    def __iter__(self):
        context = self.context
        result = Parser(context.result.root, self.settings).parse(context._prefix())

        candidates = []
        pending = result._pending
        if isinstance(pending, Option):
            count = len(result.results[pending].tokens) if pending in result.results else 0
            candidates.extend(_values(pending, context))
            if count < pending.arity.minimum:
                return self._finish(candidates)

        if result._state is MatchState.AFTER_DOUBLE_DASH:
            if result._slot is not None:
                candidates.extend(_values(result._slot, context))
            return self._finish(candidates)

        candidates.extend(_keywords(result))
        if isinstance(pending, Argument):
            candidates.extend(_values(pending, context))
        elif result._slot is not None:
            candidates.extend(_values(result._slot, context))
        return self._finish(candidates)

    def _finish(self, candidates):
        word = self.context.word
        items = {}
        for item in candidates:
            if item.label.startswith(word) and item.label not in items:
                items[item.label] = item
        return iter(sorted(items.values(), key=lambda item: (item.sort_text, item.label)))


def complete(context, /, settings=Settings()):
    """
    compute the completions for a context.

    parameters
    - context: TextCompletionContext | TokenCompletionContext
    - settings: the Settings used to re-parse the input preceding the word;
      they should match the ones the result was parsed with.

    returns
    - Completions (iterate it, or wrap it in list())

    raises
    - TypeError: context is not a completion context.
    """
    return Completions(context, settings)


__all__ = (
    "CompletionItem",
    "CompletionContext",
    "TextCompletionContext",
    "TokenCompletionContext",
    "Completions",
    "complete",
)
