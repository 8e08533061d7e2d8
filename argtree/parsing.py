"""
Argtree matcher: tokens + symbol tree -> ParseResult.

phases
- tokenize: the raw input is tokenized against the (sealed) tree.
- match: a single left-to-right pass with no backtracking over a stack of
  command scopes, starting at the root.
  • leading directives are collected ("[name]" / "[name:value]").
  • a first token naming the root command itself (argv[0] style) is skipped.
  • a child command alias pushes a new scope.
  • an option alias opens the option; following tokens are consumed as its
    values up to its arity maximum, stopping early at any token that is itself
    a recognized alias (options never swallow symbols). bool options only take
    tokens that read as booleans.
  • any other token fills the current command's positional slots in
    declaration order; a slot closes at its arity maximum or when a recognized
    alias shows up.
  • after "--" tokens fill the remaining slots verbatim, without alias lookup.
  • tokens with nowhere to go are unmatched.
- finish: arity underflows, required options and unmatched tokens become
  batched ParseErrors; defaults of the matched scope chain are resolved.

invariants
- conversion is eager: each bound token is converted when bound, and a
  failure is recorded on that symbol without stopping the pass.
- nothing raises for user input; every problem is an entry in result.errors.
- the symbol tree is never modified (the parser seals it up front).
"""
import enum
from types import MappingProxyType

from rich.text import Text

from . import faults
from .faults import *
from .settings import Settings
from .suggestions import best, closest
from .symbols import Arity, Command, Option, Argument, Directive, SymbolKind, normalize
from .tokens import TokenType, tokenize
from .utils import *
from .utils import Introspective


class MatchState(enum.Enum):
    AT_COMMAND_SCOPE = "at-command-scope"
    CONSUMING_OPTION_ARGUMENT = "consuming-option-argument"
    CONSUMING_POSITIONAL_ARGUMENT = "consuming-positional-argument"
    AFTER_DOUBLE_DASH = "after-double-dash"


class ValueResult(metaclass=Introspective):
    """
    the binding of one symbol.

    - tokens: the tokens that contributed to the value (option names excluded).
    - value: converted value; Unset when a conversion failed.
    - implicit: True when the value came from the symbol's default.
    - error: the ConversionError of a failed conversion, else None.
    """
    __introspectable__ = ("symbol", "tokens", "value", "implicit", "error")

    def __init__(self, symbol, tokens=(), value=Unset, *, implicit=False, error=None):
        self._symbol = symbol
        self._tokens = tuple(tokens)
        self._value = value
        self._implicit = bool(implicit)
        self._error = error


class ParseResult(metaclass=Introspective):
    """
    outcome of one parse call.

    read-only once the matcher returns; the validation pipeline may only
    append errors (see validation.validate()).

    lookups
    - result[alias_or_symbol] / result.value(...): converted value (defaults
      included), None when the symbol was not bound.
    - result.resolve(...): (found, value), used by value sources.
    - result.find(alias): the symbol an alias names, searching the matched
      command chain from the innermost command outwards, then the whole tree.
    """
    __introspectable__ = (
        "root",
        "command",
        "results",
        "tokens",
        "unmatched",
        "errors",
        "warnings",
        "directives",
        "text",
    )
    __displayable__ = (
        "command",
        "results",
        "unmatched",
        "errors",
        "directives",
    )

    def __init__(self, root, command, results, tokens, unmatched, errors, warnings, directives, text=None):
        self._root = root
        self._command = command
        self._results = dict(results)
        self._tokens = tuple(tokens)
        self._unmatched = tuple(unmatched)
        self._errors = list(errors)
        self._warnings = tuple(warnings)
        self._directives = MappingProxyType({name: tuple(values) for name, values in directives.items()})
        self._text = text
        self._resolving = set()
        # completion support, filled in by the matcher
        self._state = MatchState.AT_COMMAND_SCOPE
        self._pending = None
        self._slot = None
        self._matched = frozenset()

    results = property(lambda self: MappingProxyType(self._results))
    errors = property(lambda self: tuple(self._errors))

    @property
    def succeeded(self):
        return not self._errors

    def find(self, name, /):
        for command in reversed(self._command.path):
            if (symbol := command.resolve(name)) is not None:
                return symbol
        return self._root.find(name)

    def _symbol(self, object):
        if isinstance(object, str):
            if (symbol := self.find(object)) is None:
                raise KeyError(object)
            return symbol
        if getattr(object, "kind", None) not in SymbolKind:
            raise TypeError("parse result keys must be symbols or aliases")
        return object

    def resolve(self, object, /):
        """
        return (found, value) for a symbol: its bound value first, then its
        default source. cyclic default references resolve to not-found.
        """
        symbol = self._symbol(object)
        if (result := self._results.get(symbol)) is not None:
            return result.value is not Unset, coalesce(result.value)
        if symbol.default is Unset or symbol in self._resolving:
            return False, None
        self._resolving.add(symbol)
        try:
            return symbol.default.resolve(self, convert=symbol.convert)
        finally:
            self._resolving.discard(symbol)

    def value(self, object, /):
        if (result := self._results.get(self._symbol(object))) is None:
            return None
        return coalesce(result.value)

    def __getitem__(self, object):
        return self.value(object)

    def __contains__(self, object):
        try:
            return self._symbol(object) in self._results
        except KeyError:
            return False

    def _annotate(self, errors, /):
        self._errors.extend(errors)

    def diagram(self):
        """
        render the bindings as nested brackets, e.g. "[ root [ verb [ -x <123> ] ] ]".

        implicit (default) values are prefixed with "*"; unmatched tokens are
        listed after "???-->".
        """
        def render(symbol):
            result = self._results[symbol]
            star = "*" if result.implicit else ""
            if result.implicit:
                values = "<%s>" % coalesce(result.value)
            else:
                values = " ".join("<%s>" % token.text for token in result.tokens)
            if symbol.kind is SymbolKind.ARGUMENT:
                return star + values
            return "%s[ %s ]" % (star, " ".join(filter(None, (symbol.name, values))))

        diagram = ""
        for command in reversed(self._command.path):
            parts = [command.name]
            parts.extend(
                render(symbol) for symbol in command.children
                if symbol in self._results and symbol.kind in (SymbolKind.OPTION, SymbolKind.ARGUMENT)
            )
            if diagram:
                parts.append(diagram)
            diagram = "[ %s ]" % " ".join(parts)

        if self._unmatched:
            diagram += "   ???--> " + " ".join(token.text for token in self._unmatched)
        return diagram

    def completion_context(self, position=None, /):
        """
        build the completion context for this result.

        a text context is returned when the result was parsed from a string,
        a token context otherwise. without an explicit position, a
        "[suggest:<position>]" directive provides it (relative to the text
        following the directive prefix).
        """
        from .completions import TextCompletionContext, TokenCompletionContext

        text = self._text
        if position is None and (values := self._directives.get("suggest")):
            try:
                position = int(values[-1])
            except ValueError:
                pass
            else:
                if text is not None and (directives := [
                    token for token in self._tokens if token.type is TokenType.DIRECTIVE
                ]):
                    start, length = directives[-1].position
                    text = text[start + length:].lstrip()

        if text is not None:
            return TextCompletionContext(self, text, position)
        return TokenCompletionContext(self, position)

    def finalize(self, *, shell=False, fancy=False, colorful=False, deferred=False):
        """
        surface the collected faults.

        behavior
        - a "[diagram]" directive prints diagram() on the rich console first.
        - every warning is triggered (warnings.warn, or printed in shell mode).
        - when errors exist a ParseExit groups them: raised outside shell mode,
          rendered through rich on stderr followed by exit status 1 in shell mode.
        - returns the result itself when there is nothing fatal.
        """
        options = {"root": self._root, "shell": shell, "fancy": fancy, "colorful": colorful, "deferred": deferred}
        if "diagram" in self._directives:
            faults.console.print(Text(self.diagram()))
        for warning in self._warnings:
            trigger(warning, **options)
        if self._errors:
            trigger(ParseExit(self._errors), **options)
        return self


class _Matcher:
    """
    single-use state machine behind Parser.parse().
    """

    def __init__(self, root, tokens, settings, text):
        self.root = root
        self.tokens = tokens
        self.settings = settings
        self.text = text

        self.state = MatchState.AT_COMMAND_SCOPE
        self.scopes = [root]
        self.slot = 0
        self.option = None
        self.positional = None
        self.started = False        # a non-directive token was seen

        self.present = []           # symbols in binding order
        self.bindings = {}          # symbol -> list[Token]
        self.values = {}            # symbol -> list[converted]
        self.failures = {}          # symbol -> ConversionError
        self.matched = set()        # tokens naming an option or a command
        self.unmatched = []         # (index, token, command)
        self.directives = {}
        self.errors = []
        self.warnings = []

    @property
    def command(self):
        return self.scopes[-1]

    def run(self):
        for index, token in enumerate(self.tokens, start=1):
            self.consume(index, token)

        pending = self.option or self.positional
        state = self.state
        self.close()
        return self.finish(pending, state)

    def consume(self, index, token):
        if token.type is not TokenType.DIRECTIVE:
            started, self.started = self.started, True
            if not started and self.named(token):
                self.matched.add(token)
                return

        match token.type:
            case TokenType.DIRECTIVE:
                return self.directive(token)
            case TokenType.DOUBLE_DASH:
                self.close()
                self.positional = None
                self.state = MatchState.AFTER_DOUBLE_DASH
                return
            case TokenType.UNKNOWN:
                return self.position(index, token)
            case TokenType.OPTION_ARGUMENT:
                if self.option is None:
                    return self.unmatch(index, token)
                self.bind(self.option, token)
                return self.close()

        symbol = self.command.lookup(token.text)

        if self.state is MatchState.CONSUMING_OPTION_ARGUMENT:
            if symbol is None and self.accepts(self.option, token):
                self.bind(self.option, token)
                if len(self.bindings[self.option]) >= self.option.arity.maximum:
                    self.close()
                return
            self.close()

        match symbol:
            case Command():
                self.descend(symbol, token)
            case Option():
                self.open(symbol, token)
            case _:
                self.position(index, token)

    def named(self, token):
        """
        tell whether a leading token is the name of the root command itself
        (as in argv[0]); symbols of the root take precedence.
        """
        if token.type is not TokenType.COMMAND_OR_ARGUMENT or self.root.lookup(token.text) is not None:
            return False
        return normalize(token.text) in map(normalize, self.root.aliases)

    def accepts(self, option, token):
        if len(self.bindings[option]) >= option.arity.maximum:
            return False
        if option.type is bool:
            try:
                option.convert(token.text)
            except ValueError:
                return False
        return True

    def mark(self, symbol):
        if symbol not in self.bindings:
            self.bindings[symbol] = []
            self.values[symbol] = []
            self.present.append(symbol)
            if symbol.deprecated:
                self.warnings.append(DeprecatedSymbolWarning(
                    "%s %r is deprecated" % (symbol.kind.value, symbol.name),
                    title="deprecated %s" % symbol.kind.value,
                    code=FaultCode.DEPRECATED_SYMBOL,
                    symbol=symbol,
                    hint="run '%s --help' to see current usage and alternatives" % self.route(),
                    docs=getdoc(FaultCode.DEPRECATED_SYMBOL),
                ))

    def route(self):
        return " ".join(command.name for command in self.scopes)

    def bind(self, symbol, token):
        self.bindings[symbol].append(token)
        try:
            self.values[symbol].append(symbol.convert(token.text))
        except Exception as exception:
            if symbol in self.failures:
                return
            self.failures[symbol] = error = ConversionError(
                "Cannot parse argument '%s' for %s '%s' as expected type '%s'." % (
                    token.text, symbol.kind.value, symbol.name, symbol.typename
                ),
                title="invalid value",
                code=FaultCode.CONVERSION_FAILED,
                symbol=symbol,
                token=token,
                hint="pass a value of type '%s' to %s" % (symbol.typename, symbol.name),
                docs=getdoc(FaultCode.CONVERSION_FAILED),
                exception=exception,
            )
            self.errors.append(error)

    def descend(self, command, token):
        self.positional = None
        self.matched.add(token)
        self.mark(command)
        self.scopes.append(command)
        self.slot = 0
        self.state = MatchState.AT_COMMAND_SCOPE

    def open(self, option, token):
        if self.positional is not None:
            self.positional = None
            self.slot += 1
        self.matched.add(token)
        self.mark(option)
        if len(self.bindings[option]) >= option.arity.maximum and option.arity.maximum > 0:
            # a repeated, already full option starts over: the last occurrence wins
            self.bindings[option].clear()
            self.values[option].clear()
            if (failure := self.failures.pop(option, None)) is not None:
                self.errors = [error for error in self.errors if error is not failure]
        self.option = option
        self.state = MatchState.CONSUMING_OPTION_ARGUMENT
        if option.arity.maximum == 0:
            self.close()

    def close(self):
        if (option := self.option) is None:
            return
        self.option = None
        self.state = MatchState.AT_COMMAND_SCOPE
        if len(self.bindings[option]) < option.arity.minimum:
            self.errors.append(MissingArgumentError(
                "Required argument missing for option: '%s'." % option.name,
                title="missing value",
                code=FaultCode.MISSING_ARGUMENT,
                symbol=option,
                hint="pass %s after %s" % (
                    "a value" if option.arity.minimum == 1 else "%d values" % option.arity.minimum, option.name
                ),
                docs=getdoc(FaultCode.MISSING_ARGUMENT),
            ))

    def next(self):
        """
        return the positional slot the next value would fill, or None.
        """
        arguments = self.command.arguments
        slot = self.slot
        while slot < len(arguments) and len(self.bindings.get(arguments[slot], ())) >= arguments[slot].arity.maximum:
            slot += 1
        return arguments[slot] if slot < len(arguments) else None

    def position(self, index, token):
        passthrough = self.state is MatchState.AFTER_DOUBLE_DASH
        if (argument := self.next()) is None:
            self.positional = None
            return self.unmatch(index, token)

        self.slot = self.command.arguments.index(argument)
        self.positional = argument
        self.mark(argument)
        self.bind(argument, token)

        if len(self.bindings[argument]) >= argument.arity.maximum:
            self.positional = None
            self.slot += 1
            if not passthrough:
                self.state = MatchState.AT_COMMAND_SCOPE
        elif not passthrough:
            self.state = MatchState.CONSUMING_POSITIONAL_ARGUMENT

    def unmatch(self, index, token):
        self.unmatched.append((index, token, self.command))

    def directive(self, token):
        name, colon, value = token.text[1:-1].partition(":")
        values = self.directives.setdefault(name, [])
        if colon:
            values.append(value)
        if isinstance(symbol := self.root.resolve(name), Directive):
            self.mark(symbol)
            self.bindings[symbol].append(token)
            if colon:
                self.values[symbol].append(value)

    def suggestions(self, token, command):
        symbols = [
            symbol for symbol in (*command.scope(), *command.commands)
            if not symbol.hidden
        ]
        candidates = [closest(token.text, symbol.aliases) for symbol in symbols]
        return best(token.text, candidates, self.settings.distance)

    def finish(self, pending, state):
        # arity underflow of positional arguments along the scope chain
        for command in self.scopes:
            for argument in command.arguments:
                count = len(self.bindings.get(argument, ()))
                if count < argument.arity.minimum and (count or argument.default is Unset):
                    self.errors.append(MissingArgumentError(
                        "Required argument missing for command: '%s'." % command.name,
                        title="missing argument",
                        code=FaultCode.MISSING_ARGUMENT,
                        symbol=argument,
                        hint="pass a value for %s" % argument.name,
                        docs=getdoc(FaultCode.MISSING_ARGUMENT),
                    ))

        # required options along the scope chain
        for command in self.scopes:
            for option in command.options:
                if option.required and option not in self.bindings and option.default is Unset:
                    self.errors.append(RequiredOptionError(
                        "Option '%s' is required." % option.name,
                        title="missing option",
                        code=FaultCode.REQUIRED_OPTION,
                        symbol=option,
                        hint="pass %s" % option.name,
                        docs=getdoc(FaultCode.REQUIRED_OPTION),
                    ))

        # unmatched tokens, judged by the innermost command
        if self.command.treat_unmatched_tokens_as_errors:
            for index, token, command in self.unmatched:
                suggestions = self.suggestions(token, command) if self.settings.suggestions else []
                message = "Unrecognized command or argument '%s'." % token.text
                if suggestions:
                    message += " Did you mean %s?" % " or ".join("'%s'" % suggestion for suggestion in suggestions)
                    hint = "did you mean %r? you can also run '%s --help' to see what is available" % (
                        suggestions[0], self.route()
                    )
                else:
                    hint = "remove the %s token or run '%s --help' to see what is available" % (
                        ordinal(index), self.route()
                    )
                self.errors.append(UnmatchedTokenError(
                    message,
                    title="unrecognized token",
                    code=FaultCode.UNMATCHED_TOKEN,
                    token=token,
                    suggestions=tuple(suggestions),
                    hint=hint,
                    docs=getdoc(FaultCode.UNMATCHED_TOKEN),
                ))

        results = {}
        for symbol in self.present:
            if symbol.kind is SymbolKind.COMMAND:
                continue
            results[symbol] = ValueResult(
                symbol,
                self.bindings[symbol],
                Unset if symbol in self.failures else self.shape(symbol),
                error=self.failures.get(symbol),
            )

        result = ParseResult(
            self.root,
            self.command,
            results,
            self.tokens,
            (token for _, token, _ in self.unmatched),
            self.errors,
            self.warnings,
            self.directives,
            self.text,
        )
        result._state = state
        result._pending = pending
        result._slot = self.next()
        result._matched = frozenset(self.matched)

        self.defaults(result)
        return result

    def shape(self, symbol):
        values = self.values[symbol]
        if symbol.kind is SymbolKind.DIRECTIVE or symbol.arity.maximum > 1:
            return list(values)
        if values:
            return values[0]
        if symbol.kind is SymbolKind.OPTION and (symbol.type is bool or symbol.arity == Arity.ZERO):
            return True
        return None

    def defaults(self, result):
        """
        add implicit value results for unbound symbols of the scope chain
        whose default source resolves.
        """
        for command in self.scopes:
            for symbol in (*command.options, *command.arguments):
                if symbol in result._results or symbol.default is Unset:
                    continue
                try:
                    found, value = result.resolve(symbol)
                except Exception as exception:
                    result._annotate([ConversionError(
                        "Cannot resolve the default value of %s '%s'." % (symbol.kind.value, symbol.name),
                        title="invalid default",
                        code=FaultCode.CONVERSION_FAILED,
                        symbol=symbol,
                        hint=str(exception),
                        docs=getdoc(FaultCode.CONVERSION_FAILED),
                        exception=exception,
                    )])
                    continue
                if found:
                    result._results[symbol] = ValueResult(symbol, (), value, implicit=True)


class Parser:
    """
    reusable parser bound to one symbol tree.

    the root is sealed on construction, so the tree is read-only from then on
    and a single Parser (or tree) can serve any number of parse calls.
    """

    def __init__(self, root, /, settings=Settings()):
        if not isinstance(root, Command):
            raise TypeError("parser root must be a command")
        if not isinstance(settings, Settings):
            raise TypeError("parser settings must be a settings instance")
        self.root = root.seal()
        self.settings = settings

    def __repr__(self):
        return f"Parser(root={self.root.name!r}, settings={self.settings!r})"

    def parse(self, raw, /):
        """
        parse a command line (str) or an argv-like iterable of strings.
        """
        tokens = tokenize(raw, self.root, self.settings)
        return _Matcher(self.root, tokens, self.settings, raw if isinstance(raw, str) else None).run()


def parse(root, raw, /, settings=Settings()):
    """
    one-shot convenience for Parser(root, settings).parse(raw).
    """
    return Parser(root, settings).parse(raw)


__all__ = (
    "MatchState",
    "ValueResult",
    "ParseResult",
    "Parser",
    "parse",
)
