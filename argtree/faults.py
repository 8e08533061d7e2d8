"""
Argtree faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  produced while matching and validating. Codes are grouped by domain.
- ParseError: the batched error value. parse() and validate() never raise it;
  they collect instances into ParseResult.errors so one call reports every
  problem at once.
- MisuseError: raised immediately for broken grammar definitions or validators
  applied to the wrong symbol (programming errors, not user input).
- CommandWarning: non-fatal notices (e.g., a deprecated symbol was used).
- ParseExit: groups every ParseError of a result for a single exit.
- trigger(): surface any fault (raise, warn, or render through rich).
- getdoc(): optional documentation lookup for a code from the host application.

Rendering
- Faults know how to render themselves (__rich__) as a short header
  "[ prog — code | title ]", a one-sentence message, and a hint arrow.
- Colors can be overridden with a __styles__ mapping in __main__; the program
  name comes from __main__.__prog__ or the root command of the fault.

Integration
- ParseResult.finalize(shell=..., fancy=..., colorful=...) triggers the
  collected warnings, then the ParseExit when errors are present.
- In non-shell mode exceptions are raised and warnings go through the
  warnings module; in shell mode both are printed to stderr.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - matching (111xx)
      • UNMATCHED_TOKEN, MISSING_ARGUMENT, REQUIRED_OPTION
    - conversion (112xx)
      • CONVERSION_FAILED
    - validation (113xx)
      • RANGE_VIOLATION, CASING_VIOLATION, INCLUSIVE_GROUP, CONDITION_FAILED
    - warnings (12xxx)
      • DEPRECATED_SYMBOL
    """
    # --- matching errors (111xx) ---
    UNMATCHED_TOKEN   = 11101
    MISSING_ARGUMENT  = 11102
    REQUIRED_OPTION   = 11103

    # --- conversion errors (112xx) ---
    CONVERSION_FAILED = 11201

    # --- validation errors (113xx) ---
    RANGE_VIOLATION   = 11301
    CASING_VIOLATION  = 11302
    INCLUSIVE_GROUP   = 11303
    CONDITION_FAILED  = 11304

    # --- warnings (12xxx) ---
    DEPRECATED_SYMBOL = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, title_style, message_style):
    """
    shared rich layout for errors and warnings.

    the fault options drive the output:
    - colorful: apply the palette (merged with __main__.__styles__).
    - fancy: wrap message and hint inside a titled panel.
    - ratio: optional width ratio used when nested inside a ParseExit panel.
    """
    main = __import__("__main__")
    options = fault.options
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    root = options.get("root")
    prog = text(getattr(main, "__prog__", root.name if root is not None else "argtree"), "prog-name")

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code is not None else "-", "code"),
        " | ",
        text(options.get("title", type(fault).__name__).title(), title_style),
        " ]"
    )
    message = text(fault.message, message_style)
    parts = [message]
    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fancy:
        width = console.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*parts), title=header, title_align="left", width=width)

    return Group(header, *parts)


class ParseError(Exception):
    """
    one user-facing parse or validation problem.

    a ParseError is a value: it is appended to ParseResult.errors and only
    raised when the result is finalized (inside a ParseExit). the message is
    the contract; everything else travels in the read-only options mapping.

    common options
    - code: FaultCode
    - title: short lowercase title for the rendered header
    - hint: one actionable sentence
    - symbol: the symbol the error is attached to (when any)
    - token: the offending Token (when any)
    - suggestions: typo suggestions (unmatched tokens only)
    - root, shell, fancy, colorful: injected by trigger()
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def symbol(self):
        return self.options.get("symbol")

    @property
    def token(self):
        return self.options.get("token")

    def __str__(self):
        return str(self.message)

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r})"

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self):
        return hash((type(self), self.message))

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnmatchedTokenError(ParseError): ...
class MissingArgumentError(ParseError): ...
class RequiredOptionError(ParseError): ...
class ConversionError(ParseError): ...
class RangeError(ParseError): ...
class CasingError(ParseError): ...
class InclusiveGroupError(ParseError): ...
class ConditionError(ParseError): ...


class MisuseError(RuntimeError):
    """
    raised immediately when the grammar itself is wrong at validation time:
    a casing rule evaluated without a value, a group referencing foreign
    symbols, a condition attached to the wrong symbol kind.
    """


class CommandWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeprecatedSymbolWarning(CommandWarning): ...


class ParseExit(ExceptionGroup[ParseError]):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        root = self.options.get("root")
        prog = text(getattr(main, "__prog__", root.name if root is not None else "argtree"), "prog-name")
        header = Text.assemble("[ ", prog, " — ", text(self.message.title(), "title"), " ]")

        renders = [copy.replace(exception, **self.options, ratio=2/3) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods.
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the rich console; otherwise errors
      are raised and warnings are issued through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code, read from a __docs__
    mapping in __main__ (FaultCode -> str). returns None when absent.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParseError",
    "UnmatchedTokenError",
    "MissingArgumentError",
    "RequiredOptionError",
    "ConversionError",
    "RangeError",
    "CasingError",
    "InclusiveGroupError",
    "ConditionError",
    "MisuseError",
    "CommandWarning",
    "DeprecatedSymbolWarning",
    "ParseExit",
    "trigger",
    "getdoc",
)
