r"""
Argtree symbol tree.

Overview
- Variants (closed set, see SymbolKind)
  • Command: a named scope owning ordered options, positional arguments,
    subcommands and (at the root only) directives.
  • Option: a named, value-bearing switch with one or more aliases (-o/--output).
  • Argument: a positional slot governed by its arity.
  • Directive: a known "[name]"/"[name:value]" prefix instruction.

- Arity
  • Arity(minimum, maximum) built from the nargs vocabulary: "?", "*", "+",
    a non-negative int, or a (minimum, maximum) pair where maximum may be
    Ellipsis (unbounded).

Construction (validated eagerly; errors are raised, never deferred)
- Aliases: non-empty strings, no whitespace, not a bare prefix marker
  ("-", "--", "/"), unique after normalization.
- add(child) / add_alias(alias): reject sibling alias collisions after
  normalization, re-parenting, unbounded positionals that are not last, and
  directives below the root.
- conditions: Condition instances only.
- default: any value (wrapped into a Literal) or a ValueSource.

Normalization
- normalize(alias) keeps the prefix marker and kebab-cases the rest, so
  "--dryRun", "--DryRun", "--dry_run" and "--DRY-RUN" all resolve to the same
  symbol.

Lifecycle
- Trees are mutable while being built. seal() freezes a tree recursively
  (the parser seals its root); a sealed tree is read-only and can be shared
  across concurrent parses.

Value typing
- type is a converter callable applied to each token. bool accepts
  "true"/"false" (any case); Enum subclasses convert by member name (any case).
- Symbols whose arity maximum exceeds one produce lists.

Quick example:
    >>> from argtree import Command, Option
    >>> root = Command("root", Command("verb", Option("-x", type=int)))
    >>> root.find("-X").name
    '-x'
"""
import builtins
import enum
import functools
import math
import re
from collections.abc import Iterable
from typing import NamedTuple

from rich.text import Text

from .conditions import Condition
from .sources import sourcify
from .utils import *
from .utils import Introspective


class SymbolKind(enum.Enum):
    COMMAND = "command"
    OPTION = "option"
    ARGUMENT = "argument"
    DIRECTIVE = "directive"


class Arity(NamedTuple):
    """
    Declared minimum/maximum number of value tokens a symbol consumes.

    maximum may be math.inf for unbounded symbols.
    """
    minimum: int
    maximum: int | float

    def __repr__(self):
        return "Arity(%d, %s)" % (self.minimum, "..." if self.maximum == math.inf else self.maximum)

    @classmethod
    def of(cls, nargs, /):
        """
        Build an Arity from the nargs vocabulary.

        Accepted
        - "?" (0..1), "*" (0..inf), "+" (1..inf)
        - int n >= 0 (exactly n)
        - (minimum, maximum) with maximum an int or Ellipsis (unbounded)

        Raises
        - TypeError: unsupported type.
        - ValueError: negative bounds, minimum > maximum, unknown string.
        """
        match nargs:
            case "?":
                return cls.ZERO_OR_ONE
            case "*":
                return cls.ZERO_OR_MORE
            case "+":
                return cls.ONE_OR_MORE
            case str():
                raise ValueError("arity must be one of '?', '*', or '+'")
            case bool():
                raise TypeError("arity must be a string, an integer, or a pair")
            case int() if nargs >= 0:
                return cls(nargs, nargs)
            case int():
                raise ValueError("arity must be a non-negative integer")
            case (minimum, maximum):
                if maximum is Ellipsis:
                    maximum = math.inf
                if not isinstance(minimum, int) or isinstance(minimum, bool):
                    raise TypeError("arity minimum must be an integer")
                if not (isinstance(maximum, int) and not isinstance(maximum, bool) or maximum == math.inf):
                    raise TypeError("arity maximum must be an integer or ellipsis")
                if minimum < 0 or minimum > maximum:
                    raise ValueError("arity must satisfy 0 <= minimum <= maximum")
                return cls(minimum, maximum)
            case _:
                raise TypeError("arity must be a string, an integer, or a pair")


Arity.ZERO = Arity(0, 0)
Arity.ZERO_OR_ONE = Arity(0, 1)
Arity.EXACTLY_ONE = Arity(1, 1)
Arity.ZERO_OR_MORE = Arity(0, math.inf)
Arity.ONE_OR_MORE = Arity(1, math.inf)


@functools.lru_cache(maxsize=1024)
def normalize(alias, /):
    """
    Normalize an alias for comparison: prefix kept, body kebab-cased and lowercased.
    """
    return kebabize(alias).lower()


def _boolean(text):
    match text.strip().lower():
        case "true":
            return True
        case "false":
            return False
    raise ValueError("%r is not a boolean" % text)


def _enumeration(type, text):
    for name, member in type.__members__.items():
        if name.lower() == text.strip().lower():
            return member
    raise ValueError("%r is not one of %s" % (text, ", ".join(type.__members__)))


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by every symbol.

    - descr: Unset | str | Text; trimmed, non-empty when provided, None when Unset.
    - hidden/deprecated: coerced to bool by the caller.

    Raises
    - TypeError: descr is not a string.
    - ValueError: descr is empty after trimming.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_alias(cls, alias, /):
    if not isinstance(alias, str):
        raise TypeError(f"{cls.__typename__} aliases must be strings")
    elif not alias or alias != alias.strip() or re.search(r"\s", alias):
        raise ValueError(f"{cls.__typename__} aliases cannot be empty or contain whitespace")
    elif re.fullmatch(r"[-/]+", alias):
        raise ValueError(f"{cls.__typename__} aliases cannot be only a prefix marker")
    return alias


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate the alias set of a named symbol.

    - aliases: at least one; each a valid alias; no two equal after normalize().
    - The first alias becomes the canonical name.

    Raises
    - TypeError: a non-string alias.
    - ValueError: no alias, a malformed alias, or duplicates.
    """
    aliases = []
    if not metadata["aliases"]:
        raise ValueError(f"{cls.__typename__} must specify at least one alias")

    for alias in metadata["aliases"]:
        alias = _sanitize_alias(cls, alias)
        if normalize(alias) in map(normalize, aliases):
            raise ValueError(f"{cls.__typename__} aliases cannot contain duplicates")
        aliases.append(alias)

    metadata["aliases"] = tuple(aliases)
    metadata["name"] = aliases[0]


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate value-bearing metadata (Option, Argument).

    - type: callable converter.
    - nargs: see Arity.of(); Unset picks the per-kind default.
    - default: wrapped into a ValueSource (Unset stays Unset).
    - completions: a callable (CompletionContext -> Iterable) or an iterable of
      strings, normalized into a tuple.
    - conditions: Condition instances, normalized into a tuple.
    """
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    metadata["default"] = sourcify(metadata["default"])

    if (nargs := metadata["nargs"]) is Unset:
        if metadata["type"] is bool and cls is Option:
            nargs = "?"
        elif metadata["default"] is not Unset and cls is Argument:
            nargs = "?"
        else:
            nargs = 1
    try:
        metadata["arity"] = Arity.of(nargs)
    except (TypeError, ValueError) as error:
        raise type(error)(f"{cls.__typename__} {error}") from None
    del metadata["nargs"]

    if not callable(completions := metadata["completions"]):
        if not isinstance(completions, Iterable) or isinstance(completions, str):
            raise TypeError(f"{cls.__typename__} 'completions' must be callable or an iterable of strings")
        completions = tuple(completions)
        if not all(isinstance(completion, str) for completion in completions):
            raise TypeError(f"{cls.__typename__} 'completions' must be callable or an iterable of strings")
    metadata["completions"] = completions


def _sanitize_conditions(cls, metadata, /):
    if not isinstance(conditions := metadata["conditions"], Iterable):
        raise TypeError(f"{cls.__typename__} 'conditions' must be iterable")
    conditions = tuple(conditions)
    if not all(isinstance(condition, Condition) for condition in conditions):
        raise TypeError(f"{cls.__typename__} 'conditions' must contain conditions only")
    metadata["conditions"] = conditions


class Symbol(metaclass=Introspective):
    """
    Shared base of the closed symbol variants.

    Every symbol exposes name, aliases, arity, type, default, conditions,
    descr, hidden and deprecated as read-only properties, plus parent/root/path
    navigation. Only the variants declared in this module may subclass it.
    """
    kind = Unset

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        if cls.__module__ != __name__:
            raise TypeError(f"type {cls.__base__.__name__!r} is not an acceptable base type")

    def _setup(self, metadata, /):
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._parent = None
        self._sealed = False

    @property
    def root(self):
        """
        Return the topmost command above this symbol (or the symbol itself).
        """
        child, parent = self, self._parent
        while parent is not None:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root down to this symbol as a tuple.
        """
        path = [symbol := self]
        while symbol._parent is not None:
            path.append(symbol := symbol._parent)
        return tuple(reversed(path))

    @property
    def typename(self):
        """
        Readable name of the value type used in conversion messages.
        """
        return getattr(self._type, "__name__", repr(self._type))

    def convert(self, text, /):
        """
        Convert a token into the declared value type (raises on failure).
        """
        if self._type is bool:
            return _boolean(text)
        if isinstance(self._type, builtins.type) and issubclass(self._type, enum.Enum):
            return _enumeration(self._type, text)
        return self._type(text)

    def candidates(self, context, /):
        """
        Yield completion candidates for a value of this symbol.

        Precedence: explicit completions (static or delegate), then Enum
        member names, then "false"/"true" for booleans.
        """
        completions = getattr(self, "_completions", ())
        if callable(completions):
            yield from completions(context)
        elif completions:
            yield from completions
        elif isinstance(self._type, builtins.type) and issubclass(self._type, enum.Enum):
            yield from self._type.__members__
        elif self._type is bool:
            yield from ("false", "true")

    def add_alias(self, alias, /):
        """
        Register an extra alias; collisions with siblings are rejected.
        """
        self._guard()
        match self:
            case Argument() | Directive():
                raise TypeError(f"{type(self).__typename__} cannot have aliases")
        alias = _sanitize_alias(type(self), alias)
        if normalize(alias) in map(normalize, self._aliases):
            raise ValueError(f"{type(self).__typename__} aliases cannot contain duplicates")
        if self._parent is not None:
            self._parent._claim(self, (alias,))
        self._aliases += (alias,)
        return self

    def seal(self):
        self._sealed = True
        return self

    def _guard(self):
        if self._sealed:
            raise RuntimeError(f"{type(self).__typename__} {self._name!r} is sealed and cannot be modified")


class Option(Symbol):
    """
    Named, value-bearing option.

    Highlights
    - Aliases in declaration order; the first is the canonical name.
    - Arity defaults to exactly one value, or 0..1 for type=bool (a bare
      "--flag" then means True).
    - required: report an error when absent and no default resolves.
    - recursive: visible in every descendant command.
    - completions: static strings or a delegate taking the CompletionContext.
    """
    kind = SymbolKind.OPTION

    __introspectable__ = (
        "name",
        "aliases",
        "arity",
        "type",
        "default",
        "required",
        "recursive",
        "completions",
        "conditions",
        "descr",
        "hidden",
        "deprecated",
        "parent",
    )
    __displayable__ = (
        "name",
        "aliases",
        "arity",
        "type",
        "default",
        "required",
        "recursive",
        "hidden",
    )

    def __init__(
            self,
            *aliases,
            type=str,
            nargs=Unset,
            default=Unset,
            required=False,
            recursive=False,
            completions=(),
            conditions=(),
            descr=Unset,
            hidden=False,
            deprecated=False
    ):
        metadata = {
            "aliases": aliases,
            "type": type,
            "nargs": nargs,
            "default": default,
            "required": bool(required),
            "recursive": bool(recursive),
            "completions": completions,
            "conditions": conditions,
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)
        _sanitize_parametric_metadata(builtins.type(self), metadata)
        _sanitize_conditions(builtins.type(self), metadata)
        self._setup(metadata)


class Argument(Symbol):
    """
    Positional argument slot.

    Arity defaults to exactly one value (0..1 when a default is declared).
    Only the last argument of a command may be unbounded.
    """
    kind = SymbolKind.ARGUMENT

    __introspectable__ = (
        "name",
        "aliases",
        "arity",
        "type",
        "default",
        "completions",
        "conditions",
        "descr",
        "hidden",
        "deprecated",
        "parent",
    )
    __displayable__ = (
        "name",
        "arity",
        "type",
        "default",
        "hidden",
    )

    def __init__(
            self,
            name,
            /,
            type=str,
            nargs=Unset,
            default=Unset,
            completions=(),
            conditions=(),
            descr=Unset,
            hidden=False,
            deprecated=False
    ):
        metadata = {
            "aliases": (name,),
            "type": type,
            "nargs": nargs,
            "default": default,
            "completions": completions,
            "conditions": conditions,
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)
        _sanitize_parametric_metadata(builtins.type(self), metadata)
        _sanitize_conditions(builtins.type(self), metadata)
        self._setup(metadata)


class Directive(Symbol):
    """
    Known directive ("[name]" or "[name:value]"), attachable to a root command.

    Its value is the list of the supplied ":value" parts.
    """
    kind = SymbolKind.DIRECTIVE

    __introspectable__ = (
        "name",
        "aliases",
        "arity",
        "descr",
        "hidden",
        "deprecated",
        "parent",
    )
    __displayable__ = (
        "name",
        "hidden",
    )

    def __init__(self, name, /, descr=Unset, hidden=False):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        elif not re.fullmatch(r"[^\s\[\]:]+", name):
            raise ValueError(f"{type(self).__typename__} name must be non-empty without whitespace, brackets, or colons")
        metadata = {
            "name": name,
            "aliases": (name,),
            "arity": Arity.ZERO_OR_MORE,
            "type": str,
            "default": Unset,
            "conditions": (),
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": False,
        }
        _sanitize_metadata(type(self), metadata)
        self._setup(metadata)


class Command(Symbol):
    """
    Named scope of the grammar.

    Responsibilities
    - Ownership: ordered options, arguments and subcommands (and directives at
      the root), all reachable through children in declaration order.
    - Lookup: resolve() for this command's own symbols, lookup() for what a
      token can mean in this scope (own options/subcommands plus recursive
      options of ancestors), find() for a depth-first search of the subtree.
    - Invariants: sibling aliases are unique after normalization; only the last
      argument may be unbounded; directives live on the root only.

    Notes
    - treat_unmatched_tokens_as_errors: when the innermost matched command has
      it set (the default), every unmatched token becomes a ParseError.
    - conditions: command-level conditions such as InclusiveGroup.
    """
    kind = SymbolKind.COMMAND

    __introspectable__ = (
        "name",
        "aliases",
        "arity",
        "options",
        "arguments",
        "commands",
        "directives",
        "children",
        "conditions",
        "treat_unmatched_tokens_as_errors",
        "descr",
        "hidden",
        "deprecated",
        "parent",
    )
    __displayable__ = (
        "name",
        "aliases",
        "options",
        "arguments",
        "commands",
        "directives",
        "hidden",
    )

    def __init__(
            self,
            name,
            /,
            *children,
            aliases=(),
            conditions=(),
            treat_unmatched_tokens_as_errors=True,
            descr=Unset,
            hidden=False,
            deprecated=False
    ):
        if isinstance(aliases, str):
            aliases = (aliases,)
        metadata = {
            "aliases": (name, *aliases),
            "arity": Arity.ZERO,
            "type": str,
            "default": Unset,
            "conditions": conditions,
            "treat_unmatched_tokens_as_errors": bool(treat_unmatched_tokens_as_errors),
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)
        _sanitize_conditions(type(self), metadata)
        self._setup(metadata)

        self._options = []
        self._arguments = []
        self._commands = []
        self._directives = []
        self._children = []
        self._index = {}  # normalized alias -> option | command
        self._names = {}  # normalized name -> argument | directive

        for child in children:
            self.add(child)

    options = property(lambda self: tuple(self._options))
    arguments = property(lambda self: tuple(self._arguments))
    commands = property(lambda self: tuple(self._commands))
    directives = property(lambda self: tuple(self._directives))
    children = property(lambda self: tuple(self._children))

    def add(self, child, /):
        """
        Attach a child symbol, dispatching on its kind.

        Raises
        - TypeError: child is not a symbol.
        - ValueError: the child already has a parent, an alias collides with a
          sibling, an argument follows an unbounded argument, or a directive
          is added below the root.
        - RuntimeError: the command is sealed.
        """
        self._guard()
        if not isinstance(child, Symbol):
            raise TypeError(f"{type(self).__typename__} children must be symbols")
        if child._parent is not None:
            raise ValueError(f"{child.kind.value} {child.name!r} is already attached to {child._parent.name!r}")
        if child is self or child in self.path:
            raise ValueError(f"{type(self).__typename__} {self.name!r} cannot contain itself")

        match child:
            case Command():
                if child._directives:
                    raise ValueError(f"directives can only be attached to a root command, not {child.name!r}")
                self._claim(child, child.aliases)
                self._commands.append(child)
            case Option():
                self._claim(child, child.aliases)
                self._options.append(child)
            case Argument():
                if normalize(child.name) in self._names:
                    raise ValueError(f"argument name {child.name!r} is already in use")
                if self._arguments and self._arguments[-1].arity.maximum == math.inf:
                    raise ValueError(
                        f"argument {child.name!r} cannot follow unbounded argument {self._arguments[-1].name!r}"
                    )
                self._names[normalize(child.name)] = child
                self._arguments.append(child)
            case Directive():
                if self._parent is not None:
                    raise ValueError(f"directives can only be attached to a root command, not {self.name!r}")
                if normalize(child.name) in self._names:
                    raise ValueError(f"directive name {child.name!r} is already in use")
                self._names[normalize(child.name)] = child
                self._directives.append(child)

        child._parent = self
        self._children.append(child)
        return child

    def _claim(self, symbol, aliases, /):
        keys = [normalize(alias) for alias in aliases]
        for alias, key in zip(aliases, keys):
            if (other := self._index.get(key, symbol)) is not symbol:
                raise ValueError(
                    f"{symbol.kind.value} alias {alias!r} is already in use by {other.kind.value} {other.name!r}"
                )
        for key in keys:
            self._index[key] = symbol

    def resolve(self, name, /):
        """
        Return this command's option, subcommand, argument or directive
        named name (normalized comparison), or None.
        """
        if not isinstance(name, str):
            return None
        key = normalize(name)
        return self._index.get(key) or self._names.get(key)

    def lookup(self, alias, /):
        """
        Return what a token means in this scope: an own option or subcommand,
        or a recursive option of an ancestor (innermost first); else None.
        """
        key = normalize(alias)
        if (symbol := self._index.get(key)) is not None:
            return symbol
        parent = self._parent
        while parent is not None:
            if isinstance(symbol := parent._index.get(key), Option) and symbol.recursive:
                return symbol
            parent = parent._parent
        return None

    def find(self, name, /):
        """
        Depth-first search of the subtree for a symbol named name.
        """
        if (symbol := self.resolve(name)) is not None:
            return symbol
        for command in self._commands:
            if (symbol := command.find(name)) is not None:
                return symbol
        return None

    def scope(self):
        """
        Yield the options visible in this command: its own, then recursive
        options of its ancestors (innermost first).
        """
        yield from self._options
        parent = self._parent
        while parent is not None:
            yield from (option for option in parent._options if option.recursive)
            parent = parent._parent

    def seal(self):
        """
        Freeze this command and its whole subtree against modification.
        """
        if not self._sealed:
            self._sealed = True
            for child in self._children:
                child.seal()
        return self


__all__ = (
    "SymbolKind",
    "Arity",
    "Symbol",
    "Command",
    "Option",
    "Argument",
    "Directive",
    "normalize",
)
