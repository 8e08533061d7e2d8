"""
Argtree utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the tokenizer, the symbol tree, the matcher
  and the validation pipeline so every layer speaks the same semantics.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None.
  • Falsey, printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr) as a fresh copy.

- Introspective
  • Metaclass deriving __typename__, read-only properties and __repr__/__rich_repr__
    from a class-level __introspectable__ tuple.

- kebabize(text)
  • Convert camelCase/PascalCase/snake_case identifiers into kebab-case, keeping
    any leading prefix marker ("-", "--", "/") intact.

- pluralize(text) / ordinal(number)
  • Tiny English helpers for user-facing messages.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> kebabize("--dryRun")
    '--dry-run'
    >>> pluralize("option")
    'options'
    >>> ordinal(3)
    'third'
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used wherever None is a legitimate user value and the API still has to
    distinguish “not provided” from “provided as None”.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the object unless it is Unset, in which case the default is
    returned. Falsey values such as None, 0, "" or [] are returned as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Raises
    - TypeError: wrong argument types or a callable whose names are read-only.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy list/dict/set containers so callers cannot mutate the
    backing state. Tuples and frozen views are already safe and are returned
    as-is, as is everything else.
    """
    if isinstance(object, list):
        return list(map(_immortalize, object))
    elif isinstance(object, dict):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Mutable containers are copied on every access (see _immortalize).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


class Introspective(type):
    """
    Metaclass that turns plain classes into introspectable, read-only records.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with spaces,
      lowercased) for consistent messages: "InclusiveGroup" -> "inclusive group".
    - Publish every name in __introspectable__ as a read-only property backed
      by "_<name>" (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__,
      when set, narrows the fields shown.

    Notes
    - Properties are only generated for names declared in the class body
      itself; subclasses redeclaring __introspectable__ get their own set.
    - A class may still define its own __repr__; the generated one is only
      installed when the namespace does not provide one.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            {
                name: mirror(name)
                for name in namespace.get("__introspectable__", ())
                if name not in namespace
            } | namespace | {
                "__typename__": namespace.get("__typename__", re.sub(r"(?<!^)(?=[A-Z])", " ", name).lower()),
            },
            **options
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__name__}({
                    ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
                })"
            self.__repr__ = __repr__

        if "__rich_repr__" not in namespace:
            @rename("__rich_repr__")
            def __rich_repr__(self):
                for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                    yield name, getattr(self, name)
            self.__rich_repr__ = __rich_repr__

        return self


def kebabize(text, /):
    """
    Convert an identifier into kebab-case.

    Behavior
    - Leading characters up to the first letter or digit are kept verbatim
      (underscores become hyphens), so prefixes like "--" or "/" survive.
    - An uppercase letter that follows a lowercase letter or digit starts a
      new hyphen-separated word; all letters are lowercased.
    - Underscores become hyphens.

    Examples
    - kebabize("--dryRun")  -> "--dry-run"
    - kebabize("DryRun")    -> "dry-run"
    - kebabize("DRY-RUN")   -> "dry-run"
    - kebabize("dry_run")   -> "dry-run"
    """
    if not isinstance(text, str):
        raise TypeError("kebabize() argument must be a string")

    result = []
    index = 0
    dash = False

    for index, char in enumerate(text):
        if char.isalnum():
            dash = not char.isupper()
            result.append(char.lower())
            index += 1
            break
        result.append("-" if char == "_" else char)
    else:
        return "".join(result)

    for char in text[index:]:
        if char.isupper():
            if dash:
                dash = False
                result.append("-")
            result.append(char.lower())
        elif char.isalnum():
            dash = True
            result.append(char)
        else:
            dash = False
            result.append("-" if char == "_" else char)

    return "".join(result)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralizer for message nouns.

    Only the last word of a phrase is pluralized and its casing is preserved
    ("Option" -> "Options", "command option" -> "command options").
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")

    if not (match := re.search(r"(\S+)(\s*)$", text)):
        return text

    head, last, trail = text[:match.start(1)], match.group(1), match.group(2)
    lower = last.lower()

    if lower in {"series", "species", "information", "equipment", "news"}:
        plural = lower
    elif lower in (irregulars := {"person": "people", "child": "children", "index": "indices"}):
        plural = irregulars[lower]
    elif lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = lower + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = lower[:-1] + "ies"
    else:
        plural = lower + "s"

    if last.isupper():
        plural = plural.upper()
    elif last[:1].isupper():
        plural = plural[:1].upper() + plural[1:]

    return head + plural + trail


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth"
        )[number - 1] if number > 0 else f"{number}th"
    except IndexError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


__all__ = (
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "kebabize",
    "pluralize",
    "ordinal",
)
