"""
Value conditions attached to symbols at build time.

Conditions are inert declarations: they hold their operands and nothing else.
The validation pipeline (validation.py) decides how each kind is evaluated,
through a registry keyed by condition type.

Kinds
- Range(lower=Unset, upper=Unset): exclusive bounds; each bound may be a
  ValueSource resolved lazily against the parse result.
- StringCase(casing): "lower" or "upper".
- InclusiveGroup(*members): declared on a command; if any member is supplied,
  all members must be. Members are symbols or aliases of that command.
- Condition: base for custom conditions. A subclass overriding
  check(symbol, value, result) is evaluated directly when no validator is
  registered for it; Custom(function) wraps a plain function.
"""
from .sources import sourcify
from .utils import Unset, Introspective


class Condition(metaclass=Introspective):
    """
    base of every value condition.

    custom conditions override check(symbol, value, result) and return (or
    yield) messages: strings or ParseError instances. returning None means
    the condition holds.
    """


class Range(Condition):
    __introspectable__ = ("lower", "upper")

    def __init__(self, lower=Unset, upper=Unset):
        if lower is Unset and upper is Unset:
            raise ValueError(f"{type(self).__typename__} must declare at least one bound")
        self._lower = sourcify(lower)
        self._upper = sourcify(upper)


class StringCase(Condition):
    __introspectable__ = ("casing",)
    __typename__ = "string case"

    def __init__(self, casing, /):
        if not isinstance(casing, str):
            raise TypeError(f"{type(self).__typename__} 'casing' must be a string")
        elif (casing := casing.strip().lower()) not in ("lower", "upper"):
            raise ValueError(f"{type(self).__typename__} 'casing' must be one of 'lower' or 'upper'")
        self._casing = casing


class InclusiveGroup(Condition):
    __introspectable__ = ("members",)

    def __init__(self, *members):
        if not members:
            raise ValueError(f"{type(self).__typename__} must have at least one member")
        seen = []
        for member in members:
            if not isinstance(member, str) and not hasattr(member, "kind"):
                raise TypeError(f"{type(self).__typename__} members must be symbols or aliases")
            if any(member is other or isinstance(member, str) and member == other for other in seen):
                raise ValueError(f"{type(self).__typename__} members cannot contain duplicates")
            seen.append(member)
        self._members = tuple(seen)


class Custom(Condition):
    __introspectable__ = ("function",)

    def __init__(self, function, /):
        if not callable(function):
            raise TypeError(f"{type(self).__typename__} 'function' must be callable")
        self._function = function

    def check(self, symbol, value, result, /):
        return self._function(symbol, value, result)


__all__ = (
    "Condition",
    "Range",
    "StringCase",
    "InclusiveGroup",
    "Custom",
)
