"""
Deferred value sources.

A value source answers one question against a ParseResult: “is there a
value, and if so which one?”. Sources back symbol defaults and condition
operands (e.g., Range bounds) and are only evaluated lazily, after matching,
because they may depend on what the user typed.

Variants (closed set)
- Literal(value): always resolves to value.
- SymbolRef(symbol, transform=None): the resolved value of another symbol
  (user-supplied first, then its own default); optional transform applied.
- Computed(function): function(result); returning Unset means “no value”.
- EnvVar(name, transform=None, environ=None): text of an environment variable,
  converted with transform, or with the target converter when given.
- Fallback(*sources): the first member that resolves, tried in the fixed
  precedence order Literal > SymbolRef > Computed > EnvVar (members of the
  same rank keep declaration order).

Contract
- resolve(result, /, convert=None) -> (found, value)
- never mutates the result.
"""
import os

from .utils import Unset, Introspective


class ValueSource(metaclass=Introspective):
    """
    base of the closed set of deferred value sources.
    """
    rank = 0

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        if cls.__module__ != __name__:
            raise TypeError(f"type {ValueSource.__name__!r} is not an acceptable base type")

    def resolve(self, result, /, convert=None):
        raise NotImplementedError


class Literal(ValueSource):
    __introspectable__ = ("value",)
    rank = 0

    def __init__(self, value, /):
        self._value = value

    def resolve(self, result, /, convert=None):
        return True, self._value


class SymbolRef(ValueSource):
    __introspectable__ = ("symbol", "transform")
    rank = 1

    def __init__(self, symbol, /, transform=None):
        if transform is not None and not callable(transform):
            raise TypeError(f"{type(self).__typename__} 'transform' must be callable")
        self._symbol = symbol
        self._transform = transform

    def resolve(self, result, /, convert=None):
        found, value = result.resolve(self._symbol)
        if found and self._transform is not None:
            value = self._transform(value)
        return found, value


class Computed(ValueSource):
    __introspectable__ = ("function",)
    rank = 2

    def __init__(self, function, /):
        if not callable(function):
            raise TypeError(f"{type(self).__typename__} 'function' must be callable")
        self._function = function

    def resolve(self, result, /, convert=None):
        if (value := self._function(result)) is Unset:
            return False, None
        return True, value


class EnvVar(ValueSource):
    __introspectable__ = ("name", "transform")
    rank = 3

    def __init__(self, name, /, transform=None, environ=None):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} 'name' cannot be empty")
        if transform is not None and not callable(transform):
            raise TypeError(f"{type(self).__typename__} 'transform' must be callable")
        self._name = name
        self._transform = transform
        self._environ = environ

    def resolve(self, result, /, convert=None):
        environ = os.environ if self._environ is None else self._environ
        if (text := environ.get(self._name)) is None:
            return False, None
        if self._transform is not None:
            return True, self._transform(text)
        if convert is not None:
            return True, convert(text)
        return True, text


class Fallback(ValueSource):
    __introspectable__ = ("sources",)

    def __init__(self, *sources):
        if not sources:
            raise ValueError(f"{type(self).__typename__} must have at least one source")
        sources = tuple(map(sourcify, sources))
        # sorted() is stable: equal ranks keep their declaration order
        self._sources = tuple(sorted(sources, key=lambda source: source.rank))

    @property
    def rank(self):
        return self._sources[0].rank

    def resolve(self, result, /, convert=None):
        for source in self._sources:
            found, value = source.resolve(result, convert)
            if found:
                return True, value
        return False, None


def sourcify(object, /):
    """
    wrap a plain value into a Literal; sources and Unset pass through.
    """
    if object is Unset or isinstance(object, ValueSource):
        return object
    return Literal(object)


__all__ = (
    "ValueSource",
    "Literal",
    "SymbolRef",
    "Computed",
    "EnvVar",
    "Fallback",
    "sourcify",
)
