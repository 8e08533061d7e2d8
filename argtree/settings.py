"""
Explicit runtime settings for tokenizing, matching and completing.

Every entry point (tokenize(), parse(), complete()) accepts a Settings value;
nothing is read from module-level state. Derive variants with
settings._replace(...) or copy.replace(settings, ...).

Presentation knobs (colors, program name, fault-code labels, docs) are not
part of Settings: they are read from the host's __main__ module by the fault
renderers (see faults.py).
"""
from typing import NamedTuple


class Settings(NamedTuple):
    """
    parsing behavior switches.

    fields
    - delimiters: characters splitting an option from an attached value
      ("--opt:value", "--opt=value"). an empty tuple disables attached values.
    - directives: recognize a leading "[name]"/"[name:value]" prefix.
    - bundling: expand "-abc" into "-a -b -c" when every letter is a known
      short option in scope.
    - distance: maximum edit distance for typo suggestions.
    - suggestions: attach typo suggestions to unmatched-token errors.
    """
    delimiters: tuple = (":", "=")
    directives: bool = True
    bundling: bool = True
    distance: int = 3
    suggestions: bool = True


__all__ = (
    "Settings",
)
