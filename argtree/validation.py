"""
Argtree validation pipeline.

validate(result, validators=Unset) evaluates the conditions declared on the
matched command chain against a ParseResult and appends every violation to
result.errors (the returned tuple holds only the new ones).

walk
- for each command of the matched chain (root first): its own conditions,
  then the conditions of every option and argument holding a value (user
  supplied or implicit). nothing short-circuits.

registry
- VALIDATORS maps a Condition type to a callable
  (condition, symbol, result) -> Iterable[ParseError]. lookups follow the
  condition's MRO, so subclasses of built-in conditions reuse their validator.
  pass an extended copy (VALIDATORS | {MyCondition: ...}) to validate().
- a condition without a registered validator is evaluated through its own
  check(symbol, value, result) method when it defines one, and skipped
  otherwise.

misuse (raised, not collected)
- StringCase on a missing, empty or non-string value.
- StringCase or Range on a command, InclusiveGroup on anything but a command.
- InclusiveGroup members that are not options or arguments of its command.
"""
from types import MappingProxyType

from .conditions import *
from .faults import *
from .symbols import SymbolKind
from .utils import *


def _name(symbol):
    return "%s '%s'" % (symbol.kind.value, symbol.name)


def _values(value):
    return value if isinstance(value, list) else [value]


def _bound(source, result, symbol, which):
    """
    resolve one range bound; (found, value) or a ConditionError.
    """
    if source is Unset:
        return False, None
    try:
        return source.resolve(result, convert=symbol.convert)
    except Exception as exception:
        return ConditionError(
            "The %s bound of %s could not be resolved." % (which, _name(symbol)),
            title="invalid bound",
            code=FaultCode.CONDITION_FAILED,
            symbol=symbol,
            hint=str(exception),
            docs=getdoc(FaultCode.CONDITION_FAILED),
            exception=exception,
        ), None


def _range(condition, symbol, result):
    if symbol.kind not in (SymbolKind.OPTION, SymbolKind.ARGUMENT):
        raise MisuseError(f"{type(condition).__typename__} cannot be attached to {_name(symbol)}")
    found, value = result.resolve(symbol)
    if not found or value is None:
        return

    bounds = []
    for which, source in (("lower", condition.lower), ("upper", condition.upper)):
        found, bound = _bound(source, result, symbol, which)
        if isinstance(found, ParseError):
            yield found
        bounds.append((found is True, bound))
    (has_lower, lower), (has_upper, upper) = bounds

    for item in _values(value):
        try:
            if has_lower and item <= lower:
                message = "greater than %s" % lower
            elif has_upper and item >= upper:
                message = "less than %s" % upper
            else:
                continue
        except TypeError:
            continue
        yield RangeError(
            "The value of %s must be %s." % (_name(symbol), message),
            title="value out of range",
            code=FaultCode.RANGE_VIOLATION,
            symbol=symbol,
            hint="pass a value %s to %s" % (message, symbol.name),
            docs=getdoc(FaultCode.RANGE_VIOLATION),
        )
        return


def _casing(condition, symbol, result):
    if symbol.kind not in (SymbolKind.OPTION, SymbolKind.ARGUMENT):
        raise MisuseError(f"{type(condition).__typename__} cannot be attached to {_name(symbol)}")
    found, value = result.resolve(symbol)
    for item in _values(value) if found else [None]:
        if not isinstance(item, str) or not item:
            raise MisuseError(
                f"{type(condition).__typename__} requires a non-empty string value for {_name(symbol)}, got {item!r}"
            )
        expected = item.lower() if condition.casing == "lower" else item.upper()
        if item != expected:
            yield CasingError(
                "The value of %s must be %scase." % (_name(symbol), condition.casing),
                title="wrong casing",
                code=FaultCode.CASING_VIOLATION,
                symbol=symbol,
                hint="pass %r instead" % expected,
                docs=getdoc(FaultCode.CASING_VIOLATION),
            )
            return


def _group(condition, symbol, result):
    if symbol.kind is not SymbolKind.COMMAND:
        raise MisuseError(f"{type(condition).__typename__} can only be attached to commands, not {_name(symbol)}")

    members = []
    for member in condition.members:
        if isinstance(member, str):
            if (resolved := symbol.resolve(member)) is None:
                raise MisuseError(f"{type(condition).__typename__} member {member!r} is not a symbol of {_name(symbol)}")
            member = resolved
        if member.kind not in (SymbolKind.OPTION, SymbolKind.ARGUMENT) or member.parent is not symbol:
            raise MisuseError(
                f"{type(condition).__typename__} member {member.name!r} must be an option or argument of {_name(symbol)}"
            )
        members.append(member)

    supplied = [member for member in members if (value := result.results.get(member)) and not value.implicit]
    if not supplied or len(supplied) == len(members):
        return

    missing = [member for member in members if member not in supplied]
    kinds = {member.kind for member in missing}
    noun = kinds.pop().value if len(kinds) == 1 else "symbol"
    names = ", ".join("'%s'" % member.name for member in missing)
    if len(missing) == 1:
        message = "%s %s is missing." % (noun.capitalize(), names)
    else:
        message = "%s %s are missing." % (pluralize(noun).capitalize(), names)

    yield InclusiveGroupError(
        message,
        title="incomplete group",
        code=FaultCode.INCLUSIVE_GROUP,
        symbol=symbol,
        hint="%s must be used together" % ", ".join(member.name for member in members),
        docs=getdoc(FaultCode.INCLUSIVE_GROUP),
    )


VALIDATORS = MappingProxyType({
    Range: _range,
    StringCase: _casing,
    InclusiveGroup: _group,
})


def _custom(condition, symbol, result):
    found, value = result.resolve(symbol) if symbol.kind is not SymbolKind.COMMAND else (True, None)
    outcome = condition.check(symbol, value if found else None, result)
    if outcome is None:
        return
    for failure in [outcome] if isinstance(outcome, str | ParseError) else outcome:
        if isinstance(failure, ParseError):
            yield failure
        else:
            yield ConditionError(
                str(failure),
                title="condition failed",
                code=FaultCode.CONDITION_FAILED,
                symbol=symbol,
                docs=getdoc(FaultCode.CONDITION_FAILED),
            )


def _validator(condition, validators):
    for cls in type(condition).__mro__:
        if (validator := validators.get(cls)) is not None:
            return validator
    if callable(getattr(condition, "check", None)):
        return _custom
    return None


def validate(result, validators=Unset, /):
    """
    evaluate every declared condition of the matched command chain.

    parameters
    - result: ParseResult (errors from matching do not prevent validation)
    - validators: Mapping[type, callable]; VALIDATORS when Unset.

    returns
    - tuple[ParseError, ...] of the new errors, also appended to result.errors.

    raises
    - MisuseError: a condition is applied to the wrong kind of symbol or value.
    """
    validators = coalesce(validators, VALIDATORS)
    errors = []

    for command in result.command.path:
        checks = [(condition, command) for condition in command.conditions]
        for symbol in (*command.options, *command.arguments):
            if (value := result.results.get(symbol)) is not None and value.error is None:
                checks.extend((condition, symbol) for condition in symbol.conditions)

        for condition, symbol in checks:
            if (validator := _validator(condition, validators)) is None:
                continue
            errors.extend(validator(condition, symbol, result))

    result._annotate(errors)
    return tuple(errors)


__all__ = (
    "VALIDATORS",
    "validate",
)
