"""
Turn a parsed namespace into the positional argument list of a handler call.

Slot 0 is always the invoking context; the following slots follow the declared
parameter order of the command. Every slot is coerced through its ValueType, and
anything that cannot be bound (missing name, missing value, unsupported type,
failed conversion) becomes None. Binding never raises.
"""
from .parameters import Option
from .utils import Unset
from .values import ValueType


def _declared_type(parameter, /):
    if (declared := parameter.type) is Unset:
        if isinstance(parameter, Option) and parameter.flag is True:
            return ValueType.BOOL
        return ValueType.TEXT
    return ValueType.resolve(declared)


def _bind_one(parameter, namespace, /):
    if (value := namespace.get(parameter.dest)) is None:
        return None
    if (type := _declared_type(parameter)) is Unset:
        return None
    try:
        return type.convert(value)
    except (TypeError, ValueError):
        return None


def bind(command, namespace, context, /):
    """
    Build [context, value₁, …, valueₙ] for command.handler.

    Parameters
    - command: CommandSpec whose parameters define slot order and types.
    - namespace: mapping dest → parsed value (Grammar.parse output).
    - context: the invoking context, passed through untouched.
    """
    return [context, *(_bind_one(parameter, namespace) for parameter in command.parameters)]


__all__ = ("bind",)
