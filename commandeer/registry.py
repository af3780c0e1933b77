"""
Commandeer registry: declare commands next to their handlers.

What this module provides
- command(token, ...): repeatable decorator; every application records one
  CommandSpec on the callback's __commands__ tuple (top-down decorator order).
- collect(object): gather the specs declared on a function, a class (methods are
  bound to the class as owner, static methods run unbound, class methods are
  rejected) or a module (its own members, in definition order).
- discover(*patterns): expand dotted module globs ("plugin.**.commands"), import
  the matches and collect them.

Signature rules (the handler's parameters define the grammar)
- Leading parameters without a spec default (self, the invoking context) are
  passed by the dispatcher and skipped here.
- Every following parameter must default to an Option or a Positional and must be
  passable by position; a plain parameter after a declared one is a TypeError.
- A spec declared with no type takes the parameter annotation when it names a
  supported value type.

Quick start
    from commandeer import command, collect, Dispatcher, Option, Positional

    class Teleport:
        @command("tp", aliases=("teleport",))
        def run(self, context, target=Positional("target"), silent=Option("silent", "s", type=bool)):
            "Teleport a player."
            ...

    dispatcher = Dispatcher(collect(Teleport))
"""
import copy
import importlib
import inspect
import logging
from inspect import Parameter
from types import ModuleType

from .commands import CommandSpec
from .parameters import Option, Positional
from .utils import *
from .values import ValueType

logger = logging.getLogger(__name__)


def _process_signature(callback, /):
    """
    Internal: read the parameter specs out of the callback's defaults, in order.
    """
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        raise TypeError("@command() must be applied to an inspectable callable") from None

    parameters = []
    for name, parameter in signature.parameters.items():
        if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            raise TypeError(f"@command() handler parameter {name!r} cannot be variadic")

        if not isinstance(spec := parameter.default, Option | Positional):
            if parameters:
                raise TypeError(f"@command() handler parameter {name!r} must default to an option or a positional")
            continue

        if parameter.kind is Parameter.KEYWORD_ONLY:
            raise TypeError(f"@command() handler parameter {name!r} must be passable by position")

        if spec.type is Unset and (declared := ValueType.resolve(parameter.annotation)) is not Unset:
            spec = copy.replace(spec, type=declared)
        parameters.append(spec)

    return tuple(parameters)


def command(
        token,
        /,
        *,
        aliases=(),
        description=Unset,
        permission=Unset,
        permission_message=Unset
):
    """
    Declare a command variant on the decorated callback.

    Parameters
    - token: str, the command name ("tp").
    - aliases: iterable of str, alternative names.
    - description: str, help text (defaults to the callback docstring).
    - permission, permission_message: str, carried to the host untouched.

    Stacking the decorator declares overloads; the topmost decorator is the first
    variant tried.
    """

    @rename("command")
    def decorator(callback):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        spec = CommandSpec(
            token,
            _process_signature(callback),
            callback,
            aliases=aliases,
            description=coalesce(description, inspect.getdoc(callback)),
            permission=permission,
            permission_message=permission_message,
        )
        callback.__commands__ = (spec,) + getattr(callback, "__commands__", ())
        return callback

    return decorator


def _declared(member, /):
    return getattr(member, "__commands__", ()) or getattr(member.__func__, "__commands__", ())


def _collect_class(cls, /):
    """
    Internal: plain methods are bound to cls as owner; static methods run unbound.
    """
    specs = []
    for name, member in vars(cls).items():
        match member:
            case classmethod():
                if _declared(member):
                    raise TypeError(f"@command() cannot be applied to classmethod {cls.__qualname__}.{name}")
            case staticmethod():
                specs.extend(_declared(member))
            case _:
                for spec in getattr(member, "__commands__", ()):
                    specs.append(copy.replace(spec, owner=cls))
    return specs


def collect(object, /):
    """
    Gather CommandSpecs from a decorated callable, a class or a module.

    Returns a list in declaration order, ready for Dispatcher(...).
    """
    if isinstance(object, ModuleType):
        specs = []
        for member in vars(object).values():
            if getattr(member, "__module__", None) != object.__name__:
                continue
            if isinstance(member, type):
                specs.extend(_collect_class(member))
            elif callable(member):
                specs.extend(getattr(member, "__commands__", ()))
        logger.debug("collected %d command(s) from module %s", len(specs), object.__name__)
        return specs
    if isinstance(object, type):
        return _collect_class(object)
    if callable(object):
        return list(getattr(object, "__commands__", ()))
    raise TypeError("collect() argument must be a callable, a class or a module")


def discover(*patterns):
    """
    Import every module matching the dotted globs and collect their commands.

    Modules are visited once, in pattern order then name order (see utils.mglob).
    Raises ImportError naming the module that failed to import.
    """
    seen = set()
    specs = []
    for pattern in patterns:
        for name in mglob(pattern):
            if name in seen:
                continue
            seen.add(name)
            try:
                module = importlib.import_module(name)
            except ImportError as exception:
                raise ImportError(f"unable to import module {name!r}", name=name) from exception
            specs.extend(collect(module))
    return specs


__all__ = (
    "command",
    "collect",
    "discover",
)
