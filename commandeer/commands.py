"""
Commandeer command specifications.

A CommandSpec is one named command variant: the command token, its aliases, help
description, the permission tag and denial message carried through for the host,
the ordered parameter specs, and the handler to invoke.

Several specs may share a token; they are overloads of one command and the
dispatcher tries them in registration order (see dispatcher.CommandGroup).

Handler calling convention
- handler(context, *values) for plain callables.
- handler(instance, context, *values) when 'owner' (the declaring class) is set;
  the instance comes from the dispatcher's HandlerCache, one per owner.
The invoking context is never part of 'parameters': it is always the first
argument the binder produces.
"""
from collections.abc import Iterable

from .internals import SpecType
from .parameters import Option, Positional
from .utils import *


def _sanitize_word(cls, field, word, /):
    """
    Internal: a command token or alias is a non-empty string without whitespace.
    """
    if not isinstance(word, str):
        raise TypeError(f"{cls.__typename__} {field} must be a string")
    elif not (word := word.strip()):
        raise ValueError(f"{cls.__typename__} {field} cannot be empty")
    elif any(char.isspace() for char in word):
        raise ValueError(f"{cls.__typename__} {field} cannot contain whitespace, got {word!r}")
    return word


def _process_strings(cls, metadata, /):
    """
    Internal: trim the free-text fields; Unset/None resolve to "" (nothing to show).
    """
    for name in ("description", "permission", "permission_message"):
        if not isinstance(object := metadata[name], str | Unset | None):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        metadata[name] = (coalesce(object) or "").strip()


def _process_iterables(cls, metadata, /):
    """
    Internal: freeze aliases (set semantics) and parameters (ordered tuple).
    """
    if isinstance(aliases := metadata["aliases"], str) or not isinstance(aliases, Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
    metadata["aliases"] = frozenset(_sanitize_word(cls, "alias", alias) for alias in aliases)
    if metadata["token"] in metadata["aliases"]:
        raise ValueError(f"{cls.__typename__} token {metadata["token"]!r} cannot be its own alias")

    if not isinstance(parameters := metadata["parameters"], Iterable):
        raise TypeError(f"{cls.__typename__} 'parameters' must be an iterable of parameter specs")
    parameters = tuple(parameters)
    for parameter in parameters:
        if not isinstance(parameter, Option | Positional):
            raise TypeError(f"{cls.__typename__} parameters must be options or positionals, got {parameter!r}")
    metadata["parameters"] = parameters


class CommandSpec(metaclass=SpecType):
    """
    One command variant, immutable once built.

    Properties
    - unit: identity of the declaring unit (owner class, else the handler itself),
      used in logs and HandlerError context.
    """

    __introspectable__ = (
        "token",
        "aliases",
        "description",
        "permission",
        "permission_message",
        "parameters",
        "handler",
        "owner",
    )

    __displayable__ = (
        "token",
        "aliases",
        "description",
        "permission",
        "parameters",
    )

    __positional__ = ("token", "parameters", "handler")

    def __new__(
            cls,
            token,
            /,
            parameters=(),
            handler=Unset,
            *,
            aliases=(),
            description=Unset,
            permission=Unset,
            permission_message=Unset,
            owner=Unset
    ):
        metadata = {
            "token": _sanitize_word(cls, "token", token),
            "aliases": aliases,
            "description": description,
            "permission": permission,
            "permission_message": permission_message,
            "parameters": parameters,
            "handler": handler,
            "owner": owner,
        }
        _process_strings(cls, metadata)
        _process_iterables(cls, metadata)

        if not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be callable")
        if not isinstance(owner, type | Unset | None):
            raise TypeError(f"{cls.__typename__} 'owner' must be a class")
        metadata["owner"] = coalesce(owner)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def unit(self):
        unit = self.owner or self.handler
        return "%s.%s" % (
            getattr(unit, "__module__", None) or "<unknown>",
            getattr(unit, "__qualname__", None) or repr(unit),
        )

    def __replica__(self):
        return {name: getattr(self, "_" + name) for name in type(self).__introspectable__}


__all__ = (
    "CommandSpec",
)
