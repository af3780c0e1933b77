r"""
Commandeer parameter specifications.

Overview
- Option: named parameter matched by --long and/or -s. Boolean options are flags
  (presence-only); any other type consumes the following token as its value.
- Positional: bare parameter matched by position, in declaration order; the final
  positional may be optional.

Both are immutable declarations. Construction checks shapes (types of the given
fields, spelling of names); whether a set of parameters forms a valid grammar
(supported types, colliding names, optional placement, default coercion) is decided
by grammar.compile(), which reports problems as ConfigError.

Metadata (sanitized on construction)
- type: Unset | ValueType | bool | int | str | type name; Unset means "infer"
  (from the handler annotation in the registry, otherwise str, or bool for flags).
- default: Unset | str; raw text coerced by the grammar when the parameter is absent.
- descr: Unset | str (help line), trimmed and non-empty when provided.

Quick example:
    >>> Option("count", "c", type=int, default="1", descr="how many")
    >>> Option("verbose", "v", type=bool)
    >>> Positional("target", descr="who to teleport")
    >>> Positional("world", optional=True, default="overworld")
"""
import re

from .internals import SpecType
from .utils import *

_LONG_NAME = re.compile(r"[^\W\d_][^\W_]*(?:-[^\W_]+)*")


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the fields shared by Option and Positional.

    - default: must be Unset/None or a string (kept verbatim, "" is a real default).
    - descr: must be Unset/None or a non-empty string after trimming; resolves to None.

    Mutates metadata in place.
    """
    if not isinstance(default := metadata["default"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")
    metadata["default"] = coalesce(default)

    if not isinstance(descr := metadata["descr"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: normalize option names.

    - long: Unset/None/"" means absent; otherwise a shell-style word matching
      r"[^\W\d_](-?[^\W_]+)*" (given without dashes: "dry-run", not "--dry-run").
    - short: Unset/None/"" means absent; otherwise exactly one letter or digit.
    - flag: Unset (decided from the type at compile time) or a bool.

    Having neither name is not rejected here; the compiler reports it as
    MissingOptionNameError so the offending command is named in the fault.
    """
    if not isinstance(long := metadata["long"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'long' name must be a string")
    elif isinstance(long, str) and (long := long.strip()):
        if not _LONG_NAME.fullmatch(long):
            raise ValueError(f"{cls.__typename__} 'long' name must be a shell-style word, got {long!r}")
    metadata["long"] = coalesce(long) or None

    if not isinstance(short := metadata["short"], str | Unset | None):
        raise TypeError(f"{cls.__typename__} 'short' name must be a string")
    elif isinstance(short, str) and short:
        if len(short) != 1 or not short.isalnum():
            raise ValueError(f"{cls.__typename__} 'short' name must be a single letter or digit, got {short!r}")
    metadata["short"] = coalesce(short) or None

    if not isinstance(flag := metadata["flag"], bool | Unset):
        raise TypeError(f"{cls.__typename__} 'flag' must be a boolean")


class Option(metaclass=SpecType):
    """
    Named parameter specification (--long / -s).

    Properties
    - names: matcher tokens, short form first (("-c", "--count")).
    - dest: the name the parsed value is stored under (long name, else short name).
    """

    __introspectable__ = (
        "long",
        "short",
        "type",
        "default",
        "descr",
        "flag",
    )

    __positional__ = ("long", "short")

    def __new__(
            cls,
            long=Unset,
            short=Unset,
            /,
            type=Unset,
            default=Unset,
            descr=Unset,
            *,
            flag=Unset
    ):
        metadata = {
            "long": long,
            "short": short,
            "type": type,
            "default": default,
            "descr": descr,
            "flag": flag,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        names = []
        if self.short:
            names.append("-" + self.short)
        if self.long:
            names.append("--" + self.long)
        return tuple(names)

    @property
    def dest(self):
        return self.long or self.short

    def __replica__(self):
        return {name: getattr(self, "_" + name) for name in type(self).__introspectable__}


class Positional(metaclass=SpecType):
    """
    Positional parameter specification, matched strictly in declaration order.
    """

    __introspectable__ = (
        "name",
        "type",
        "optional",
        "default",
        "descr",
    )

    __positional__ = ("name",)

    def __new__(
            cls,
            name,
            /,
            type=Unset,
            optional=False,
            default=Unset,
            descr=Unset
    ):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        elif any(char.isspace() for char in name) or name.startswith("-"):
            raise ValueError(f"{cls.__typename__} 'name' cannot contain whitespace or start with '-', got {name!r}")

        metadata = {
            "name": name,
            "type": type,
            "optional": bool(optional),
            "default": default,
            "descr": descr,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def dest(self):
        return self.name

    def __replica__(self):
        return {name: getattr(self, "_" + name) for name in type(self).__introspectable__}


__all__ = (
    "Option",
    "Positional",
)
