"""
Value kinds understood by command grammars.

ValueType is a closed enumeration: each member knows how to parse a raw token
(parse) and how to coerce an already-parsed value for a handler call (convert).
Adding a kind means adding a member and a branch in each match below; nothing
is discovered by reflection.
"""
import re
from enum import Enum

from .utils import Unset

_INTEGER = re.compile(r"[+-]?[0-9]+")

_BOUNDS = {
    "int": (-2 ** 31, 2 ** 31 - 1),
    "long": (-2 ** 63, 2 ** 63 - 1),
}

_ALIASES = {
    "bool": "boolean",
    "boolean": "boolean",
    "int": "int",
    "integer": "int",
    "long": "long",
    "str": "string",
    "string": "string",
    "text": "string",
}


class ValueType(Enum):
    """
    closed set of primitive value kinds (Bool, 32-bit Int, 64-bit Long, Text).
    """
    BOOL = "boolean"
    INT = "int"
    LONG = "long"
    TEXT = "string"

    @property
    def boolean(self):
        """
        booleans are presence flags: they never consume a following token.
        """
        return self is ValueType.BOOL

    def parse(self, text, /):
        """
        convert one raw token; raises ValueError when the token does not fit.
        """
        if not isinstance(text, str):
            raise TypeError(f"{self.value} token must be a string")
        match self:
            case ValueType.BOOL:
                if (lowered := text.lower()) in ("true", "false"):
                    return lowered == "true"
                raise ValueError(f"{text!r} is not a boolean (expected 'true' or 'false')")
            case ValueType.INT | ValueType.LONG:
                if not _INTEGER.fullmatch(text):
                    raise ValueError(f"{text!r} is not an integer")
                return self._bounded(int(text))
            case ValueType.TEXT:
                return text

    def convert(self, value, /):
        """
        final coercion applied by the binder; strings go through parse().
        """
        if isinstance(value, str):
            return self.parse(value)
        match self:
            case ValueType.BOOL:
                return bool(value)
            case ValueType.INT | ValueType.LONG:
                return self._bounded(int(value))
            case ValueType.TEXT:
                return str(value)

    def _bounded(self, number, /):
        low, high = _BOUNDS[self.value]
        if not low <= number <= high:
            raise ValueError(f"{number} is out of range for {self.value} ({low}..{high})")
        return number

    @classmethod
    def resolve(cls, declared, /):
        """
        Map a declared parameter type to a member.

        Accepted
        - ValueType members (returned as-is)
        - the builtins bool, int and str
        - names: bool/boolean, int/integer, long, str/string/text (any case)

        Anything else resolves to Unset; the grammar compiler reports it as an
        unsupported type.
        """
        if isinstance(declared, ValueType):
            return declared
        if declared is bool:
            return cls.BOOL
        if declared is int:
            return cls.INT
        if declared is str:
            return cls.TEXT
        if isinstance(declared, str) and (alias := _ALIASES.get(declared.strip().lower())):
            return cls(alias)
        return Unset


__all__ = ("ValueType",)
