"""
Internal metaclass shared by the declarative specs (Option, Positional, CommandSpec).

SpecType gives every spec class:
- __typename__: the class name split on capitals and hyphenated ("command-spec"),
  used as the subject of construction errors.
- read-only properties for every name in __introspectable__ (see utils.mirror).
- a stable __repr__ and a __rich_repr__ for pretty printers.
- __replace__, so copy.replace(spec, **overrides) rebuilds a validated copy through
  the public constructor.

Spec classes describe how to rebuild themselves with __replica__(), a mapping of
constructor arguments taken from their current fields; names listed in
__positional__ are passed positionally (they are positional-only in __new__).
"""
import functools
import operator
import re

from .utils import *


class SpecType(type):
    __introspectable__ = ()
    __displayable__ = Unset
    __positional__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__replace__")
        def __replace__(self, /, **overrides):
            fields = self.__replica__()
            if unknown := set(overrides) - set(fields):
                raise TypeError(f"{type(self).__typename__} cannot replace {", ".join(sorted(unknown))}")
            fields |= overrides
            args = [fields.pop(name) for name in type(self).__positional__]
            return type(self)(*args, **fields)
        self.__replace__ = __replace__

        return self


__all__ = ("SpecType",)
