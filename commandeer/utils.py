"""
Small helpers shared by the declaration, grammar and registry layers.

- Unset: "not declared" marker, distinct from None (None is a value an absent
  option legitimately binds).
- coalesce: Unset → fallback, everything else untouched.
- rename: decorator fixing __name__/__qualname__ of generated callables.
- freeze / mirror: read-only views over private backing fields.
- mglob: dotted module globs ("plugin.**.commands") for command discovery.
"""
import fnmatch
import functools
import importlib
import pkgutil
import re
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final

_MODULE_NAME = re.compile(r"(?!\d)\w+(\.(?!\d)\w+)*")

_WILDCARDS = frozenset("*?[]!")


@final
class UnsetType:
    """
    Type of the Unset marker; one instance per process, falsey, not subclassable.

    Unions work both ways (str | Unset, Unset | None), so the marker can sit in
    isinstance() checks next to real types.
    """

    __slots__ = ()

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")

    def __or__(self, other, /):
        try:
            return UnsetType | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"


def coalesce(object, default=None, /):
    """
    object unless it is Unset, in which case default; None, 0 and "" are kept.
    """
    return default if object is Unset else object


def rename(name, /):
    """
    Decorator setting both __name__ and __qualname__ of a callable to name.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(callable):
        callable.__name__ = callable.__qualname__ = name
        return callable

    return decorator


def freeze(object, /):
    """
    Shallow read-only counterpart of a container (tuple, mappingproxy, frozenset).

    Strings and non-containers come back unchanged.
    """
    match object:
        case str() | bytes() | bytearray():
            return object
        case Mapping():
            return MappingProxyType(object)
        case Set():
            return frozenset(object)
        case Sequence():
            return tuple(object)
    return object


def mirror(name, /):
    """
    Read-only property exposing self._<name> through freeze().
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return freeze(getattr(self, "_" + name))

    return property(getter)


def _matches(parts, pattern, /):
    """
    Match dotted-name parts against pattern segments; '**' spans zero or more parts.
    """
    if not pattern:
        return not parts
    head, *rest = pattern
    if head == "**":
        return any(_matches(parts[index:], rest) for index in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _matches(parts[1:], rest)


def mglob(source, /):
    """
    Expand a dotted module glob into sorted, fully-qualified module names.

    Segments use fnmatch syntax (*, ?, [seq], [!seq]) and never span a dot; a '**'
    segment spans any number of them. The leading concrete segments name the package
    that gets imported and walked; a pattern with no wildcard is returned as-is and
    nothing is imported. A package that cannot be imported yields no matches.

    Examples
    - "plugin.*"            → plugin.commands, plugin.economy
    - "plugin.**.commands"  → plugin.commands, plugin.admin.commands, ...
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    if not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")
    if _MODULE_NAME.fullmatch(source):
        return [source]

    pattern = source.split(".")
    concrete = []
    for segment in pattern:
        if _WILDCARDS & set(segment) or not _MODULE_NAME.fullmatch(segment):
            break
        concrete.append(segment)
    if not concrete:
        raise ValueError("mglob() pattern must start with a concrete package name")

    try:
        package = importlib.import_module(root := ".".join(concrete))
    except ImportError:
        return []

    found = [root] if _matches(root.split("."), pattern) else []
    for module in pkgutil.walk_packages(getattr(package, "__path__", ()), root + "."):
        if _matches(module.name.split("."), pattern):
            found.append(module.name)
    return sorted(set(found))


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "freeze",
    "mirror",
    "mglob",
    "UnsetType",
    "Unset",
)
