"""
Commandeer faults and their rendering.

Scope
- FaultCode: stable numeric identifiers for every fault, grouped by domain so logs
  and searches stay predictable.
- CommandFault: base exception carrying a message plus read-only context options;
  renders itself through rich (__rich__) and rebuilds through copy.replace().
- Taxonomy
  • ConfigError: load time, fatal to one CommandSpec (it is not registered).
  • ParseError: one grammar attempt did not match; consumed by the dispatcher,
    which moves on to the next variant.
  • HelpRequested: not an error, the reserved -h/--help switch was seen.
  • HandlerError: a variant matched but its handler could not be built or raised.

Integration
- The grammar compiler raises ConfigError subclasses; Grammar.parse raises ParseError
  subclasses or HelpRequested; the dispatcher wraps handler failures in HandlerError.
- Hosts can print any fault with a rich console; __main__.__styles__ overrides the
  palette and __main__.__codes__ remaps code labels.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - configuration (211xx): raised while compiling a command spec
    - parsing (221xx): raised while matching one grammar against input
    - dispatch (231xx): raised after a variant matched
    """
    # --- configuration errors (211xx) ---
    UNSUPPORTED_TYPE      = 21101
    MISSING_OPTION_NAME   = 21102
    COLLIDING_NAME        = 21103
    FLAG_TYPE             = 21104
    INVALID_DEFAULT       = 21105
    MISPLACED_OPTIONAL    = 21106

    # --- parse errors (221xx) ---
    UNKNOWN_SWITCH        = 22101
    FLAG_ASSIGNMENT       = 22102
    MISSING_VALUE         = 22103
    UNCASTABLE_VALUE      = 22104
    UNEXPECTED_POSITIONAL = 22105
    MISSING_POSITIONAL    = 22106

    # --- dispatch errors (231xx) ---
    HANDLER_FAILURE       = 23101

    def normalize(self):
        """
        return the host label for this code (__main__.__codes__), or the number.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandFault(Exception):
    code = Unset
    title = "command fault"
    hint = ""

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = self.options.get("prog") or getattr(main, "__prog__", "commandeer")
        code = self.code.normalize() if self.code else "-"

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code, "code"),
            " | ",
            text(self.title, "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        renders = [message]
        if hint := self.options.get("hint", self.hint):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigError(CommandFault):
    title = "invalid command declaration"


class UnsupportedTypeError(ConfigError):
    code = FaultCode.UNSUPPORTED_TYPE
    title = "unsupported type"
    hint = "declare bool, int, long or str (or a ValueType member)"


class MissingOptionNameError(ConfigError):
    code = FaultCode.MISSING_OPTION_NAME
    title = "missing option name"
    hint = "give the option a long name, a short name, or both"


class CollidingNameError(ConfigError):
    code = FaultCode.COLLIDING_NAME
    title = "colliding name"
    hint = "every switch, parameter name and alias must be unique (-h/--help are reserved)"


class FlagTypeError(ConfigError):
    code = FaultCode.FLAG_TYPE
    title = "flag type mismatch"
    hint = "flags are boolean: drop the explicit flag setting or declare the type as bool"


class InvalidDefaultError(ConfigError):
    code = FaultCode.INVALID_DEFAULT
    title = "invalid default"


class MisplacedOptionalError(ConfigError):
    code = FaultCode.MISPLACED_OPTIONAL
    title = "misplaced optional parameter"
    hint = "only the final positional parameter may be optional"


class ParseError(CommandFault):
    title = "invalid command syntax"


class UnknownSwitchError(ParseError):
    code = FaultCode.UNKNOWN_SWITCH
    title = "unknown option"


class FlagAssignmentError(ParseError):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag cannot take a value"


class MissingValueError(ParseError):
    code = FaultCode.MISSING_VALUE
    title = "option value required"


class UncastableValueError(ParseError):
    code = FaultCode.UNCASTABLE_VALUE
    title = "invalid value"


class UnexpectedPositionalError(ParseError):
    code = FaultCode.UNEXPECTED_POSITIONAL
    title = "unexpected argument"


class MissingPositionalError(ParseError):
    code = FaultCode.MISSING_POSITIONAL
    title = "missing argument"


class HandlerError(CommandFault):
    code = FaultCode.HANDLER_FAILURE
    title = "command handler failed"
    hint = "check the logs for the handler traceback"


class HelpRequested(Exception):
    """
    raised by Grammar.parse when -h/--help is present; carries the grammar to render.
    """

    def __init__(self, grammar, /):
        super().__init__(grammar.prog)
        self.grammar = grammar


__all__ = (
    "FaultCode",
    "CommandFault",
    "ConfigError",
    "UnsupportedTypeError",
    "MissingOptionNameError",
    "CollidingNameError",
    "FlagTypeError",
    "InvalidDefaultError",
    "MisplacedOptionalError",
    "ParseError",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "MissingValueError",
    "UncastableValueError",
    "UnexpectedPositionalError",
    "MissingPositionalError",
    "HandlerError",
    "HelpRequested",
)
