"""
Commandeer grammars: compile command specs into matchers, parse tokens, render help.

What this module provides
- compile(spec, prefix="/"): the grammar compiler. Validates one CommandSpec and
  produces an immutable Grammar, or raises a ConfigError subclass naming the command
  and the offending parameter.
- Grammar: the compiled artifact bound 1:1 to its spec.
  • parse(tokens)  → read-only mapping of dest → typed value, or a ParseError /
                     HelpRequested.
  • usage          → plain usage line ("usage: /tp [-h] [-s SPEED] target [world]").
  • format_help()  → plain help text.
  • render_help()  → rich renderable (colorful/fancy aware), sent to the invoking
                     context by the dispatcher.

Surface (one grammar)
- "--name" / "-c" select declared options; value options take the next token, or
  an inline "--name=value". Flags never take a value.
- "-h" / "--help" are reserved; anywhere in the input they request help.
- Bare tokens fill positionals left to right; tokens such as "-5" are values.
- Repeating an option keeps the last value.

The compiler is pure: it keeps no counters or registries, so compiling the same spec
twice yields grammars that parse every input identically.
"""
import io
import re
from collections import defaultdict, deque, namedtuple
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .faults import *
from .parameters import Option, Positional
from .utils import *
from .values import ValueType

HELP_SWITCHES = ("-h", "--help")

_SWITCH = re.compile(r"--[^\W\d_][^\W_]*(?:-[^\W_]+)*|-[^\W\d_][^\W_]*")

_WIDTH = 80

Matcher = namedtuple("Matcher", (
    "dest",
    "names",
    "type",
    "flag",
    "optional",
    "default",
    "descr",
    "metavar",
))
Matcher.__doc__ = """
compiled form of one parameter.

- options: names holds the accepted switches (short first); optional is always True.
- positionals: names is empty; optional marks the zero-or-one final positional.
- default is the raw declared text (coerced when used), None when undeclared.
"""


def _looks_like_switch(token, /):
    return bool(_SWITCH.fullmatch(token.split("=", 1)[0]))


def _compile_option(spec, index, parameter, type, /):
    """
    Internal: validate one Option and build its matcher.
    """
    if not parameter.names:
        raise MissingOptionNameError(
            "option #%d of command %r has neither a long nor a short name" % (index, spec.token),
            command=spec.token,
            parameter=parameter,
        )

    flag = coalesce(parameter.flag, type.boolean)
    if flag != type.boolean:
        raise FlagTypeError(
            "option %r of command %r is %s but its type is %s" % (
                parameter.dest, spec.token, "a flag" if flag else "not a flag", type.value
            ),
            command=spec.token,
            parameter=parameter,
        )

    return Matcher(
        dest=parameter.dest,
        names=parameter.names,
        type=type,
        flag=flag,
        optional=True,
        default=None if flag else parameter.default,
        descr=parameter.descr,
        metavar=None if flag else re.sub(r"\W", "_", parameter.dest).upper(),
    )


def _compile_positional(spec, parameter, type, /):
    return Matcher(
        dest=parameter.dest,
        names=(),
        type=type,
        flag=False,
        optional=parameter.optional,
        default=parameter.default,
        descr=parameter.descr,
        metavar=parameter.name,
    )


def compile(spec, /, *, prefix="/"):
    """
    Compile a CommandSpec into a Grammar.

    Checks (each raises the ConfigError subclass in brackets)
    - every parameter type resolves to a ValueType            [UnsupportedTypeError]
    - every option has a long or a short name                  [MissingOptionNameError]
    - flags are boolean and boolean options are flags          [FlagTypeError]
    - switches and dests are unique, -h/--help stay reserved   [CollidingNameError]
    - declared defaults coerce under their type                [InvalidDefaultError]
    - only the final positional is optional                    [MisplacedOptionalError]

    Parameters
    - spec: CommandSpec
    - prefix: str (keyword-only), prepended to the token in usage ("/tp").
    """
    if not isinstance(prefix, str):
        raise TypeError("compile() 'prefix' must be a string")

    switches = {}
    dests = {"help": None}
    options = []
    positionals = []

    for index, parameter in enumerate(spec.parameters, start=1):
        if not isinstance(parameter, Option | Positional):
            raise UnsupportedTypeError(
                "parameter #%d of command %r is neither an option nor a positional" % (index, spec.token),
                command=spec.token,
                parameter=parameter,
            )

        declared = parameter.type
        if declared is Unset:
            declared = ValueType.BOOL if getattr(parameter, "flag", False) is True else ValueType.TEXT
        if (type := ValueType.resolve(declared)) is Unset:
            raise UnsupportedTypeError(
                "parameter #%d of command %r has unsupported type %r" % (index, spec.token, declared),
                command=spec.token,
                parameter=parameter,
            )

        if isinstance(parameter, Option):
            matcher = _compile_option(spec, index, parameter, type)
            for name in matcher.names:
                if name in HELP_SWITCHES or name in switches:
                    raise CollidingNameError(
                        "switch %r of command %r is %s" % (
                            name, spec.token, "reserved" if name in HELP_SWITCHES else "declared twice"
                        ),
                        command=spec.token,
                        parameter=parameter,
                    )
                switches[name] = matcher
            options.append(matcher)
        else:
            matcher = _compile_positional(spec, parameter, type)
            if positionals and positionals[-1].optional:
                raise MisplacedOptionalError(
                    "optional positional %r of command %r is followed by %r" % (
                        positionals[-1].dest, spec.token, matcher.dest
                    ),
                    command=spec.token,
                    parameter=parameter,
                )
            positionals.append(matcher)

        if matcher.dest in dests:
            raise CollidingNameError(
                "parameter name %r of command %r is %s" % (
                    matcher.dest, spec.token, "reserved" if matcher.dest == "help" else "declared twice"
                ),
                command=spec.token,
                parameter=parameter,
            )
        dests[matcher.dest] = matcher

        if matcher.default is not None:
            try:
                type.parse(matcher.default)
            except ValueError as exception:
                raise InvalidDefaultError(
                    "default of %r in command %r: %s" % (matcher.dest, spec.token, exception),
                    command=spec.token,
                    parameter=parameter,
                    hint="use a default that parses as %s" % type.value,
                ) from exception

    return Grammar(spec, prefix + spec.token, switches, options, positionals)


class Grammar:
    """
    Immutable, compiled argument grammar for one CommandSpec.

    Built by compile(); never mutated afterwards, so one instance is shared by
    every concurrent dispatch.
    """

    __introspectable__ = (
        "command",
        "prog",
        "switches",
        "options",
        "positionals",
    )

    command = mirror("command")
    prog = mirror("prog")
    switches = mirror("switches")
    options = mirror("options")
    positionals = mirror("positionals")

    def __init__(self, command, prog, switches, options, positionals, /):
        self._command = command
        self._prog = prog
        self._switches = dict(switches)
        self._options = tuple(options)
        self._positionals = tuple(positionals)

    def __repr__(self):
        return "grammar(%r)" % self.usage

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def _coerce(self, matcher, token, /):
        try:
            return matcher.type.parse(token)
        except ValueError as exception:
            raise UncastableValueError(
                "invalid %s value %r for %s: %s" % (
                    matcher.type.value,
                    token,
                    " / ".join(matcher.names) or matcher.dest,
                    exception,
                ),
                prog=self.prog,
                token=token,
                dest=matcher.dest,
            ) from exception

    def _default(self, matcher, /):
        if matcher.flag:
            return False
        if matcher.default is None:
            return None
        return self._coerce(matcher, matcher.default)

    def parse(self, tokens, /):
        """
        Match tokens against this grammar.

        Returns
        - MappingProxyType: dest → typed value for every declared parameter
          (absent options and an absent optional positional hold their default or None,
          absent flags hold False).

        Raises
        - HelpRequested: -h/--help is present (checked before anything else).
        - ParseError subclasses: unknown switch, flag given a value, missing option
          value, uncastable value, extra or missing positionals.
        """
        if isinstance(tokens, str):
            raise TypeError("parse() argument must be a sequence of tokens, not a string")
        tokens = list(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() tokens must be strings")

        if any(token in HELP_SWITCHES for token in tokens):
            raise HelpRequested(self)

        namespace = {}
        pending = deque(self._positionals)
        queue = deque(tokens)
        position = 0

        while queue:
            token = queue.popleft()
            position += 1

            name, separator, inline = token.partition("=")
            if separator and name in self._switches:
                matcher = self._switches[name]
                if matcher.flag:
                    raise FlagAssignmentError(
                        "flag %r at position %d cannot take a value" % (name, position),
                        prog=self.prog,
                        token=token,
                        hint="remove everything from '=' (for example: %s)" % name,
                    )
                namespace[matcher.dest] = self._coerce(matcher, inline)
                continue

            if (matcher := self._switches.get(token)) is not None:
                if matcher.flag:
                    namespace[matcher.dest] = True
                    continue
                if not queue or queue[0] in self._switches or _looks_like_switch(queue[0]):
                    raise MissingValueError(
                        "option %r at position %d requires a value" % (token, position),
                        prog=self.prog,
                        token=token,
                        hint="pass it after a space (for example: %s %s)" % (token, matcher.metavar),
                    )
                position += 1
                namespace[matcher.dest] = self._coerce(matcher, queue.popleft())
                continue

            if _looks_like_switch(token):
                raise UnknownSwitchError(
                    "unknown option %r at position %d" % (name, position),
                    prog=self.prog,
                    token=token,
                    hint="try '%s --help' to see the accepted options" % self.prog,
                )

            if not pending:
                raise UnexpectedPositionalError(
                    "unexpected argument %r at position %d" % (token, position),
                    prog=self.prog,
                    token=token,
                    hint=self.usage,
                )
            matcher = pending.popleft()
            namespace[matcher.dest] = self._coerce(matcher, token)

        for matcher in pending:
            if not matcher.optional:
                raise MissingPositionalError(
                    "missing required argument %r" % matcher.dest,
                    prog=self.prog,
                    dest=matcher.dest,
                    hint=self.usage,
                )
            namespace[matcher.dest] = self._default(matcher)

        for matcher in self._options:
            if matcher.dest not in namespace:
                namespace[matcher.dest] = self._default(matcher)

        return MappingProxyType(namespace)

    def _usage_items(self):
        """
        yield (fragment, style) pairs for the usage line, in argparse order:
        help, options (declared order), then positionals.
        """
        yield "[%s]" % HELP_SWITCHES[0], "flag-name"
        for matcher in self._options:
            switch = matcher.names[0]
            if matcher.flag:
                yield "[%s]" % switch, "flag-name"
            else:
                yield "[%s %s]" % (switch, matcher.metavar), "option-name"
        for matcher in self._positionals:
            yield ("[%s]" if matcher.optional else "%s") % matcher.metavar, "metavar"

    @property
    def usage(self):
        return "usage: %s %s" % (self.prog, " ".join(item for item, _ in self._usage_items()))

    def _rows(self):
        """
        yield (section, label, description) rows for the argument listing.
        """
        for matcher in self._positionals:
            descr = matcher.descr or ""
            if matcher.optional and matcher.default is not None:
                descr = ("%s (default: %s)" % (descr, matcher.default)).strip()
            yield "positional arguments", matcher.metavar, descr

        yield "named arguments", ", ".join(HELP_SWITCHES), "show this help message and exit"
        for matcher in self._options:
            label = ", ".join(matcher.names)
            if not matcher.flag:
                label = "%s %s" % (label, matcher.metavar)
            descr = matcher.descr or ""
            if matcher.default is not None:
                descr = ("%s (default: %s)" % (descr, matcher.default)).strip()
            yield "named arguments", label, descr

    def render_help(self, /, *, colorful=False, fancy=False, width=_WIDTH):
        """
        Build the help screen as a rich renderable.

        Palette keys
        - usage-label, program-name, flag-name, option-name, metavar
        - description-section, group-label, argument-description, panel-title

        Customization
        - Define __styles__ in __main__ to override any palette entry; styles apply
          only when colorful is True.
        """
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "flag-name": "bold #22C55E",
            "option-name": "bold #00E6FF",
            "metavar": "bold #FFD600",
            "description-section": "italic #A3A3A3",
            "group-label": "bold #FFFFFF",
            "argument-description": "#9CA3AF",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        renders = []

        usage = Text()
        usage.append("usage", styler("usage-label")).append(": ")
        usage.append(self.prog, styler("program-name"))
        offset = len(usage)
        line = len(usage)
        for item, style in self._usage_items():
            if line + 1 + len(item) > width - 4 * fancy and line > offset:
                usage.append("\n" + " " * offset)
                line = offset
            usage.append(" ").append(item, styler(style))
            line += 1 + len(item)
        renders.append(usage)

        if description := self.command.description:
            renders.append(Text("\n").append(description, styler("description-section")))

        rows = list(self._rows())
        column = min(max(len(label) for _, label, _ in rows) + 4, 26)
        current = None
        for section, label, descr in rows:
            if section != current:
                current = section
                renders.append(Text("\n").append(section, styler("group-label")).append(":"))
            row = Text("  ")
            row.append(label, styler("option-name" if label.startswith("-") else "metavar"))
            if descr:
                if len(label) + 2 >= column:
                    row.append("\n" + " " * column)
                else:
                    row.append(" " * (column - len(label) - 2))
                row.append(descr, styler("argument-description"))
            renders.append(row)

        renderable = Group(*renders)
        if fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[ ", self.prog, " HELP ]", style=styler("panel-title")),
                title_align="left",
            )
        return renderable

    def format_help(self, /, *, width=_WIDTH):
        """
        Plain-text help (no colors, no panel), as a single string.
        """
        console = Console(file=io.StringIO(), width=width, color_system=None, highlight=False)
        console.print(self.render_help(width=width), soft_wrap=True)
        return console.file.getvalue().rstrip("\n")


__all__ = (
    "HELP_SWITCHES",
    "Matcher",
    "Grammar",
    "compile",
)
