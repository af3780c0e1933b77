"""
Commandeer dispatcher: route a command token and its arguments to a handler.

What this module provides
- Dispatcher: compiles CommandSpecs into grammars once, groups them by token
  (overloads) and dispatches invocations.
- CommandGroup: every grammar sharing one token, in registration order, plus the
  union of their aliases. Groups are immutable; registering yields a new group.
- Outcome / DispatchResult: what happened, as data (dispatch never raises for user
  input).

Dispatch walk (one token, one group)
- HelpRequested  → send the variant's help to the context, remember it, continue.
- ParseError     → record the fault, continue with the next variant.
- match          → bind, invoke, return HANDLED (or HANDLER_ERROR); never falls through.
- exhausted      → HELP when some variant printed help, UNMATCHED otherwise.

Quick start
    from commandeer import CommandSpec, Dispatcher, ConsoleContext, Option, Positional

    def teleport(context, target, world):
        context.send_message(f"{target} → {world}")

    dispatcher = Dispatcher([
        CommandSpec("tp", [Positional("target"), Positional("world", optional=True, default="overworld")], teleport),
    ])
    dispatcher.execute("/tp steve", ConsoleContext())
"""
import logging
from collections import namedtuple
from enum import Enum

from .binder import bind
from .commands import CommandSpec
from .faults import *
from .grammar import compile
from .handlers import HandlerCache
from .utils import *

logger = logging.getLogger(__name__)


class Outcome(Enum):
    HANDLED = "handled"
    HELP = "help"
    UNMATCHED = "unmatched"
    HANDLER_ERROR = "handler-error"
    NO_SUCH_COMMAND = "no-such-command"


class DispatchResult(namedtuple("DispatchResult", (
    "outcome",
    "token",
    "command",
    "value",
    "error",
    "faults",
    "help_shown",
), defaults=(None, None, None, (), False))):
    """
    Result of one dispatch.

    - command: the CommandSpec that matched (None unless a handler ran or failed).
    - value: the handler's return value.
    - error: HandlerError for HANDLER_ERROR, else None.
    - faults: ParseErrors of the variants that did not match, in group order.
    """

    __slots__ = ()

    @property
    def handled(self):
        """
        True when the host should not print "unknown command syntax".
        """
        return self.outcome in (Outcome.HANDLED, Outcome.HELP)


class CommandGroup:
    """
    Ordered overloads of one command token.
    """

    __introspectable__ = (
        "token",
        "grammars",
        "aliases",
    )

    token = mirror("token")
    grammars = mirror("grammars")
    aliases = mirror("aliases")

    def __init__(self, token, /, grammars=(), aliases=()):
        self._token = token
        self._grammars = tuple(grammars)
        self._aliases = frozenset(aliases)

    def extend(self, grammar, /):
        """
        return a new group with grammar appended (lowest priority) and its aliases merged.
        """
        return type(self)(
            self._token,
            self._grammars + (grammar,),
            self._aliases | grammar.command.aliases,
        )

    @property
    def commands(self):
        return tuple(grammar.command for grammar in self._grammars)

    def __iter__(self):
        return iter(self._grammars)

    def __len__(self):
        return len(self._grammars)

    def __repr__(self):
        return "command-group(%r, variants=%d, aliases=%r)" % (
            self._token, len(self._grammars), sorted(self._aliases)
        )


class Dispatcher:
    """
    Compiled command table plus the dispatch loop.

    Parameters
    - commands: iterable of CommandSpec, registered in order (order is overload priority).
    - handlers: HandlerCache used for methods declared on a class (a fresh one by default).
    - prefix: str prepended to tokens in usage lines and stripped by execute() ("/").
    - colorful, fancy: help rendering switches (styles, panel chrome).
    - strict: re-raise ConfigError during construction instead of logging and skipping.
    """

    def __init__(
            self,
            commands=(),
            /,
            *,
            handlers=Unset,
            prefix="/",
            colorful=False,
            fancy=False,
            strict=False
    ):
        if not isinstance(handlers, HandlerCache | Unset):
            raise TypeError("Dispatcher() 'handlers' must be a HandlerCache")
        if not isinstance(prefix, str):
            raise TypeError("Dispatcher() 'prefix' must be a string")

        self._handlers = HandlerCache() if handlers is Unset else handlers
        self._prefix = prefix
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._groups = {}
        self._aliases = {}
        self._rejected = []

        for spec in commands:
            try:
                self.register(spec)
            except ConfigError as fault:
                if strict:
                    raise
                self._rejected.append((spec, fault))

    @property
    def handlers(self):
        return self._handlers

    @property
    def prefix(self):
        return self._prefix

    @property
    def groups(self):
        return freeze(self._groups)

    @property
    def rejected(self):
        """
        (spec, ConfigError) pairs skipped during construction.
        """
        return tuple(self._rejected)

    def _check_names(self, spec, /):
        for name in (spec.token, *sorted(spec.aliases)):
            owner = self._aliases.get(name, name if name in self._groups else None)
            if owner is not None and owner != spec.token:
                raise CollidingNameError(
                    "name %r of command %r is already taken by command %r" % (name, spec.token, owner),
                    command=spec.token,
                    prog=self._prefix + spec.token,
                )

    def register(self, spec, /):
        """
        Compile spec and append it to its token's group.

        Returns the compiled Grammar. Raises ConfigError (logged at ERROR) when the
        spec does not compile or one of its names is taken by another command.
        """
        if not isinstance(spec, CommandSpec):
            raise TypeError("Dispatcher.register() argument must be a CommandSpec")
        try:
            self._check_names(spec)
            grammar = compile(spec, prefix=self._prefix)
        except ConfigError as fault:
            logger.error("rejected command %r from %s: %s", spec.token, spec.unit, fault.message)
            raise

        group = self._groups.get(spec.token) or CommandGroup(spec.token)
        self._groups[spec.token] = group.extend(grammar)
        for alias in spec.aliases:
            self._aliases[alias] = spec.token
        logger.info("registered command: %s", spec.token)
        return grammar

    def resolve(self, token, /):
        """
        return the CommandGroup for a token or alias, or None.
        """
        if not isinstance(token, str):
            raise TypeError("Dispatcher.resolve() argument must be a string")
        return self._groups.get(self._aliases.get(token, token))

    def _invoke(self, grammar, namespace, context, /):
        spec = grammar.command
        arguments = bind(spec, namespace, context)
        if spec.owner is not None:
            return spec.handler(self._handlers.resolve(spec.owner), *arguments)
        return spec.handler(*arguments)

    def dispatch(self, token, args, context, /):
        """
        Try every variant of token against args, in registration order.

        Returns a DispatchResult; unknown tokens, parse failures and handler
        failures are all reported through it rather than raised.
        """
        if isinstance(args, str):
            raise TypeError("Dispatcher.dispatch() 'args' must be a sequence of strings, not a string")
        args = tuple(args)

        if (group := self.resolve(token)) is None:
            logger.debug("no such command: %s", token)
            return DispatchResult(Outcome.NO_SUCH_COMMAND, token)

        faults = []
        help_shown = False
        for grammar in group:
            try:
                namespace = grammar.parse(args)
            except HelpRequested:
                logger.debug("help requested for %s", grammar.prog)
                context.send_message(grammar.render_help(colorful=self._colorful, fancy=self._fancy))
                help_shown = True
                continue
            except ParseError as fault:
                logger.debug("variant %s rejected: %s", grammar.usage, fault.message)
                faults.append(fault)
                continue

            spec = grammar.command
            try:
                value = self._invoke(grammar, namespace, context)
            except Exception as exception:
                error = HandlerError(
                    "handler of %r raised %s: %s" % (spec.token, type(exception).__name__, exception),
                    command=spec.token,
                    unit=spec.unit,
                    prog=grammar.prog,
                )
                error.__cause__ = exception
                logger.error("command %r (%s) failed", spec.token, spec.unit, exc_info=exception)
                return DispatchResult(
                    Outcome.HANDLER_ERROR, group.token, spec, None, error, tuple(faults), help_shown
                )
            return DispatchResult(
                Outcome.HANDLED, group.token, spec, value, None, tuple(faults), help_shown
            )

        outcome = Outcome.HELP if help_shown else Outcome.UNMATCHED
        return DispatchResult(outcome, group.token, None, None, None, tuple(faults), help_shown)

    def execute(self, line, context, /):
        """
        Split line on whitespace, strip the prefix from the first word, dispatch the rest.
        """
        if not isinstance(line, str):
            raise TypeError("Dispatcher.execute() 'line' must be a string")
        if not (words := line.split()):
            return DispatchResult(Outcome.NO_SUCH_COMMAND, "")
        token, *args = words
        if self._prefix and token.startswith(self._prefix):
            token = token[len(self._prefix):]
        return self.dispatch(token, args, context)

    def __contains__(self, token):
        return isinstance(token, str) and self.resolve(token) is not None

    def __iter__(self):
        return iter(self._groups.values())

    def __repr__(self):
        return "dispatcher(%s)" % ", ".join(map(repr, self._groups))


__all__ = (
    "Outcome",
    "DispatchResult",
    "CommandGroup",
    "Dispatcher",
)
