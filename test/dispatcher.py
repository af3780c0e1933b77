"""
Dispatcher behavioral tests (registration, overloads, help, failures).

Scope
- Validate registration: grouping by token, aliases, collisions, rejected specs.
- Validate the dispatch walk: declaration-order overloads, help for every variant,
  unmatched input, unknown tokens and handler failures without fallthrough.
- Validate execute() line splitting and prefix stripping.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Dispatcher, CommandSpec, Option, Positional, Outcome).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from rich.panel import Panel

from commandeer import (
    CommandSpec,
    Context,
    DispatchResult,
    Dispatcher,
    HandlerCache,
    Option,
    Outcome,
    Positional,
)
from commandeer.faults import (
    CollidingNameError,
    FlagTypeError,
    HandlerError,
    MissingPositionalError,
)


class Recorder(Context):
    def __init__(self, name="tester"):
        self._name = name
        self.messages = []

    @property
    def name(self):
        return self._name

    def send_message(self, message, /):
        self.messages.append(message)


class Greeter:
    instances = 0

    def __init__(self):
        type(self).instances += 1
        self.greeted = []

    def greet(self, context, target, loud):
        self.greeted.append(target)
        return ("HELLO %s" if loud else "hello %s") % target


class Broken:
    def __init__(self):
        raise RuntimeError("no database")

    def run(self, context):
        pass


class TestRegistration(TestCase):
    """Behavioral tests for Dispatcher construction and register()."""

    def testGroupsKeepRegistrationOrder(self):
        first = CommandSpec("give", [Positional("item"), Positional("amount", type=int)], lambda *a: 1)
        second = CommandSpec("give", [Positional("item")], lambda *a: 2)
        dispatcher = Dispatcher([first, second])
        self.assertEqual(dispatcher.resolve("give").commands, (first, second))
        self.assertEqual(list(dispatcher.groups), ["give"])

    def testRegisterReturnsGrammar(self):
        dispatcher = Dispatcher()
        grammar = dispatcher.register(CommandSpec("spawn", (), lambda context: None))
        self.assertEqual(grammar.prog, "/spawn")
        self.assertIn("spawn", dispatcher)

    def testRegisterLogsCommand(self):
        dispatcher = Dispatcher()
        with self.assertLogs("commandeer", level="INFO") as logs:
            dispatcher.register(CommandSpec("spawn", (), lambda context: None))
        self.assertTrue(any("registered command: spawn" in line for line in logs.output))

    def testAliasesResolveToGroup(self):
        dispatcher = Dispatcher([CommandSpec("teleport", (), lambda context: None, aliases=["tp"])])
        self.assertIs(dispatcher.resolve("tp"), dispatcher.resolve("teleport"))
        self.assertEqual(dispatcher.resolve("tp").aliases, frozenset({"tp"}))
        self.assertIsNone(dispatcher.resolve("warp"))

    def testAliasCollisionRejected(self):
        dispatcher = Dispatcher([CommandSpec("home", (), lambda context: None)])
        with self.assertRaises(CollidingNameError):
            dispatcher.register(CommandSpec("house", (), lambda context: None, aliases=["home"]))
        dispatcher.register(CommandSpec("house", (), lambda context: None, aliases=["h"]))
        with self.assertRaises(CollidingNameError):
            dispatcher.register(CommandSpec("h", (), lambda context: None))

    def testSameTokenMayShareAliases(self):
        dispatcher = Dispatcher([
            CommandSpec("teleport", [Positional("target")], lambda *a: None, aliases=["tp"]),
            CommandSpec("teleport", (), lambda *a: None, aliases=["tp", "tele"]),
        ])
        self.assertEqual(dispatcher.resolve("tele").aliases, frozenset({"tp", "tele"}))

    def testConfigErrorsRecordedAndLogged(self):
        bad = CommandSpec("count", [Option("n", type=int, flag=True)], lambda *a: None)
        good = CommandSpec("spawn", (), lambda context: None)
        with self.assertLogs("commandeer", level="ERROR"):
            dispatcher = Dispatcher([bad, good])
        self.assertEqual(len(dispatcher.rejected), 1)
        spec, fault = dispatcher.rejected[0]
        self.assertIs(spec, bad)
        self.assertIsInstance(fault, FlagTypeError)
        self.assertNotIn("count", dispatcher)
        self.assertIn("spawn", dispatcher)

    def testStrictReraises(self):
        bad = CommandSpec("count", [Option("n", type=int, flag=True)], lambda *a: None)
        with self.assertLogs("commandeer", level="ERROR"):
            with self.assertRaises(FlagTypeError):
                Dispatcher([bad], strict=True)

    def testRegisterRejectsNonSpec(self):
        with self.assertRaises(TypeError):
            Dispatcher().register("spawn")


class TestDispatch(TestCase):
    """Behavioral tests for Dispatcher.dispatch() and execute()."""

    def setUp(self):
        self.calls = []
        self.context = Recorder()

        def give_amount(context, item, amount):
            self.calls.append(("amount", item, amount))
            return amount

        def give_one(context, item):
            self.calls.append(("one", item))
            return 1

        self.dispatcher = Dispatcher([
            CommandSpec("give", [Positional("item"), Positional("amount", type=int)], give_amount),
            CommandSpec("give", [Positional("item")], give_one, aliases=["g"]),
        ])

    def testFirstMatchingVariantWins(self):
        result = self.dispatcher.dispatch("give", ["apple", "3"], self.context)
        self.assertIs(result.outcome, Outcome.HANDLED)
        self.assertTrue(result.handled)
        self.assertEqual(result.value, 3)
        self.assertEqual(self.calls, [("amount", "apple", 3)])
        self.assertEqual(result.faults, ())

    def testFallsThroughParseErrors(self):
        result = self.dispatcher.dispatch("give", ["apple"], self.context)
        self.assertIs(result.outcome, Outcome.HANDLED)
        self.assertEqual(self.calls, [("one", "apple")])
        self.assertEqual(len(result.faults), 1)
        self.assertIsInstance(result.faults[0], MissingPositionalError)
        self.assertIs(result.command, self.dispatcher.resolve("give").commands[1])

    def testDeclarationOrderDecidesAmbiguity(self):
        dispatcher = Dispatcher([
            CommandSpec("say", [Positional("text")], lambda context, text: "first"),
            CommandSpec("say", [Positional("text")], lambda context, text: "second"),
        ])
        self.assertEqual(dispatcher.dispatch("say", ["hi"], self.context).value, "first")

    def testHelpShownForEveryVariant(self):
        result = self.dispatcher.dispatch("give", ["-h"], self.context)
        self.assertIs(result.outcome, Outcome.HELP)
        self.assertTrue(result.handled)
        self.assertTrue(result.help_shown)
        self.assertIsNone(result.command)
        self.assertEqual(len(self.context.messages), 2)
        self.assertEqual(self.calls, [])

    def testFancyHelp(self):
        dispatcher = Dispatcher([CommandSpec("spawn", (), lambda context: None)], fancy=True)
        dispatcher.dispatch("spawn", ["--help"], self.context)
        self.assertIsInstance(self.context.messages[0], Panel)

    def testUnmatched(self):
        result = self.dispatcher.dispatch("give", ["apple", "3", "extra"], self.context)
        self.assertIs(result.outcome, Outcome.UNMATCHED)
        self.assertFalse(result.handled)
        self.assertEqual(len(result.faults), 2)
        self.assertEqual(self.calls, [])
        self.assertEqual(self.context.messages, [])

    def testNoSuchCommand(self):
        result = self.dispatcher.dispatch("warp", ["home"], self.context)
        self.assertIs(result.outcome, Outcome.NO_SUCH_COMMAND)
        self.assertFalse(result.handled)
        self.assertEqual(result.token, "warp")
        self.assertIsNone(result.command)

    def testAliasDispatch(self):
        result = self.dispatcher.dispatch("g", ["apple"], self.context)
        self.assertIs(result.outcome, Outcome.HANDLED)
        self.assertEqual(result.token, "give")

    def testHandlerErrorDoesNotFallThrough(self):
        calls = []

        def explode(context, text):
            raise ValueError("boom")

        dispatcher = Dispatcher([
            CommandSpec("say", [Positional("text")], explode),
            CommandSpec("say", [Positional("text")], lambda context, text: calls.append(text)),
        ])
        with self.assertLogs("commandeer", level="ERROR") as logs:
            result = dispatcher.dispatch("say", ["hi"], self.context)

        self.assertIs(result.outcome, Outcome.HANDLER_ERROR)
        self.assertFalse(result.handled)
        self.assertIsInstance(result.error, HandlerError)
        self.assertIsInstance(result.error.__cause__, ValueError)
        self.assertEqual(result.error.options["command"], "say")
        self.assertEqual(result.error.options["unit"], result.command.unit)
        self.assertEqual(calls, [])
        self.assertTrue(any("Traceback" in line for line in logs.output))

    def testFlagsReachHandler(self):
        dispatcher = Dispatcher([
            CommandSpec("greet", [Positional("target"), Option("loud", "l", type=bool)], Greeter.greet, owner=Greeter)
        ])
        quiet = dispatcher.dispatch("greet", ["steve"], self.context)
        loud = dispatcher.dispatch("greet", ["-l", "alex"], self.context)
        self.assertEqual((quiet.value, loud.value), ("hello steve", "HELLO alex"))

    def testOwnerInstanceCached(self):
        handlers = HandlerCache()
        dispatcher = Dispatcher([
            CommandSpec("greet", [Positional("target"), Option("loud", "l", type=bool)], Greeter.greet, owner=Greeter)
        ], handlers=handlers)
        before = Greeter.instances
        dispatcher.dispatch("greet", ["steve"], self.context)
        dispatcher.dispatch("greet", ["alex"], self.context)
        self.assertEqual(Greeter.instances - before, 1)
        self.assertEqual(handlers.resolve(Greeter).greeted, ["steve", "alex"])
        self.assertIs(dispatcher.handlers, handlers)

    def testInjectedFactoryUsed(self):
        built = []

        def factory(owner):
            built.append(owner)
            return owner()

        handlers = HandlerCache(factory)
        spec = CommandSpec("greet", [Positional("target"), Option("loud", "l", type=bool)], Greeter.greet, owner=Greeter)
        first = Dispatcher([spec], handlers=handlers)
        second = Dispatcher([spec], handlers=handlers)
        first.dispatch("greet", ["steve"], self.context)
        result = second.dispatch("greet", ["alex"], self.context)
        self.assertIs(result.outcome, Outcome.HANDLED)
        self.assertEqual(built, [Greeter])
        self.assertEqual(handlers.resolve(Greeter).greeted, ["steve", "alex"])

    def testOwnerConstructionFailure(self):
        dispatcher = Dispatcher([CommandSpec("run", (), Broken.run, owner=Broken)])
        with self.assertLogs("commandeer", level="ERROR"):
            result = dispatcher.dispatch("run", [], self.context)
        self.assertIs(result.outcome, Outcome.HANDLER_ERROR)
        self.assertIsInstance(result.error.__cause__, RuntimeError)
        self.assertNotIn(Broken, dispatcher.handlers)

    def testExecuteSplitsLine(self):
        result = self.dispatcher.execute("/give  apple   2", self.context)
        self.assertEqual(result.value, 2)
        result = self.dispatcher.execute("give apple", self.context)
        self.assertEqual(result.value, 1)

    def testExecuteBlankLine(self):
        result = self.dispatcher.execute("   ", self.context)
        self.assertIs(result.outcome, Outcome.NO_SUCH_COMMAND)

    def testStringArgsRejected(self):
        with self.assertRaises(TypeError):
            self.dispatcher.dispatch("give", "apple", self.context)

    def testResultDefaults(self):
        result = DispatchResult(Outcome.UNMATCHED, "give")
        self.assertEqual(result.faults, ())
        self.assertFalse(result.help_shown)
        self.assertFalse(result.handled)


if __name__ == "__main__":
    unittest.main()
