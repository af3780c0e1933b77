"""
Logging setup tests.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import logging
import unittest
from unittest import TestCase

from rich.console import Console
from rich.logging import RichHandler

from commandeer import CommandSpec, Dispatcher
from commandeer.logs import configure


class TestConfigure(TestCase):
    def setUp(self):
        self.logger = logging.getLogger("commandeer")
        self.level = self.logger.level
        self.console = Console(file=io.StringIO(), width=200, color_system=None)

    def tearDown(self):
        for handler in list(self.logger.handlers):
            if isinstance(handler, RichHandler):
                self.logger.removeHandler(handler)
        self.logger.setLevel(self.level)

    def richHandlers(self):
        return [handler for handler in self.logger.handlers if isinstance(handler, RichHandler)]

    def testInstallsOneHandler(self):
        handler = configure(console=self.console)
        self.assertEqual(self.richHandlers(), [handler])
        self.assertEqual(self.logger.level, logging.INFO)

    def testReconfigureReplaces(self):
        configure(console=self.console)
        handler = configure("DEBUG", console=self.console)
        self.assertEqual(self.richHandlers(), [handler])
        self.assertEqual(self.logger.level, logging.DEBUG)

    def testRegistrationReachesConsole(self):
        configure(console=self.console)
        Dispatcher([CommandSpec("spawn", (), lambda context: None)])
        self.assertIn("registered command: spawn", self.console.file.getvalue())

    def testConsoleValidated(self):
        with self.assertRaises(TypeError):
            configure(console=io.StringIO())


if __name__ == "__main__":
    unittest.main()
