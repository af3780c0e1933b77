"""
Invoking contexts: who ran a command and where its replies go.

The dispatcher only relies on send_message(); Context documents that contract and
ConsoleContext is a ready-made implementation over a rich Console, handy for
terminals, REPL front ends and tests.
"""
from abc import ABC, abstractmethod

from rich.console import Console

from .utils import Unset, coalesce


class Context(ABC):
    @property
    @abstractmethod
    def name(self):
        """
        display name of the sender (player, console, bot user...).
        """

    @abstractmethod
    def send_message(self, message, /):
        """
        deliver a reply; message is a string or any rich renderable.
        """


class ConsoleContext(Context):
    def __init__(self, name="console", /, console=Unset):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("ConsoleContext() 'name' must be a non-empty string")
        if not isinstance(console, Console | Unset):
            raise TypeError("ConsoleContext() 'console' must be a rich Console")
        self._name = name.strip()
        self._console = coalesce(console) or Console(highlight=False)

    @property
    def name(self):
        return self._name

    @property
    def console(self):
        return self._console

    def send_message(self, message, /):
        self._console.print(message)

    def __repr__(self):
        return "console-context(%r)" % self._name


__all__ = (
    "Context",
    "ConsoleContext",
)
