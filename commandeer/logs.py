"""
Logging setup for hosts that want commandeer's records on a terminal.

The library itself only logs through logging.getLogger(__name__) loggers below
"commandeer" (with a NullHandler installed by the package); configure() attaches a
rich handler to that namespace.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from .utils import Unset, coalesce

NAMESPACE = "commandeer"


def configure(level="INFO", /, *, console=Unset, colorful=False):
    """
    Install one RichHandler on the "commandeer" logger and set its level.

    Calling it again replaces the previously installed handler. Returns the handler.
    """
    if not isinstance(console, Console | Unset):
        raise TypeError("configure() 'console' must be a rich Console")

    logger = logging.getLogger(NAMESPACE)
    for handler in list(logger.handlers):
        if getattr(handler, "__commandeer__", False):
            logger.removeHandler(handler)

    console = coalesce(console) or Console(stderr=True, no_color=not colorful, highlight=colorful)
    handler = RichHandler(
        console=console,
        show_path=False,
        markup=False,
        rich_tracebacks=colorful,
    )
    handler.__commandeer__ = True
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


__all__ = ("configure",)
