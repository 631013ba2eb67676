"""
Argotree faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
  Codes are grouped by domain to keep logs/searches predictable.
- CommandException: base type that carries a message + options (title, code, hint
  and context) and knows how to render itself.
- ValidationError / DispatchError: the two fault kinds of the engine. The first is
  raised while resolving option values, the second while routing through groups.
- trigger(): central entry point to surface a fault (raise, or print and exit in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The engine raises faults directly; nothing is collected or retried.
- invoke(..., shell=True) catches a fault at the top and calls trigger(fault, ...),
  which prints it to stderr through rich and exits with status 1.
"""
import copy
import sys
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True, highlight=False)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - routing (111xx)
      • UNKNOWN_COMMAND, COMMAND_REQUIRED
    - options (112xx)
      • UNKNOWN_OPTION, TYPE_COERCION, MULTIPLE_VALUES, INVALID_VALUE, REQUIRED_OPTION

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- routing errors (111xx) ---
    UNKNOWN_COMMAND             = 11101
    COMMAND_REQUIRED            = 11102

    # --- option errors (112xx) ---
    UNKNOWN_OPTION              = 11201
    TYPE_COERCION               = 11202
    MULTIPLE_VALUES             = 11203
    INVALID_VALUE               = 11204
    REQUIRED_OPTION             = 11205

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base of every fault raised by the engine.

    - message: the one-sentence, lowercased description (also str(fault)).
    - options: read-only mapping with 'title', 'code', 'hint' and any context
      (e.g., 'key', 'value', 'input', 'suggestions'); runtime flags ('tool',
      'shell', 'fancy') are merged in by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        main = sys.modules.get("__main__")

        tool = self.options.get("tool")
        prog = getattr(main, "__prog__", getattr(tool, "name", None) or "argotree")
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            str(prog),
            " — ",
            code.normalize() if isinstance(code, FaultCode) else "error",
            " | ",
            str(self.options.get("title") or type(self).__name__).title(),
            " ]"
        )
        message = Text(str(self.message or ""))
        hint = Text(" → " + self.options["hint"]) if self.options.get("hint") else Text("")

        if self.options.get("fancy"):
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        replica = type(self)(self.message, **{**self.options, **overrides})
        replica.__cause__ = self.__cause__
        replica.__traceback__ = self.__traceback__
        return replica


class ValidationError(CommandException):
    """
    option values could not be resolved (unknown key, bad type, repeats,
    rejected by a predicate, or a required option is missing).
    """


class UnknownOptionError(ValidationError): ...
class TypeCoercionError(ValidationError): ...
class MultipleValuesError(ValidationError): ...
class InvalidValueError(ValidationError): ...
class RequiredOptionMissingError(ValidationError): ...


class DispatchError(CommandException):
    """
    a group could not route the command line to one of its children.
    """


class UnknownCommandError(DispatchError): ...
class CommandRequiredError(DispatchError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode the fault is printed to stderr and the process exits; otherwise it is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings. when
    not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(sys.modules.get("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "ValidationError",
    "UnknownOptionError",
    "TypeCoercionError",
    "MultipleValuesError",
    "InvalidValueError",
    "RequiredOptionMissingError",
    "DispatchError",
    "UnknownCommandError",
    "CommandRequiredError",
    "FaultCode",
    "trigger",
    "getdoc",
)
