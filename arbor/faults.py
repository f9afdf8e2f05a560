"""
Arbor faults: the error taxonomy of the command tree and its rendering.

Scope
- FaultCode: stable numeric identifiers for every fault, grouped by domain so
  logs and searches stay predictable. Hosts may relabel them (see normalize()).
- DefinitionError and subclasses: programmer errors raised while a tree is
  being assembled (Command.add, Command.main on a non-root). They are meant to
  abort start-up loudly; tests may catch them.
- CommandException: runtime faults raised by Command.execute. Two kinds only:
  • UsageError: a malformed invocation attributable to one command
    (FlagParseError, UnknownCommandError, UnknownHelpTopicError).
  • ActionError: whatever a command's action raised, prefixed with that
    command's path. The original exception is kept as __cause__.

Classification is structural (isinstance), never by message text. Messages are
final once built: a usage error travels up unchanged so the originating
command can still be found at the top, and an action error is wrapped exactly
once, by the command whose action failed.

Rendering
- CommandException.__rich__ produces the report printed by Command.main:
  • usage errors: message, the originating command's usage line (runnable
    commands only) and a 'Run "<help path>" for details.' hint;
  • action errors: the message followed by a period.
- Palette entries can be overridden with a __styles__ mapping in __main__.
"""
from collections import defaultdict
from enum import IntEnum

from rich.console import Group
from rich.text import Text


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - usage (111xx): USAGE, UNKNOWN_COMMAND, UNKNOWN_HELP_TOPIC, FLAG_PARSE
    - execution (113xx): ACTION_FAILED
    - definition (211xx): INVALID_CHILD, MISSING_NAME, ALREADY_PARENTED,
      CYCLE_DETECTED, DUPLICATE_NAME, ROOT_REQUIRED
    """
    # --- usage errors (111xx) ---
    USAGE                = 11100
    UNKNOWN_COMMAND      = 11101
    UNKNOWN_HELP_TOPIC   = 11102
    FLAG_PARSE           = 11111

    # --- execution errors (113xx) ---
    ACTION_FAILED        = 11301

    # --- definition errors (211xx) ---
    INVALID_CHILD        = 21101
    MISSING_NAME         = 21102
    ALREADY_PARENTED     = 21103
    CYCLE_DETECTED       = 21104
    DUPLICATE_NAME       = 21105
    ROOT_REQUIRED        = 21106

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        replace numeric ids with its own labels; otherwise the number is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styles():
    return defaultdict(str, {
        "error-message": "bold #FF4DA6",  # pinky message
        "usage-label": "bold #00E6FF",  # cyan "usage"
        "usage-section": "#36C5F0",  # sky-blue usage line
        "hint": "italic #9CE19C",  # gentle green hint
    } | getattr(__import__("__main__"), "__styles__", {}))


# --- definition errors ---------------------------------------------------------

class DefinitionError(ValueError):
    """
    A command tree was assembled incorrectly.

    Attributes
    - command: the command being modified when the error was detected.
    """
    code = None

    def __init__(self, command, message, /):
        super().__init__(message)
        self.command = command
        self.message = message


class InvalidChildError(DefinitionError, TypeError):
    code = FaultCode.INVALID_CHILD


class MissingNameError(DefinitionError):
    code = FaultCode.MISSING_NAME


class AlreadyParentedError(DefinitionError):
    code = FaultCode.ALREADY_PARENTED


class CycleDetectedError(DefinitionError):
    code = FaultCode.CYCLE_DETECTED


class DuplicateNameError(DefinitionError):
    code = FaultCode.DUPLICATE_NAME


class RootRequiredError(DefinitionError):
    code = FaultCode.ROOT_REQUIRED


# --- runtime faults --------------------------------------------------------------

class CommandException(Exception):
    """
    Base of every fault raised while executing a command tree.

    Attributes
    - command: the command the fault is attributed to.
    - message: the complete, user-facing message (already path-prefixed).
    """
    code = None

    def __init__(self, command, message, /):
        super().__init__(message)
        self.command = command
        self.message = message

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = _styles()
        return Text(self.message, styles["error-message"])


class UsageError(CommandException):
    """
    A malformed invocation, attributed to the command that detected it.

    Raised by Command.execute, or by an action through command.usage_error(...).
    """
    code = FaultCode.USAGE

    def __rich__(self):
        styles = _styles()
        renders = [Text(self.message, styles["error-message"])]

        if usage := self.command.usage_line():
            renders.append(Text.assemble(
                ("usage", styles["usage-label"]),
                ": ",
                (usage, styles["usage-section"]),
            ))

        renders.append(Text(f'Run "{self.command.help_path}" for details.', styles["hint"]))
        return Group(*renders)


class FlagParseError(UsageError):
    code = FaultCode.FLAG_PARSE


class UnknownCommandError(UsageError):
    code = FaultCode.UNKNOWN_COMMAND


class UnknownHelpTopicError(UsageError):
    code = FaultCode.UNKNOWN_HELP_TOPIC


class ActionError(CommandException):
    """
    A command's action failed.

    The message is "<command path>: <original message>" and the original
    exception is chained as __cause__.
    """
    code = FaultCode.ACTION_FAILED

    def __rich__(self):
        return Text(f"{self.message}.", _styles()["error-message"])


__all__ = (
    "FaultCode",
    "DefinitionError",
    "InvalidChildError",
    "MissingNameError",
    "AlreadyParentedError",
    "CycleDetectedError",
    "DuplicateNameError",
    "RootRequiredError",
    "CommandException",
    "UsageError",
    "FlagParseError",
    "UnknownCommandError",
    "UnknownHelpTopicError",
    "ActionError",
)
