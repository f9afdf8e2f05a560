"""
Arbor command layer: build, compose, and run command trees.

What this module provides
- Command: one node of an application's command tree, in the style of
  "APPNAME COMMAND [SUBCOMMAND...] --FLAG ARGUMENT". A command is:
  • runnable, when it has an action (run);
  • a dispatcher, when it has no action but hosts sub-commands;
  • a help topic, when it has neither and exists only to be documented.
  CommandKind names these variants; Command.kind derives them from the node.

- Factories and helpers:
  • command(usage, ...): decorator turning a function into a runnable Command.
  • Command.command(usage, ...): same, attaching the result as a child.
  • invoke(command, prompt): run a command from a shell-like string or tokens.

Core ideas
- Declarative nodes: no constructor logic beyond storing usage, short/long
  descriptions, the action, the flag callback and optional stream overrides.
  The first word of usage, lower-cased, is the command's name.
- Registration (add) is the only way to wire a tree; it rejects absent
  children, unnamed children, cycles, duplicate names and re-parenting.
- Dispatch (execute) parses the command's own flags, then runs its action or
  hands the remaining arguments to the named child. "help" is understood by
  every dispatcher.
- Streams are inherited: a command without an override uses its parent's,
  and the root falls back to the process streams.
- Faults are structural: UsageError for malformed invocations, ActionError for
  failed actions (see arbor.faults). Command.main turns them into a report and
  an exit status.

Quick start
    from arbor import Command

    app = Command("app <command> [<argument>...]", "app is a demonstration")

    @app.command("hello [--message <message>]", short="print a greeting")
    def hello(command, args):
        print(f"hello, {command.flags.message}", file=command.stdout)

    @hello.flagger
    def _(command):
        command.flags.add_string("message", "world")

    if __name__ == "__main__":
        app.main()
"""
import inspect
import logging
import re
import shlex
import sys
import threading
from collections.abc import Iterable
from enum import Enum

from rich.console import Console

from .faults import *
from .flags import FlagSet, FlagError, HelpRequested
from .help import render
from .utils import *

logger = logging.getLogger(__name__)

# Held by add() while it walks ancestors and claims a child; taken before any node lock.
_wiring = threading.Lock()


class CommandKind(Enum):
    """
    The closed set of command variants.

    - RUNNABLE: has an action; sub-commands, if any, are reachable through help only.
    - DISPATCHER: no action, at least one sub-command.
    - TOPIC: no action, no sub-commands; documentation only.
    """
    RUNNABLE = "runnable"
    DISPATCHER = "dispatcher"
    TOPIC = "topic"


class CommandType(type):
    """
    Metaclass giving commands read-only introspection and stable reprs.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      over its private backing field (see mirror()).
    - Derive a human-friendly __typename__ from the class name
      (e.g. "HelpTopic" -> "help-topic") for reprs and messages.
    - Provide __repr__ and __rich_repr__ built from __displayable__
      (falling back to __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                field: mirror(field) for field in namespace.get("__introspectable__", ())
            },
            **options,
        )

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, value) pairs for pretty printers such as rich.
            """
            for field in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield field, getattr(self, field)

        @rename("__repr__")
        def __repr__(self):
            """
            Concise representation, e.g. command(name='hello', usage='hello', ...).
            """
            fields = ", ".join("%s=%r" % pair for pair in self.__rich_repr__())
            return f"{type(self).__typename__}({fields})"

        if "__rich_repr__" not in namespace:
            self.__rich_repr__ = __rich_repr__
        if "__repr__" not in namespace:
            self.__repr__ = __repr__
        return self


def _check_text(cls, field, value):
    if value is not Unset and not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")


def _check_callable(cls, field, value):
    if value is not None and not callable(value):
        raise TypeError(f"{cls.__typename__} {field!r} must be callable")


class Command(metaclass=CommandType):
    """
    A command of a command-line application, like 'run' in 'go run'.

    Fields (read-only once constructed)
    - usage: the usage line without ancestors, e.g. "hello [--utf8] [<name>]".
      Its first word, lower-cased, is the command's name. Recommended syntax:
      [] optional, <> value to be supplied, ... repeatable.
    - short: one-line summary shown in listings.
    - long: full description shown by help (surrounding blank lines are trimmed).
    - run: optional action, run(command, args) -> object. args are the
      positional arguments left after this command's flags.
    - set_flags: optional callback, set_flags(command) -> None, called at the
      start of every execution to declare flags on command.flags.
    - parent: the command this one was added to, or None for a root.

    Streams
    - stdin, stdout, stderr: read to get the effective stream (own override,
      else the parent's, else the process stream); assign to override, assign
      None to inherit again.

    Concurrency
    - Registration and child lookups are guarded by a per-command lock;
      registration also holds a module-wide wiring lock.
    - command.flags is local to the running execute() call (and thread); it is
      None outside of one.
    """
    __introspectable__ = (
        "usage",
        "short",
        "long",
        "run",
        "set_flags",
        "parent",
    )

    __displayable__ = (
        "name",
        "usage",
        "short",
        "kind",
    )

    def __init__(
            self,
            usage,
            /,
            short=Unset,
            long=Unset,
            run=None,
            set_flags=None,
            *,
            stdin=None,
            stdout=None,
            stderr=None,
    ):
        cls = type(self)
        if not isinstance(usage, str):
            raise TypeError(f"{cls.__typename__} 'usage' must be a string")
        _check_text(cls, "short", short)
        _check_text(cls, "long", long)
        _check_callable(cls, "run", run)
        _check_callable(cls, "set_flags", set_flags)

        self._usage = usage
        self._short = coalesce(short, "")
        self._long = coalesce(long, "")
        self._run = run
        self._set_flags = set_flags
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._parent = None
        self._commands = {}
        self._mutex = threading.Lock()
        self._local = threading.local()

    # -- identity -------------------------------------------------------------------

    @property
    def name(self):
        """
        The first word of usage, lower-cased; "" when usage is blank.
        """
        fields = self._usage.split()
        return fields[0].lower() if fields else ""

    @property
    def root(self):
        """
        The topmost command of the tree this command belongs to.
        """
        command = self
        while command._parent is not None:
            command = command._parent
        return command

    @property
    def path(self):
        """
        The ancestry from the root to this command (both included), root first.
        """
        path = [command := self]
        while command._parent is not None:
            path.append(command := command._parent)
        return tuple(reversed(path))

    @property
    def long_name(self):
        """
        The names of every ancestor and this command, space-joined ("app cmd cat").
        """
        return " ".join(command.name for command in self.path)

    @property
    def long_usage(self):
        """
        The usage line prefixed with the names of every ancestor ("app cmd cat [--stderr]").
        """
        return " ".join([*(command.name for command in self.path[:-1]), self._usage])

    @property
    def help_path(self):
        """
        The invocation that documents this command: "help" spliced after the root ("app help cmd cat").
        """
        root, *names = (command.name for command in self.path)
        return " ".join([root, "help", *names])

    @property
    def kind(self):
        if self._run is not None:
            return CommandKind.RUNNABLE
        if self.has_children():
            return CommandKind.DISPATCHER
        return CommandKind.TOPIC

    def is_topic(self):
        return self.kind is CommandKind.TOPIC

    def usage_line(self):
        """
        The full usage line of a runnable command, or "" for dispatchers and topics.
        """
        return self.long_usage if self._run is not None else ""

    # -- streams --------------------------------------------------------------------

    @property
    def stdin(self):
        if self._stdin is not None:
            return self._stdin
        if self._parent is not None:
            return self._parent.stdin
        return sys.stdin

    @stdin.setter
    def stdin(self, stream):
        self._stdin = stream

    @property
    def stdout(self):
        if self._stdout is not None:
            return self._stdout
        if self._parent is not None:
            return self._parent.stdout
        return sys.stdout

    @stdout.setter
    def stdout(self, stream):
        self._stdout = stream

    @property
    def stderr(self):
        if self._stderr is not None:
            return self._stderr
        if self._parent is not None:
            return self._parent.stderr
        return sys.stderr

    @stderr.setter
    def stderr(self, stream):
        self._stderr = stream

    # -- topology -------------------------------------------------------------------

    def add(self, child, /):
        """
        Add child as a sub-command of this command and return it.

        Checks (in order)
        - child must be a Command (InvalidChildError).
        - child must not be this command or one of its ancestors (CycleDetectedError).
        - child must have a name, i.e. a non-blank usage (MissingNameError).
        - no sibling may already use that name, case-insensitively (DuplicateNameError).
        - child must not have a parent already (AlreadyParentedError).

        These are programming errors: they are meant to stop the application at
        start-up rather than be handled.
        """
        with _wiring, self._mutex:
            if not isinstance(child, Command):
                raise InvalidChildError(self, f"command {self.long_name!r}: adding a nil command ({child!r})")

            ancestor = self
            while ancestor is not None:
                if ancestor is child:
                    raise CycleDetectedError(self, (
                        f"command {self.long_name!r}: adding {child.name!r}: "
                        f"adding a command to itself or its children"
                    ))
                ancestor = ancestor._parent

            if not (name := child.name):
                raise MissingNameError(self, f"command {self.long_name!r}: adding a command without usage")
            if name in self._commands:
                raise DuplicateNameError(self, (
                    f"command {self.long_name!r}: adding {name!r}: command name already in use"
                ))
            if child._parent is not None:
                raise AlreadyParentedError(self, (
                    f"command {self.long_name!r}: adding {name!r}: "
                    f"command has another parent: {child._parent.long_name!r}"
                ))

            self._commands[name] = child
            child._parent = self

        logger.debug("added command %r under %r", name, self.long_name)
        return child

    def child(self, name, /):
        """
        Return the sub-command called name (case-insensitive), or None.
        """
        with self._mutex:
            return self._commands.get(name.lower()) if name else None

    @property
    def children(self):
        """
        A snapshot of the sub-commands, keyed by name in alphabetical order.
        """
        with self._mutex:
            return dict(sorted(self._commands.items()))

    def has_children(self):
        with self._mutex:
            return bool(self._commands)

    # -- decorators -----------------------------------------------------------------

    def command(self, usage, /, **fields):
        """
        Decorator: build a runnable command from a function and add it here.

            @app.command("echo <argument>...", short="print its arguments")
            def echo(command, args): ...

        The function becomes the action; when long is not given, the function's
        docstring is used. Returns the new child Command (not the function).
        """
        @rename("command")
        def decorator(run, /):
            return self.add(command(usage, **fields)(run))

        return decorator

    def flagger(self, set_flags, /):
        """
        Decorator: register the flag callback of a command built without one.

        Rules
        - set_flags must be callable.
        - it can be set only once.

        Returns set_flags unchanged.
        """
        _check_callable(type(self), "set_flags", set_flags)
        if self._set_flags is not None:
            raise TypeError(f"{type(self).__typename__} 'set_flags' cannot be overridden")
        self._set_flags = set_flags
        return set_flags

    # -- execution ------------------------------------------------------------------

    @property
    def flags(self):
        """
        The FlagSet of the running execution of this command, or None.
        """
        return getattr(self._local, "flags", None)

    def usage_error(self, message, /):
        """
        Build a UsageError attributed to this command; raise it from an action
        to report malformed arguments:

            raise command.usage_error("expecting arguments")
        """
        return UsageError(self, f"{self.long_name}: {message}")

    def execute(self, args=(), /):
        """
        Execute this command with the arguments that follow its name.

        Steps
        - Flags: a fresh FlagSet is created and set_flags (if any) declares this
          command's flags on it; args are parsed against it.
          • -h/--help renders help instead of running anything and returns None.
          • a malformed flag raises FlagParseError.
        - Runnable: run(command, args) is called and its result returned. A
          UsageError or ActionError it raises propagates unchanged; any other
          exception is raised as ActionError "<path>: <message>".
        - Topic: UnknownCommandError.
        - Dispatcher: without arguments the help is written to stderr and None
          returned; "help ..." resolves documentation (see help()); otherwise the
          first argument names the child that executes the rest.

        Raises
        - UsageError (and subclasses), ActionError.
        """
        if isinstance(args, str):
            raise TypeError("execute() argument must be an iterable of strings, not a string")
        args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError("execute() argument must be an iterable of strings")

        flags = FlagSet(self.name)
        previous = self.flags
        self._local.flags = flags
        try:
            return self._execute(flags, args)
        finally:
            self._local.flags = previous

    def _execute(self, flags, args):
        logger.debug("executing %r with %r", self.long_name, args)
        if self._set_flags is not None:
            self._set_flags(self)

        try:
            args = flags.parse(args)
        except HelpRequested:
            self._help_requested()
            return None
        except FlagError as error:
            raise FlagParseError(self, f"{self.long_name}: {error}") from None

        match self.kind:
            case CommandKind.RUNNABLE:
                return self._invoke(args)
            case CommandKind.TOPIC:
                raise UnknownCommandError(self, f"{self.long_name}: unknown command")
            case CommandKind.DISPATCHER:
                return self._dispatch(args)

    def _invoke(self, args):
        try:
            return self._run(self, args)
        except (UsageError, ActionError, DefinitionError):
            raise
        except Exception as error:
            raise ActionError(self, f"{self.long_name}: {str(error) or type(error).__name__}") from error

    def _dispatch(self, args):
        if not args:
            render(self.stderr, self)
            return None

        token, *args = args
        if token.lower() == "help":
            return self.help(args)

        if (child := self.child(token)) is None:
            raise UnknownCommandError(self, f"{self.long_name} {token}: unknown command")

        logger.debug("dispatching %r to %r", self.long_name, child.name)
        return child.execute(args)

    def _help_requested(self):
        logger.debug("help requested for %r", self.long_name)
        if self.has_children():
            render(self.stderr, self)
        elif self._run is None:
            render(self.stdout, self)
        else:
            self.stderr.write(f"usage: {self.long_usage}\n")

    def help(self, args=(), /):
        """
        Resolve "help [<name>...]" below this command.

        Without arguments the help of this command is written to stdout.
        Otherwise the first argument names a sub-command whose help() receives
        the rest.

        Raises
        - UnknownHelpTopicError when a name is not found; its message repeats
          every unmatched argument.
        """
        args = list(args)
        if not args:
            render(self.stdout, self)
            return None

        if (child := self.child(args[0])) is None:
            path = self.help_path
            topic = " ".join(args)
            raise UnknownHelpTopicError(self, f'{path} {topic}: unknown help topic. Run "{path}"')
        return child.help(args[1:])

    def main(self, args=Unset, /):
        """
        Run this root command as the program and exit.

        Parameters
        - args: the arguments after the program name; Unset reads sys.argv[1:].

        Behavior
        - Success exits with status 0.
        - UsageError: the message, the usage line of the command that raised it
          and a 'Run "<help path>" for details.' hint go to stderr; exit status 1.
        - ActionError: the message and a period go to stderr; exit status 1.

        Raises
        - RootRequiredError when called on a command that has a parent.
        """
        if self._parent is not None:
            raise RootRequiredError(self, f"command {self.long_name!r}: running main in a command with parent")

        try:
            self.execute(sys.argv[1:] if args is Unset else args)
        except CommandException as fault:
            logger.debug("command %r failed [%s]: %s", fault.command.long_name, fault.code.normalize(), fault)
            Console(file=self.stderr, highlight=False, soft_wrap=True).print(fault)
            sys.exit(1)
        sys.exit(0)


def command(usage, /, **fields):
    """
    Decorator: build a runnable Command whose action is the decorated function.

        @command("hello [--utf8]", short="print a greeting")
        def hello(command, args): ...

    Parameters
    - usage: the command's usage line.
    - **fields: any other Command field (short, long, set_flags, stdin, ...).
      long defaults to the function's docstring.

    Returns
    - a decorator producing the Command.
    """
    if not isinstance(usage, str):
        raise TypeError("@command() first argument must be a usage string")

    @rename("command")
    def decorator(run, /):
        if not callable(run):
            raise TypeError("@command() must be applied to a callable")
        return Command(usage, run=run, **{"long": inspect.getdoc(run) or Unset} | fields)

    return decorator


def invoke(command, prompt=Unset, /):
    """
    Convenience runner: execute command with a prompt.

    Parameters
    - prompt:
      • Unset: sys.argv[1:].
      • str: split like a shell would (shlex.split).
      • Iterable[str]: used as-is.

    Returns
    - whatever command.execute() returns.

    Raises
    - TypeError for a non-command or a prompt that is not text or an iterable of text.
    """
    if not isinstance(command, Command):
        raise TypeError("invoke() first argument must be a command")

    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
    else:
        raise TypeError("invoke() second argument must be a string or an iterable of strings")

    return command.execute(tokens)


__all__ = (
    "Command",
    "CommandKind",
    "command",
    "invoke",
)

# The metaclass is an implementation detail; keep it out of star-imports and docs.
del CommandType
