"""
Arbor flag sets: per-execution flag parsing for a single command.

Scope
- FlagSet: declares the flags of one command and parses an argument vector
  against them. Parsing itself is delegated to argparse; this module only shapes
  it into the conventional getopt behaviour commands expect:
  • flags are written -name or --name, values as -name value or -name=value;
    the token after a value flag is always its value, even if it starts with
    a dash;
  • bool flags never take the next token: -name sets them, -name=false (or
    true, 1, 0, t, f) sets them explicitly;
  • a dash token that names no declared flag is an error, e.g. -1;
  • parsing stops at the first positional argument, everything after it is
    returned untouched (sub-command names and their own flags included);
  • a leading "--" ends flag parsing and is dropped;
  • -h, -help and --help request help unless the command declares them itself.

- FlagError: human readable parse failure (unknown flag, missing or bad value).
- HelpRequested: the help signal, deliberately not a FlagError so callers can
  never mistake it for a malformed invocation.

Example
    flags = FlagSet("hello")
    flags.add_bool("utf8")
    flags.add_string("message", "world")
    args = flags.parse(["-message", "you", "extra"])
    flags.message  # "you"
    args           # ["extra"]
"""
import argparse
import builtins

from .utils import rename


class FlagError(Exception):
    """A flag could not be parsed; str(error) is the message to show the user."""


class HelpRequested(Exception):
    """Raised by FlagSet.parse when the arguments ask for help."""


class _HelpAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        raise HelpRequested(option_string)


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        # argparse would print usage and exit the process.
        raise FlagError(message)


_TRUE = frozenset(("1", "t", "true"))
_FALSE = frozenset(("0", "f", "false"))
_HELP = frozenset(("h", "help"))


@rename("bool")
def _boolean(text):
    # argparse names the converter in errors: "invalid bool value: ..."
    if (value := text.lower()) in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(text)


# Destination of the positional catch-all; flag names never contain spaces, so it cannot collide.
_POSITIONALS = "positional arguments"


class FlagSet:
    """
    The flags of one command for one execution.

    Declaration
    - add_bool(name, default=False, usage="")
    - add_string(name, default="", usage="")
    - add_int(name, default=0, usage="")
    - add_float(name, default=0.0, usage="")
    - add(name, type, default, usage="") for any converter callable.

    Every flag answers to both -name and --name. A flag named "h" or "help"
    replaces the built-in help signal for that spelling. A bool flag is set by
    its bare name or by an explicit value: -color=false turns off a flag that
    defaults to true.

    Values
    - Attribute access (flags.message, dashes in names become underscores) or
      get(name). Before parse() is called every flag reads as its default.
    """

    def __init__(self, name, /):
        self.name = name
        self._parser = _Parser(
            prog=name,
            add_help=False,
            allow_abbrev=False,
            exit_on_error=False,
            conflict_handler="resolve",
        )
        self._parser.add_argument("-h", "-help", "--help", action=_HelpAction)
        self._parser.add_argument(_POSITIONALS, nargs=argparse.REMAINDER)
        self._values = {}
        self._defined = {}
        self._bools = set()

    def __repr__(self):
        return f"flag-set(name={self.name!r}, flags={list(self._defined)!r})"

    def __contains__(self, name):
        return name in self._defined

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.get(name)
        except KeyError:
            raise AttributeError(f"flag set {self.name!r} has no flag {name!r}") from None

    def get(self, name, /):
        """
        Return the current value of a flag.

        Raises
        - KeyError if no flag with that name (or its underscore spelling) was declared.
        """
        dest = name.replace("-", "_")
        if dest not in self._defined.values():
            raise KeyError(name)
        return self._values.get(dest, self._parser.get_default(dest))

    def add(self, name, /, type, default, usage=""):
        """
        Declare a flag whose value is converted with type.

        Raises
        - ValueError if the name is empty, starts with a dash or is already declared.
        """
        dest = self._declare(name)
        self._parser.add_argument(f"-{name}", f"--{name}", dest=dest, type=type, default=default, help=usage)

    def add_bool(self, name, /, default=False, usage=""):
        dest = self._declare(name)
        self._bools.add(name)
        self._parser.add_argument(
            f"-{name}",
            f"--{name}",
            dest=dest,
            nargs="?",
            const=True,
            type=_boolean,
            default=default,
            help=usage,
        )

    def add_string(self, name, /, default="", usage=""):
        self.add(name, str, default, usage)

    def add_int(self, name, /, default=0, usage=""):
        self.add(name, builtins.int, default, usage)

    def add_float(self, name, /, default=0.0, usage=""):
        self.add(name, builtins.float, default, usage)

    def _declare(self, name):
        if not isinstance(name, str) or not name or name.startswith("-") or name.split() != [name]:
            raise ValueError(f"flag set {self.name!r}: invalid flag name {name!r}")
        if name in self._defined:
            raise ValueError(f"flag set {self.name!r}: flag redefined: {name}")
        dest = self._defined[name] = name.replace("-", "_")
        return dest

    def _bind(self, args):
        # Up to the first positional: "-name value" becomes "-name=value", a bare bool
        # "-name" becomes "-name=true". Help stops the rewrite; argparse raises it in order.
        bound, rest = [], list(args)
        while rest:
            arg = rest.pop(0)
            if arg == "--" or len(arg) < 2 or not arg.startswith("-"):
                return [*bound, arg, *rest]

            name, sep, _ = arg[2 if arg.startswith("--") else 1:].partition("=")
            if not name or name.startswith("-"):
                raise FlagError(f"bad flag syntax: {arg}")
            if name not in self._defined:
                if name in _HELP:
                    return [*bound, arg, *rest]
                raise FlagError(f"flag provided but not defined: -{name}")

            if sep:
                bound.append(arg)
            elif name in self._bools:
                bound.append(f"{arg}=true")
            elif rest:
                bound.append(f"{arg}={rest.pop(0)}")
            else:
                raise FlagError(f"flag needs an argument: -{name}")
        return bound

    def parse(self, args, /):
        """
        Parse args and return the positional arguments left after the flags.

        Raises
        - HelpRequested when -h/-help/--help appears before the first positional.
        - FlagError for an undefined flag (including dash tokens such as -1),
          a missing or invalid value, or a malformed flag such as ---name.
        """
        try:
            namespace, extras = self._parser.parse_known_args(self._bind(args))
        except argparse.ArgumentError as error:
            raise FlagError(str(error)) from None

        if extras:
            flag = extras[0].lstrip("-").partition("=")[0]
            raise FlagError(f"flag provided but not defined: -{flag}")

        values = vars(namespace)
        positionals = values.pop(_POSITIONALS) or []
        if positionals[:1] == ["--"]:
            del positionals[0]
        self._values = values
        return positionals


__all__ = (
    "FlagSet",
    "FlagError",
    "HelpRequested",
)
