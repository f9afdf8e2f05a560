"""
myapp: a demonstration application for arbor.

    $ python main.py
    $ python main.py hello --message arbor
    $ echo text | python main.py cmd cat
    $ python main.py help topic
"""
from arbor import Command

# The application is the root command.
app = Command(
    "myapp <command> [<argument>...]",
    "a demonstration application for the arbor package",
)


@app.command("hello [--utf8] [--message <message>]", short="print a greeting message")
def hello(command, args):
    """
    Command hello prints a greeting "hello, world" message.

    Flags are:

        --utf8
            Show an utf message.

        --message <message>
            Use the indicated message instead of "world" message.
    """
    if command.flags.utf8:
        print("hello, 世界", file=command.stdout)
        return
    print(f"hello, {command.flags.message}", file=command.stdout)


@hello.flagger
def _(command):
    # Flag usage is documented in the long description.
    command.flags.add_bool("utf8")
    command.flags.add_string("message", "world")


@app.command("error", short="always return an error")
def error(command, args):
    """
    Command error always returns an error. It demonstrates errors produced from
    a command.
    """
    raise RuntimeError("an error from a command")


app.add(Command(
    "topic",
    "a help topic",
    """
A help topic is a command that does not have any children, and it does not run
any action. It is used to provide online documentation of a particular topic
or subject relevant for the application.
    """,
))

# A sub-command that hosts its own sub-commands.
cmd = app.add(Command("cmd <command> [<argument>...]", "a collection of commands"))


@cmd.command("cat [--stderr]", short="print stdin into stdout")
def cat(command, args):
    """
    Command cat demonstrates basic IO redirection. By default it prints the
    contents of stdin into stdout. If flag --stderr is defined, it will output
    in the stderr.
    """
    out = command.stderr if command.flags.stderr else command.stdout
    for line in command.stdin:
        out.write(line)


@cat.flagger
def _(command):
    command.flags.add_bool("stderr", usage="write to stderr instead of stdout")


@cmd.command("echo <argument>...", short="print its arguments to stdout")
def echo(command, args):
    """
    Command echo prints its arguments to stdout in a single line.
    """
    print(" ".join(args), file=command.stdout)


@cmd.command("error <argument>", short="always return an usage error")
def usage_error(command, args):
    """
    Command error always returns a usage error. It demonstrates errors produced
    when parsing flags and arguments.
    """
    raise command.usage_error("expecting arguments")


if __name__ == '__main__':
    app.main()
