"""
Arbor help renderer: static documentation for one command.

render(stream, command) writes, in order:
- the short description, whitespace-normalized, first letter title-cased;
- "Usage:" and the full usage line (runnable commands and dispatchers only);
- the long description, trimmed, verbatim otherwise (tabs included);
- for dispatchers, the sub-commands and then the help topics, each list sorted
  by name and followed by the "help" invocation that documents its entries.

The output is plain text written straight to the stream, byte-identical for
an unchanged tree. Command.help() and Command.execute() decide which stream
receives it.
"""


def title(text, /):
    """
    Collapse runs of whitespace and title-case the first character.

    >>> title("  print   a greeting ")
    'Print a greeting'
    """
    text = " ".join(text.split())
    return text[:1].title() + text[1:]


def _listing(stream, heading, entries):
    stream.write(f"{heading}\n\n")
    for child in entries:
        stream.write(f"    {child.name:<16} {child.short}\n")


def render(stream, command, /):
    """
    Write the help of command to stream.

    Parameters
    - stream: any object with a write(str) method.
    - command: a Command; only its public, read-only surface is used.
    """
    stream.write(f"{title(command.short)}\n\n")

    if command.run is not None or command.has_children():
        stream.write(f"Usage:\n\n    {command.long_usage}\n\n")

    if long := command.long.strip():
        stream.write(f"{long}\n\n")

    if not command.has_children():
        return

    children = command.children
    topics = [child for child in children.values() if child.is_topic()]
    commands = [child for child in children.values() if not child.is_topic()]

    path = command.help_path

    _listing(stream, "The commands are:", commands)
    stream.write(f'\nUse "{path} <command>" for more information about a command.\n\n')

    if not topics:
        return

    _listing(stream, "Additional help topics:", topics)
    stream.write(f'\nUse "{path} <topic>" for more information about that topic.\n\n')


__all__ = (
    "render",
    "title",
)
