"""
arbor: command trees for "APPNAME COMMAND [SUBCOMMAND...] --FLAG ARGUMENT" programs.

    from arbor import Command

    app = Command("app <command> [<argument>...]", "a small application")
    app.add(Command("topic", "a help topic", "Documentation only."))

    if __name__ == "__main__":
        app.main()

Submodules
- arbor.commands: Command, CommandKind, command(), invoke().
- arbor.flags: FlagSet, the per-execution flag parser.
- arbor.faults: definition errors, usage errors and action errors.
- arbor.help: the help renderer.
"""
__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'arbor'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

import logging as _logging
from collections import namedtuple as _namedtuple

from .commands import *
from .faults import *
from .flags import *

VersionInfo = _namedtuple("VersionInfo", "major minor micro releaselevel serial metadata")

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

# Silent unless the host application configures logging.
_logging.getLogger(__name__).addHandler(_logging.NullHandler())

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "VersionInfo",
    "version_info",
)

__all__ += commands.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
__all__ += flags.__all__  # type: ignore[attr-defined]
