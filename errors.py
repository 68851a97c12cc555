"""
Errors raised by the provisioner and the system-info probe.

Library functions raise these; the component entry points
(user_data.provision and system_info.new_system_info) decide whether a
failure is logged and swallowed or is fatal.
"""


class SessionHelperError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(SessionHelperError, FileNotFoundError):
    """A configuration file, skeleton root or topology property is absent."""


class ParseError(SessionHelperError, ValueError):
    """A file exists but lacks the expected key or structure."""


class SubprocessError(SessionHelperError):
    """An external command exited non-zero.

    The captured output becomes the message.
    """

    def __init__(self, output: str, returncode: int = None, cmd=None):
        super().__init__(output)
        self.output = output
        self.returncode = returncode
        self.cmd = cmd


class ChownError(SubprocessError):
    """Recursive ownership repair failed part way through the tree."""


class BusError(SessionHelperError):
    """Connecting to, or calling, a D-Bus service failed."""
