"""Exception taxonomy for devstrap.

Fatal errors (manifest, platform detection, prerequisites) abort the run
before or during execution. Probe errors are downgraded to warnings and
action errors are recorded as failed results.
"""


class DevstrapError(Exception):
    """Base exception for all devstrap errors."""


class PlatformDetectionError(DevstrapError):
    """Raised when the platform target cannot be determined."""


class ProbeError(DevstrapError):
    """Raised by adapters when host state cannot be queried."""


class ActionError(DevstrapError):
    """Raised when a single planned action cannot be carried out."""


class PrerequisiteError(DevstrapError):
    """Raised when a tool required by every later action is missing.

    Attributes:
        tool: Name of the missing tool.
    """

    def __init__(self, tool: str, message: str | None = None) -> None:
        self.tool = tool
        super().__init__(message or f"Required command not found: {tool}")


class SettingsError(DevstrapError):
    """Raised when the settings file cannot be read or written."""
