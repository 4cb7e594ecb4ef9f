# src/toolshim/exceptions.py

"""
Exception hierarchy for toolshim.

Only ConfigurationError escapes ToolInvoker.invoke; the resolution and launch
errors are converted into InvocationResult outcomes there.
"""


class ToolshimError(Exception):
    """Base class for all toolshim errors."""


class ConfigurationError(ToolshimError):
    """Raised when a tool configuration is invalid. Nothing has been launched."""


class ToolInvocationError(ToolshimError):
    """Base class for errors tied to a specific executable."""

    def __init__(
        self,
        message: str,
        executable: str | None = None,
        details: Exception | None = None,
    ):
        self.executable = executable
        self.details = details
        full_message = message
        if executable:
            full_message += f" (Executable: '{executable}')"
        super().__init__(full_message)
        if details is not None:
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class ToolNotFoundError(ToolInvocationError):
    """The executable could not be resolved to an existing file."""

    pass


class ToolLaunchError(ToolInvocationError):
    """The operating system refused to start the resolved executable."""

    pass


# 🔼⚙️
