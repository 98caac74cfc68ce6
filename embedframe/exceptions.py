"""embedframe exception hierarchy.

All embedframe-specific exceptions inherit from EmbedFrameException, enabling
catch-all handling while supporting specific error types.
"""

from __future__ import annotations

from typing import Any


class EmbedFrameException(Exception):
    """Base exception for all embedframe errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize embedframe exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (path, host_url, mode, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(EmbedFrameException):
    """Invalid or missing configuration.

    Fatal at widget initialization or build start.
    """


class HostOriginError(ConfigurationError):
    """The host origin could not be resolved.

    Raised when the widget location has no ``host_url`` query parameter,
    or its value is not an absolute URL.
    """

    def __init__(self, message: str, host_url: str | None = None, **context: Any) -> None:
        """Initialize host origin error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        host_url : str, optional
            The offending ``host_url`` value, if one was present.
        **context : Any
            Additional context.
        """
        super().__init__(message, host_url=host_url, **context)
        self.host_url = host_url


class BuildConfigError(ConfigurationError):
    """Build configuration is incomplete for the requested build mode."""

    def __init__(self, message: str, mode: str | None = None, **context: Any) -> None:
        """Initialize build configuration error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        mode : str, optional
            The build mode (``production`` or ``development``).
        **context : Any
            Additional context.
        """
        super().__init__(message, mode=mode, **context)
        self.mode = mode


class PreconditionError(EmbedFrameException):
    """A required resource is missing.

    Raised before any side effect is performed.
    """


class MissingRootNodeError(PreconditionError):
    """The widget's root content node does not exist."""

    def __init__(self, message: str, selector: str | None = None, **context: Any) -> None:
        """Initialize missing root node error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        selector : str, optional
            The element id or selector that was looked up.
        **context : Any
            Additional context.
        """
        super().__init__(message, selector=selector, **context)
        self.selector = selector


class MissingBuildInputError(PreconditionError):
    """A build output consumed by the bundler does not exist."""

    def __init__(self, message: str, path: str | None = None, **context: Any) -> None:
        """Initialize missing build input error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        path : str, optional
            The missing file path.
        **context : Any
            Additional context.
        """
        super().__init__(message, path=path, **context)
        self.path = path


class BundleError(EmbedFrameException):
    """The HTML shell cannot be merged with the script.

    Raised when the shell does not contain exactly one external script,
    or the output would overwrite the shell.
    """

    def __init__(self, message: str, script_count: int | None = None, **context: Any) -> None:
        """Initialize bundle error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        script_count : int, optional
            Number of external script elements found in the shell.
        **context : Any
            Additional context.
        """
        super().__init__(message, script_count=script_count, **context)
        self.script_count = script_count


class FrameGoneError(EmbedFrameException):
    """The target frame no longer exists.

    Transient delivery failure. The messenger drops the notification
    instead of surfacing this to callers.
    """
