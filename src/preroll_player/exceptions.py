"""Player custom exception hierarchy.

Provides specific exception types for the ad manifest fetch, media playback,
and configuration. The ad subsystem catches its own errors at the await
boundary; only main media errors are surfaced to the embedding application.

Exception Hierarchy:
    PlayerException (base)
    ├── VastFetchError
    │   ├── VastHTTPError
    │   └── VastTimeoutError
    ├── VastXMLError
    ├── MediaError
    │   └── MediaPlaybackError
    └── PlayerConfigError
        └── UnknownQualityError
"""

from typing import Optional


class PlayerException(Exception):
    """Base exception for all player errors.

    All player-specific exceptions inherit from this class to allow
    catching them with a single except clause.
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        """Initialize player exception.

        Args:
            message: Error message
            context: Optional context dictionary for debugging
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.context:
            context_str = "; ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# Ad manifest errors

class VastFetchError(PlayerException):
    """Raised when the ad manifest could not be retrieved.

    Attributes:
        url: Manifest URL that was requested
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if url:
            context["url"] = url[:100]
        super().__init__(message, context)
        self.url = url


class VastHTTPError(VastFetchError):
    """Raised when the ad endpoint answers with a non-success status.

    Attributes:
        status_code: HTTP status code
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, url=url, context=context)
        self.status_code = status_code


class VastTimeoutError(VastFetchError):
    """Raised when the ad request exceeds its time budget.

    Attributes:
        timeout: Configured timeout in seconds
    """

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        url: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if timeout:
            context["timeout"] = timeout
        super().__init__(message, url=url, context=context)
        self.timeout = timeout


class VastXMLError(PlayerException):
    """Raised when the ad manifest is not well-formed XML.

    Attributes:
        xml_preview: First 200 characters of the document
        parser_error: The underlying lxml parser error
    """

    def __init__(
        self,
        message: str,
        xml_preview: Optional[str] = None,
        parser_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if xml_preview:
            context["xml_preview"] = xml_preview[:200]
        super().__init__(message, context)
        self.xml_preview = xml_preview
        self.parser_error = parser_error


# Media errors

class MediaError(PlayerException):
    """Base exception for media element failures."""

    pass


class MediaPlaybackError(MediaError):
    """Raised when a media element refuses to start playback.

    Attributes:
        element: Name of the element ("main" or "ad")
    """

    def __init__(
        self,
        message: str,
        element: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if element:
            context["element"] = element
        super().__init__(message, context)
        self.element = element


# Configuration errors

class PlayerConfigError(PlayerException):
    """Base exception for invalid player configuration."""

    pass


class UnknownQualityError(PlayerConfigError):
    """Raised when a quality value is not one of the known options.

    Attributes:
        quality: The rejected value
    """

    def __init__(
        self,
        message: str,
        quality: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if quality is not None:
            context["quality"] = quality
        super().__init__(message, context)
        self.quality = quality


__all__ = [
    "PlayerException",
    "VastFetchError",
    "VastHTTPError",
    "VastTimeoutError",
    "VastXMLError",
    "MediaError",
    "MediaPlaybackError",
    "PlayerConfigError",
    "UnknownQualityError",
]
