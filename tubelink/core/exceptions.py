"""
Exception classes for tubelink.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, and every failure of the resolve pipeline records the stage
it originated from.

Exception Hierarchy:
    TubeLinkError (base)
        ConfigError - Configuration file issues
        LibraryError - Local music library issues
        ResolveError - Any failure while turning a URL into a video link
            ClassificationError (stage "classify")
                InvalidURLError
                UnsupportedServiceError
                UnsupportedEntityTypeError
                AmbiguousEntityError
            FetchError (stage "fetch")
            DocumentParseError (stage "parse")
            ExtractionError (stage "extract")
                TitleNotFoundError
                TitlePatternMismatchError
            SearchError (stage "search")
                MissingCredentialError
                UpstreamError
                NoMatchError
"""


class TubeLinkError(Exception):
    """
    Base exception for all tubelink errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., url, query).

    Example:
        try:
            resolver.resolve(url)
        except TubeLinkError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'url': URL that caused the error
                     - 'query': search phrase sent upstream
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(TubeLinkError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly requested config file does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., a non-positive limit)
    """
    pass


class LibraryError(TubeLinkError):
    """
    Raised when a local music library file cannot be read.

    Common causes:
        - Library file not found
        - File is not a property list (binary or XML)
        - Requested playlist does not exist in the library
    """
    pass


class ResolveError(TubeLinkError):
    """
    Base class for failures of the URL -> track -> video pipeline.

    Every subclass sets `stage` so callers can tell where a resolution
    failed without inspecting the concrete type.

    Stages:
        classify - URL could not be mapped to a service/entity
        fetch    - page could not be downloaded
        parse    - page could not be parsed as markup
        extract  - track metadata could not be read from the page
        search   - video search failed
    """

    stage = "resolve"


class ClassificationError(ResolveError):
    """Raised when a URL cannot be classified."""

    stage = "classify"


class InvalidURLError(ClassificationError):
    """Raised when the input is not parseable as an http(s) URL."""
    pass


class UnsupportedServiceError(ClassificationError):
    """
    Raised when the URL host is not one of the supported services.

    Example:
        raise UnsupportedServiceError(
            "Unsupported service: www.deezer.com",
            details={'host': 'www.deezer.com', 'supported': ['music.apple.com', ...]}
        )
    """
    pass


class UnsupportedEntityTypeError(ClassificationError):
    """Raised when the path token does not name a known track or collection."""
    pass


class AmbiguousEntityError(ClassificationError):
    """
    Raised when a collection token must address a single item but doesn't.

    Which tokens behave this way is configured per service profile
    (ServiceProfile.item_only_tokens).
    """
    pass


class FetchError(ResolveError):
    """
    Raised when a page cannot be downloaded.

    Covers connection failures, timeouts and non-2xx responses.
    A timeout is reported as a FetchError, not as a distinct kind.
    """

    stage = "fetch"


class DocumentParseError(ResolveError):
    """Raised when a downloaded page cannot be parsed as markup."""

    stage = "parse"


class ExtractionError(ResolveError):
    """Raised when track metadata cannot be extracted from a page."""

    stage = "extract"


class TitleNotFoundError(ExtractionError):
    """Raised when the page head has no (non-empty) title element."""
    pass


class TitlePatternMismatchError(ExtractionError):
    """
    Raised when the page title does not match the service's title pattern.

    Services change their markup from time to time; this is reported
    as a normal failure, never as a crash.
    """
    pass


class SearchError(ResolveError):
    """Raised when the video search for a track fails."""

    stage = "search"


class MissingCredentialError(SearchError):
    """Raised when no YouTube API key is available in the environment."""
    pass


class UpstreamError(SearchError):
    """
    Raised when the YouTube search request fails.

    Covers transport failures, timeouts, non-2xx responses and
    malformed response bodies.
    """
    pass


class NoMatchError(SearchError):
    """Raised when the YouTube search returns zero results."""
    pass
