"""
Core module for tubelink.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs
    - progress: Progress bar for collection resolution

Usage:
    from tubelink.core import (
        Config, load_config,
        setup_logging, get_logger,
        TubeLinkError, ResolveError
    )
"""

from tubelink.core.config import (
    Config,
    OutputConfig,
    ResolverConfig,
    YouTubeConfig,
    load_config,
)
from tubelink.core.exceptions import (
    AmbiguousEntityError,
    ClassificationError,
    ConfigError,
    DocumentParseError,
    ExtractionError,
    FetchError,
    InvalidURLError,
    LibraryError,
    MissingCredentialError,
    NoMatchError,
    ResolveError,
    SearchError,
    TitleNotFoundError,
    TitlePatternMismatchError,
    TubeLinkError,
    UnsupportedEntityTypeError,
    UnsupportedServiceError,
    UpstreamError,
)
from tubelink.core.logger import (
    get_logger,
    log_unmatched_track,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "YouTubeConfig",
    "ResolverConfig",
    "OutputConfig",
    "load_config",
    # Exceptions
    "TubeLinkError",
    "ConfigError",
    "LibraryError",
    "ResolveError",
    "ClassificationError",
    "InvalidURLError",
    "UnsupportedServiceError",
    "UnsupportedEntityTypeError",
    "AmbiguousEntityError",
    "FetchError",
    "DocumentParseError",
    "ExtractionError",
    "TitleNotFoundError",
    "TitlePatternMismatchError",
    "SearchError",
    "MissingCredentialError",
    "UpstreamError",
    "NoMatchError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_unmatched_track",
    "shutdown_logging",
]
