"""
Music service module for tubelink.

Classifies service URLs, fetches their pages and extracts track metadata.

Components:
    - profiles: Static table of supported services
    - classifier: URL -> service + entity type
    - fetcher: Page download and parsing
    - extractor: Track / member-link extraction from parsed pages
    - models: Track and classification dataclasses

Usage:
    from tubelink.music import classify, PageFetcher, extract_track, get_profile

    classified = classify(url)
    document = PageFetcher().fetch(classified.normalized_url)
    track = extract_track(document, get_profile(classified.service).title_pattern)
"""

from tubelink.music.classifier import classify
from tubelink.music.extractor import extract_member_links, extract_track
from tubelink.music.fetcher import PageFetcher, parse_document
from tubelink.music.models import ClassifiedURL, EntityType, ParseResult, Service, Track
from tubelink.music.profiles import SERVICE_PROFILES, ServiceProfile, get_profile

__all__ = [
    "classify",
    "extract_track",
    "extract_member_links",
    "PageFetcher",
    "parse_document",
    "ClassifiedURL",
    "EntityType",
    "ParseResult",
    "Service",
    "Track",
    "SERVICE_PROFILES",
    "ServiceProfile",
    "get_profile",
]
