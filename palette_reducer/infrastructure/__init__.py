"""Infrastructure helpers for fetching sources and encoding responses."""

from .cache import CACHE, ResponseCache
from .network import FETCHER, SourceFetcher, validate_source_url
from .responses import encode_png, send_png

__all__ = [
    "CACHE",
    "ResponseCache",
    "FETCHER",
    "SourceFetcher",
    "validate_source_url",
    "encode_png",
    "send_png",
]
