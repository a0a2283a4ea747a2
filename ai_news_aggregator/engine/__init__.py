"""Engine components: fetch → extract, plus the fan-out thread pool."""

from .extractor import MAX_RECORDS, Extractor
from .fetcher import FetchResponse, Fetcher
from .thread_pool import ThreadPoolManager

__all__ = [
    "Extractor",
    "FetchResponse",
    "Fetcher",
    "MAX_RECORDS",
    "ThreadPoolManager",
]
