"""Scrape, extract and serve AI tool and news listings."""

__version__ = "0.3.0"
