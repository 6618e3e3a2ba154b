"""Crawl and parse the Illinois Compiled Statutes index."""

__version__ = "0.1.0"
