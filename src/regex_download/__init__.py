"""regex_download: regex-driven page scraping and concurrent asset download."""

__version__ = "0.1.0"
