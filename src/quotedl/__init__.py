"""quotedl: historical OHLCV quote downloader."""

__version__ = "0.4"
