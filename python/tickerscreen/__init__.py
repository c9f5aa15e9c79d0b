"""Ticker screener: enrich quotes and filter them with declarative conditions."""

__version__ = "0.1.0"
