"""Meter photo digit extraction and geotagging."""

__version__ = "0.1.0"
