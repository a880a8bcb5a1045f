"""Prospect Radar: pipeline risk alerts and next-action recommendations."""

__version__ = "1.0.0"
