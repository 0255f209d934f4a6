"""Rulecord: rule-based Discord auto-moderation."""

__version__ = "0.1.0"
