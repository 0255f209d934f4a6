"""Dataclasses and enums passed between rulecord components."""
