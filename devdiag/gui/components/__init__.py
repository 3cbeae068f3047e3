"""Reusable GUI components."""

from .entry_card import EntryCard

__all__ = ["EntryCard"]
