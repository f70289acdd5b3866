"""Shared-expense split, balance netting and debt simplification engine."""

__version__ = "0.1.0"
