"""Momentum-failure exit detection for open crypto positions."""

__version__ = "0.1.0"
