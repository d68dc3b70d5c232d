"""Countdown clock images for email and other script-free pages."""

__version__ = "0.1.0"
