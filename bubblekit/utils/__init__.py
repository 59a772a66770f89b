"""Utility functions for bubblekit."""

from bubblekit.utils.logging import disable_logging, setup_logging

__all__ = ["disable_logging", "setup_logging"]
