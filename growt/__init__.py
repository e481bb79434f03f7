"""GROWT livestock weighing analytics service."""

__version__ = "0.1.0"
