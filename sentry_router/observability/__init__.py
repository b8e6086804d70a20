"""
Observability package: structured logging for the router's own diagnostics.
"""

from .logging import setup_structured_logger

__all__ = ["setup_structured_logger"]
