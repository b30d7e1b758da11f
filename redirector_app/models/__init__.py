"""
Database models for the redirector.
"""

from .redirect import Redirect

__all__ = ["Redirect"]
