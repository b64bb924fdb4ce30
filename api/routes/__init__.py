"""
API Routes for the conversation bot.
"""

from . import webhook

__all__ = ["webhook"]
