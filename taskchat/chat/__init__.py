"""
TaskChat - Chat Module

Natural-language task management: inference, parsing, normalization,
resolution and dispatch.
"""

from taskchat.chat.router import router as chat_router

__all__ = ["chat_router"]
