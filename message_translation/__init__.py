"""
Message Translation Module

Word-level and full-message translation of chat messages, plus alignment of
word translations onto the original text for highlighting.
"""

from message_translation.router import router

__all__ = ["router"]
