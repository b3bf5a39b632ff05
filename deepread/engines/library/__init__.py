"""
Library Engine - books and the ideas extracted from them.
"""

from deepread.engines.library.book_service import BookService

__all__ = ["BookService"]
