from .session import ChatSession
from .model import GenerativeModel

__all__ = ["ChatSession", "GenerativeModel"]
