from .user import User
from .productivity_entry import ProductivityEntry, EntryCategory
from .daily_score import DailyScore
from .weekly_score import WeeklyScore
from .chat_message import ChatMessage, ChatRole
from .auth_session import AuthSession

__all__ = [
    "User",
    "ProductivityEntry",
    "EntryCategory",
    "DailyScore",
    "WeeklyScore",
    "ChatMessage",
    "ChatRole",
    "AuthSession",
]
