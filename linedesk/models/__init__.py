from linedesk.models.bot_settings import BotSettings
from linedesk.models.chat_log import ChatLog
from linedesk.models.processed_event import ProcessedEvent
from linedesk.models.user_state import UserState

__all__ = [
    "BotSettings",
    "ChatLog",
    "ProcessedEvent",
    "UserState",
]
