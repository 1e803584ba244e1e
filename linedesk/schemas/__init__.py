from linedesk.schemas.admin import ResetResponse, UserStateResponse
from linedesk.schemas.line import LineEvent, LineProfile, LineWebhookPayload

__all__ = ["LineEvent", "LineProfile", "LineWebhookPayload", "ResetResponse", "UserStateResponse"]
