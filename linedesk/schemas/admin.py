from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserStateResponse(BaseModel):
    line_user_id: str
    nickname: Optional[str] = None
    is_human_mode: bool
    last_human_interaction: Optional[datetime] = None
    last_ai_reset_at: Optional[datetime] = None


class ResetResponse(BaseModel):
    success: bool
    line_user_id: str
    reset_at: datetime
