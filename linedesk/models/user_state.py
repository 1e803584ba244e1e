from sqlalchemy import Boolean, Column, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP

from linedesk.database import Base


class UserState(Base):
    __tablename__ = "user_states"

    line_user_id = Column(Text, primary_key=True)
    nickname = Column(Text)
    is_human_mode = Column(Boolean, nullable=False, default=False)
    last_human_interaction = Column(TIMESTAMP(timezone=True))
    last_ai_reset_at = Column(TIMESTAMP(timezone=True))
