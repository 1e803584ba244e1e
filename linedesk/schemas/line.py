from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LineSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str  # user, group, room
    user_id: Optional[str] = Field(default=None, alias="userId")
    group_id: Optional[str] = Field(default=None, alias="groupId")
    room_id: Optional[str] = Field(default=None, alias="roomId")


class LineMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: str  # text, image, sticker, ...
    text: Optional[str] = None


class LineDeliveryContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_redelivery: bool = Field(default=False, alias="isRedelivery")


class LineEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str  # message, follow, unfollow, postback, ...
    webhook_event_id: Optional[str] = Field(default=None, alias="webhookEventId")
    timestamp: Optional[int] = None
    mode: Optional[str] = None
    reply_token: Optional[str] = Field(default=None, alias="replyToken")
    source: Optional[LineSource] = None
    message: Optional[LineMessage] = None
    delivery_context: Optional[LineDeliveryContext] = Field(default=None, alias="deliveryContext")

    @property
    def user_id(self) -> Optional[str]:
        return self.source.user_id if self.source else None

    @property
    def text(self) -> Optional[str]:
        if self.message is None or self.message.type != "text":
            return None
        return self.message.text

    @property
    def is_text_message(self) -> bool:
        return self.type == "message" and self.message is not None and self.message.type == "text"


class LineWebhookPayload(BaseModel):
    destination: Optional[str] = None
    events: List[LineEvent] = Field(default_factory=list)


class LineProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    picture_url: Optional[str] = Field(default=None, alias="pictureUrl")
    status_message: Optional[str] = Field(default=None, alias="statusMessage")
