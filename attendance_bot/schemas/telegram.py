from pydantic import BaseModel, Field

from attendance_bot.errors import MalformedEvent


class TelegramUser(BaseModel):
    id: int
    first_name: str | None = None
    username: str | None = None


class TelegramChat(BaseModel):
    id: int
    type: str | None = None


class TelegramMessage(BaseModel):
    """The subset of a Telegram Message the bot reads. Other fields are ignored."""
    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat | None = None
    date: int | None = None
    text: str | None = None

    class Config:
        populate_by_name = True


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None


class InboundEvent(BaseModel):
    """A button tap or command, reduced to what the command router needs."""
    chat_id: int
    user_id: int
    user_name: str
    text: str

    @property
    def is_command(self) -> bool:
        return self.text.startswith("/")

    @classmethod
    def from_update(cls, update: TelegramUpdate, default_user_name: str) -> "InboundEvent | None":
        """
        None for updates the bot doesn't act on (edits, stickers, ...).
        Raises MalformedEvent when a text message lacks its sender or chat.
        """
        message = update.message
        if message is None or not message.text:
            return None
        if message.from_user is None:
            raise MalformedEvent(f"update {update.update_id}: message has no sender")
        if message.chat is None:
            raise MalformedEvent(f"update {update.update_id}: message has no chat")

        return cls(
            chat_id=message.chat.id,
            user_id=message.from_user.id,
            user_name=message.from_user.first_name or default_user_name,
            text=message.text.strip(),
        )


class WebhookResult(BaseModel):
    status: str
    replied: bool = False
