from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from attendance_bot.config import settings
from attendance_bot.db import get_db
from attendance_bot.errors import MalformedEvent, PersistenceUnavailable
from attendance_bot.schemas.telegram import InboundEvent, TelegramUpdate, WebhookResult
from attendance_bot.services.clock import TimeSource, get_clock
from attendance_bot.services.command_router import CommandRouter, is_start_command
from attendance_bot.services.repository import ActivityRepository
from attendance_bot.services.telegram_client import TelegramClient, get_telegram_client

router = APIRouter(prefix="/telegram", tags=["telegram"])

FAILURE_NOTICE = "⚠️ 系统繁忙，请稍后再试 / Service unavailable, please try again."


@router.post("/webhook", response_model=WebhookResult)
async def telegram_webhook(
    update: TelegramUpdate,
    x_telegram_bot_api_secret_token: str | None = Header(default=None),
    db: Session = Depends(get_db),
    clock: TimeSource = Depends(get_clock),
    telegram: TelegramClient = Depends(get_telegram_client),
):
    """
    Receive an Update from Telegram, apply it to the sender's log and reply.
    Always answers 200 once authenticated so Telegram doesn't redeliver.
    """
    if settings.telegram_webhook_secret and x_telegram_bot_api_secret_token != settings.telegram_webhook_secret:
        raise HTTPException(status_code=403, detail="Invalid webhook secret")

    try:
        event = InboundEvent.from_update(update, settings.default_user_name)
    except MalformedEvent as e:
        print(f"❌ Malformed update: {e}")
        return WebhookResult(status="malformed")

    if event is None:
        return WebhookResult(status="ignored")

    command_router = CommandRouter(ActivityRepository(db), clock)

    try:
        if is_start_command(event.text):
            print(f"👋 /start from {event.user_id} ({event.user_name})")
            reply = await run_in_threadpool(command_router.initialize, event.user_id, event.user_name)
        elif event.is_command:
            return WebhookResult(status="ignored")
        else:
            reply = await run_in_threadpool(command_router.handle, event.user_id, event.user_name, event.text)
    except PersistenceUnavailable as e:
        print(f"❌ Persistence error for user {event.user_id}: {e} ({e.__cause__})")
        sent = await telegram.send_message(event.chat_id, FAILURE_NOTICE)
        return WebhookResult(status="error", replied=sent)
    except MalformedEvent as e:
        print(f"❌ Malformed event: {e}")
        return WebhookResult(status="malformed")

    if reply is None:
        return WebhookResult(status="ignored")

    print(f"📥 {event.user_id} ({event.user_name}): {event.text}")
    sent = await telegram.send_message(event.chat_id, reply)
    return WebhookResult(status="ok", replied=sent)
