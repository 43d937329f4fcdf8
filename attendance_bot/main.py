from contextlib import asynccontextmanager
from fastapi import FastAPI
from attendance_bot.config import settings
from attendance_bot.db import init_db
from attendance_bot.routers import activity, telegram
from attendance_bot.services.telegram_client import telegram_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.telegram_webhook_url:
        await telegram_client.set_webhook(settings.telegram_webhook_url, settings.telegram_webhook_secret)
    print(f"🤖 Attendance bot ready ({settings.timezone})")
    yield


app = FastAPI(title="Attendance Bot", debug=settings.debug, lifespan=lifespan)

app.include_router(telegram.router)
app.include_router(activity.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
