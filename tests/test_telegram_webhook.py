from attendance_bot.config import settings
from attendance_bot.routers.telegram import FAILURE_NOTICE
from attendance_bot.services.command_router import EAT_TOKEN, START_WORK_TOKEN
from attendance_bot.services.repository import ActivityRepository
from attendance_bot.errors import PersistenceUnavailable
from attendance_bot.models.activity import ActivityCategory


def _update(text=None, user=True, chat=True, first_name="Dara", update_id=1):
    message = {"message_id": 10, "date": 1760000000}
    if text is not None:
        message["text"] = text
    if user:
        message["from"] = {"id": 42, "is_bot": False, "first_name": first_name}
    if chat:
        message["chat"] = {"id": 4242, "type": "private"}
    return {"update_id": update_id, "message": message}


def test_start_command_creates_log_and_welcomes(client, telegram, repository):
    response = client.post("/telegram/webhook", json=_update("/start"))

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "replied": True}
    assert telegram.sent[0][0] == 4242
    assert "欢迎，Dara" in telegram.sent[0][1]
    assert repository.find(42, "2026-10-19").activities == []


def test_button_tap_records_activity_and_replies(client, telegram, repository, clock):
    clock.set("09:00:00")
    client.post("/telegram/webhook", json=_update(START_WORK_TOKEN))
    clock.set("09:30:00")
    response = client.post("/telegram/webhook", json=_update(EAT_TOKEN, update_id=2))

    assert response.json()["status"] == "ok"
    assert len(telegram.sent) == 2
    assert "工作 / Work: 30分0秒" in telegram.sent[1][1]

    log = repository.find(42, "2026-10-19")
    assert [(e.category, e.start, e.end) for e in log.activities] == [
        (ActivityCategory.WORK, "09:00:00", "09:30:00"),
        (ActivityCategory.EAT, "09:30:00", None),
    ]


def test_missing_first_name_uses_default(client, telegram):
    client.post("/telegram/webhook", json=_update("/start", first_name=None))
    assert f"欢迎，{settings.default_user_name}" in telegram.sent[0][1]


def test_non_text_message_is_ignored(client, telegram):
    response = client.post("/telegram/webhook", json=_update(None))
    assert response.json()["status"] == "ignored"
    assert telegram.sent == []


def test_update_without_message_is_ignored(client, telegram):
    response = client.post("/telegram/webhook", json={"update_id": 3, "edited_message": {"message_id": 1}})
    assert response.json()["status"] == "ignored"
    assert telegram.sent == []


def test_other_commands_and_free_text_are_ignored(client, telegram, repository):
    for text in ("/help", "hello there"):
        response = client.post("/telegram/webhook", json=_update(text))
        assert response.json()["status"] == "ignored"
    assert telegram.sent == []
    assert repository.find(42, "2026-10-19") is None


def test_message_without_sender_is_malformed(client, telegram):
    response = client.post("/telegram/webhook", json=_update(START_WORK_TOKEN, user=False))
    assert response.status_code == 200
    assert response.json()["status"] == "malformed"
    assert telegram.sent == []


def test_message_without_chat_is_malformed(client, telegram):
    response = client.post("/telegram/webhook", json=_update(START_WORK_TOKEN, chat=False))
    assert response.json()["status"] == "malformed"


def test_persistence_failure_sends_generic_notice(client, telegram, repository, monkeypatch):
    def _fail(self, log):
        self.db.rollback()
        raise PersistenceUnavailable("storage down")

    monkeypatch.setattr(ActivityRepository, "save", _fail)

    response = client.post("/telegram/webhook", json=_update(START_WORK_TOKEN))

    assert response.json() == {"status": "error", "replied": True}
    assert telegram.sent == [(4242, FAILURE_NOTICE)]
    monkeypatch.undo()
    assert repository.find(42, "2026-10-19") is None


def test_webhook_secret_is_enforced(client, telegram, monkeypatch):
    monkeypatch.setattr(settings, "telegram_webhook_secret", "s3cret")

    response = client.post("/telegram/webhook", json=_update("/start"))
    assert response.status_code == 403

    response = client.post(
        "/telegram/webhook",
        json=_update("/start"),
        headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
    )
    assert response.status_code == 200
    assert len(telegram.sent) == 1


def test_failure_notice_reports_whether_it_was_delivered(client, telegram, monkeypatch):
    async def _undeliverable(chat_id, text):
        telegram.sent.append((chat_id, text))
        return False

    def _fail(self, log):
        self.db.rollback()
        raise PersistenceUnavailable("storage down")

    monkeypatch.setattr(telegram, "send_message", _undeliverable)
    monkeypatch.setattr(ActivityRepository, "save", _fail)

    response = client.post("/telegram/webhook", json=_update(START_WORK_TOKEN))

    assert response.json() == {"status": "error", "replied": False}
    assert telegram.sent == [(4242, FAILURE_NOTICE)]
