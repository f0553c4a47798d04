import json
from datetime import datetime, timezone

import pytest

from intake import Config

FIXED_NOW = datetime(2026, 10, 19, 12, 5, tzinfo=timezone.utc)  # 14:05 in Johannesburg


class FakeSender:
    """Stands in for telegram_adapter.send_message and records each call."""

    def __init__(self, reply=None, exc=None):
        self.reply = {"ok": True, "result": {"message_id": 1}} if reply is None else reply
        self.exc = exc
        self.calls = []

    def __call__(self, token, chat_id, text, **kwargs):
        self.calls.append({"token": token, "chat_id": chat_id, "text": text, **kwargs})
        if self.exc is not None:
            raise self.exc
        return self.reply


@pytest.fixture
def config():
    return Config(bot_token="123:secret-token", chat_id="-1001")


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def jane():
    return json.dumps({"name": "Jane", "email": "jane@x.com", "message": "Need a website"})
