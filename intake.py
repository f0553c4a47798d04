# intake.py
# Contact form intake: validate a submission and relay it to Telegram.
import os
import json
import logging
from logging.handlers import RotatingFileHandler
import traceback
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union
from zoneinfo import ZoneInfo

import telegram_adapter
from telegram_adapter import TelegramTransportError

logger = logging.getLogger("contact_form")
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

SERVICE_PLACEHOLDER = "Not specified"
DEFAULT_SOURCE_LABEL = "thingsdoneimmediately.com"
DEFAULT_TIMEZONE = "Africa/Johannesburg"

MSG_METHOD = "Method not allowed. Use POST."
MSG_REQUIRED = "Name, email, and message are required."
MSG_CONFIG = "Server configuration error."
MSG_UPSTREAM = "Failed to send notification. Please try again."
MSG_INTERNAL = "Internal server error. Please try again later."
MSG_SENT = "Message sent successfully! I'll contact you within 24 hours."

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ==================== LOGGING ====================
def setup_logging():
    """Console handler (stderr) plus an optional rotating file under LOG_DIR. Idempotent."""
    logger.setLevel(logging.DEBUG if os.environ.get("DEBUG", "0") == "1" else logging.INFO)
    if logger.handlers:
        return logger
    _formatter = logging.Formatter(LOG_FORMAT)
    _console = logging.StreamHandler(); _console.setFormatter(_formatter); logger.addHandler(_console)
    log_dir = os.environ.get("LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        _file = RotatingFileHandler(os.path.join(log_dir, "app.log"), maxBytes=2_000_000, backupCount=3, encoding="utf-8")
        _file.setFormatter(_formatter); logger.addHandler(_file)
    return logger


# ==================== CONFIG ====================
@dataclass(frozen=True)
class Config:
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None
    source_label: str = DEFAULT_SOURCE_LABEL
    timezone: str = DEFAULT_TIMEZONE
    api_base: str = telegram_adapter.TELEGRAM_API_BASE
    timeout: float = telegram_adapter.DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ

        def _get(key, default=None):
            v = (env.get(key) or "").strip()
            return v or default

        return cls(
            bot_token=_get("TELEGRAM_BOT_TOKEN"),
            chat_id=_get("TELEGRAM_CHAT_ID"),
            source_label=_get("CONTACT_SOURCE_LABEL", DEFAULT_SOURCE_LABEL),
            timezone=_get("CONTACT_TIMEZONE", DEFAULT_TIMEZONE),
            api_base=_get("TELEGRAM_API_BASE", telegram_adapter.TELEGRAM_API_BASE),
            timeout=float(_get("TELEGRAM_TIMEOUT", telegram_adapter.DEFAULT_TIMEOUT)),
        )

    def missing(self) -> list:
        out = []
        if not self.bot_token: out.append("TELEGRAM_BOT_TOKEN")
        if not self.chat_id: out.append("TELEGRAM_CHAT_ID")
        return out


# ==================== RESULTS ====================
class FailureKind(Enum):
    METHOD = "method"
    VALIDATION = "validation"
    CONFIG = "config"
    UPSTREAM = "upstream"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        # config, upstream and internal all look the same to the caller
        return {FailureKind.METHOD: 405, FailureKind.VALIDATION: 400}.get(self, 500)


@dataclass(frozen=True)
class Ok:
    value: Any = None


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    error: str            # safe to show the caller
    detail: str = ""      # server-side only


Result = Union[Ok, Failure]


@dataclass(frozen=True)
class Response:
    status_code: int
    body: dict
    headers: dict = field(default_factory=lambda: dict(RESPONSE_HEADERS))

    def json(self) -> str:
        return json.dumps(self.body)

    def to_event(self) -> dict:
        return {"statusCode": self.status_code, "headers": dict(self.headers), "body": self.json()}


@dataclass(frozen=True)
class Submission:
    name: str
    email: str
    message: str
    service: str = SERVICE_PLACEHOLDER


# ==================== STAGES ====================
def check_method(method) -> Result:
    if (method or "").upper() != "POST":
        return Failure(FailureKind.METHOD, MSG_METHOD, f"method={method!r}")
    return Ok()


def parse_body(body) -> Result:
    if body is None:
        return Failure(FailureKind.INTERNAL, MSG_INTERNAL, "empty body")
    try:
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return Failure(FailureKind.INTERNAL, MSG_INTERNAL, f"bad JSON body: {e}")
    if not isinstance(data, dict):
        return Failure(FailureKind.INTERNAL, MSG_INTERNAL, f"body is {type(data).__name__}, not an object")
    return Ok(data)


def validate_submission(data: Mapping) -> Result:
    name, email, message = data.get("name"), data.get("email"), data.get("message")
    if not name or not email or not message:
        return Failure(FailureKind.VALIDATION, MSG_REQUIRED)
    service = data.get("service") or SERVICE_PLACEHOLDER
    return Ok(Submission(name=str(name), email=str(email), message=str(message), service=str(service)))


def validate_config(config: Config) -> Result:
    missing = config.missing()
    if missing:
        return Failure(FailureKind.CONFIG, MSG_CONFIG, f"missing environment variables: {', '.join(missing)}")
    return Ok(config)


def format_timestamp(now: datetime, tz: str = DEFAULT_TIMEZONE) -> str:
    # en-ZA style: "04 Oct 2026, 00:05"
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(tz))
    return f"{local.day:02d} {_MONTHS[local.month - 1]} {local.year}, {local:%H:%M}"


def format_notification(sub: Submission, now: datetime,
                        source_label: str = DEFAULT_SOURCE_LABEL,
                        tz: str = DEFAULT_TIMEZONE) -> str:
    # Fields go in as-is; Markdown control characters are not escaped.
    rule = "━" * 20
    return "\n".join([
        "📬 *NEW CLIENT INQUIRY*",
        rule,
        f"👤 *Name:* {sub.name}",
        f"📧 *Email:* {sub.email}",
        f"🎯 *Service:* {sub.service}",
        rule,
        "📝 *Project Details:*",
        sub.message,
        rule,
        f"⏰ *Time:* {format_timestamp(now, tz)}",
        f"📍 *Source:* {source_label}",
        rule,
        f"📧 *Reply to client:* mailto:{sub.email}",
    ])


def deliver(text: str, config: Config, sender: Callable = telegram_adapter.send_message) -> Result:
    try:
        reply = sender(config.bot_token, config.chat_id, text,
                       api_base=config.api_base, timeout=config.timeout)
    except TelegramTransportError as e:
        return Failure(FailureKind.INTERNAL, MSG_INTERNAL, str(e))
    if not reply.get("ok"):
        return Failure(FailureKind.UPSTREAM, MSG_UPSTREAM, f"Telegram API error: {json.dumps(reply, ensure_ascii=False)}")
    return Ok(reply)


# ==================== RESPONSE MAPPING ====================
def to_response(result: Result) -> Response:
    if isinstance(result, Ok):
        return Response(200, {"success": True, "message": MSG_SENT})
    if result.kind is FailureKind.METHOD:
        logger.info(f"[FORM] rejected {result.detail}")
    elif result.kind is FailureKind.VALIDATION:
        logger.info("[FORM] rejected: missing required field")
    else:
        logger.error(f"[FORM] {result.kind.name} failure: {result.detail}")
    return Response(result.kind.status_code, {"success": False, "error": result.error})


def _pipeline(method, body, config: Config, sender, clock) -> Result:
    res = check_method(method)
    if isinstance(res, Failure): return res

    res = parse_body(body)
    if isinstance(res, Failure): return res

    res = validate_submission(res.value)
    if isinstance(res, Failure): return res
    sub = res.value

    res = validate_config(config)
    if isinstance(res, Failure): return res

    text = format_notification(sub, clock(), config.source_label, config.timezone)
    return deliver(text, config, sender)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def handle_request(method, body, config: Config, *,
                   sender: Optional[Callable] = None,
                   clock: Optional[Callable[[], datetime]] = None) -> Response:
    """Run one form submission end to end. Always returns a Response."""
    sender = sender or telegram_adapter.send_message
    clock = clock or _utcnow
    try:
        result = _pipeline(method, body, config, sender, clock)
    except Exception as e:
        logger.debug("[FORM] TRACE:\n" + traceback.format_exc())
        result = Failure(FailureKind.INTERNAL, MSG_INTERNAL, repr(e))
    if isinstance(result, Ok):
        logger.info("[FORM] notification delivered")
    return to_response(result)
