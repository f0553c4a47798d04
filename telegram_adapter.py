# telegram_adapter.py
import logging
import requests

logger = logging.getLogger("contact_form")

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10.0


class TelegramTransportError(Exception):
    """The Bot API could not be reached or did not answer with JSON."""


def send_message(token: str, chat_id: str, text: str, *,
                 api_base: str = TELEGRAM_API_BASE,
                 timeout: float = DEFAULT_TIMEOUT,
                 session=None) -> dict:
    # Returns the decoded Bot API reply; {"ok": false, ...} is returned, not raised.
    url = f"{api_base.rstrip('/')}/bot{token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "Markdown",
        "disable_web_page_preview": True,
    }
    http = session or requests
    logger.info(f"[TG] sendMessage len={len(text)}")
    try:
        r = http.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        # str(e) can embed the URL, which carries the token
        raise TelegramTransportError(f"sendMessage failed: {type(e).__name__}") from e

    try:
        result = r.json()
    except ValueError as e:
        raise TelegramTransportError(f"sendMessage returned non-JSON (HTTP {r.status_code})") from e
    if not isinstance(result, dict):
        raise TelegramTransportError(f"sendMessage returned unexpected JSON (HTTP {r.status_code})")

    logger.debug(f"[TG] reply status={r.status_code} ok={result.get('ok')}")
    return result
