from http.server import BaseHTTPRequestHandler
import base64

from intake import (
    Config, Response, Failure, FailureKind, MSG_CONFIG, MSG_INTERNAL,
    handle_request, setup_logging, to_response,
)

# Contract:
# - Method: POST only (anything else -> 405)
# - Body: application/json with fields: name, email, service (optional), message
# - Env: TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID
# - Success: 200 {success: true, message}
# - Error: 400/405/500 with {success: false, error}

# Vercel/Netlify collect stderr into the function logs
logger = setup_logging()


def _load_config() -> Config:
    return Config.from_env()


def _handle(method, body) -> Response:
    try:
        config = _load_config()
    except ValueError as e:
        return to_response(Failure(FailureKind.CONFIG, MSG_CONFIG, f"bad config: {e}"))
    return handle_request(method, body, config)


class handler(BaseHTTPRequestHandler):
    def _send(self, result: Response):
        payload = result.json().encode('utf-8')
        self.send_response(result.status_code)
        for k, v in result.headers.items():
            self.send_header(k, v)
        self.send_header('Content-Length', str(len(payload)))
        self.end_headers()
        if self.command != 'HEAD':
            self.wfile.write(payload)

    def _dispatch(self):
        try:
            logger.info(f"[submit_form] {self.command} invoked")
            length = int(self.headers.get('Content-Length') or 0)
            raw = self.rfile.read(length) if length > 0 else None
            self._send(_handle(self.command, raw))
        except Exception as e:
            logger.error(f"[submit_form] handler error: {type(e).__name__}: {e}")
            self._send(to_response(Failure(FailureKind.INTERNAL, MSG_INTERNAL, repr(e))))

    do_POST = _dispatch
    do_GET = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch
    do_OPTIONS = _dispatch
    do_HEAD = _dispatch

    def log_message(self, format, *args):
        logger.debug("[submit_form] " + format % args)


def lambda_handler(event, context=None):
    """Event-style entry point ({httpMethod, body, isBase64Encoded})."""
    body = event.get("body")
    if body is not None and event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body)
        except ValueError:
            body = None
    return _handle(event.get("httpMethod"), body).to_event()
