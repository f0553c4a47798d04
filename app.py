import os, logging
from dotenv import load_dotenv
from flask import Flask, request, Response

from intake import Config, handle_request, setup_logging

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

logger = logging.getLogger("contact_form")

# ==================== FLASK APP ====================
def create_app(config=None, sender=None):
    load_dotenv()
    setup_logging()

    if config is None:
        config = Config.from_env()
    missing = config.missing()
    if missing:
        # Still serve; each submission answers 500 until this is fixed
        logger.warning(f"[FORM] starting without {', '.join(missing)}")

    app = Flask(__name__)

    @app.route("/health")
    def health():
        return {"ok": True}

    def submit_form():
        result = handle_request(request.method, request.get_data(), config, sender=sender)
        return Response(result.json(), status=result.status_code, headers=result.headers)

    for path, endpoint in (("/submit-form", "submit_form"),
                           ("/.netlify/functions/submit-form", "netlify_submit_form")):
        app.add_url_rule(path, endpoint, submit_form, methods=ALL_METHODS,
                         provide_automatic_options=False)

    return app

# ==================== MAIN ====================
if __name__ == "__main__":
    load_dotenv()
    app = create_app()
    port = int(os.environ.get("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=bool(int(os.environ.get("DEBUG", "0"))))
