import uuid
from datetime import timedelta

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv

from app.poolcrm.config import load_config
from app.poolcrm.routes import bp as routes_bp
from app.poolcrm.modules.contacts.admin import bp as contacts_bp
from app.poolcrm.modules.keap.client import client_from_config


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    # CSRF protection (minimal)
    from app.poolcrm.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None or value == "":
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        # Keap timestamps are ISO-8601 strings; the date part is enough here.
        return str(value)[:10]

    @app.before_request
    def _request_id():
        if not getattr(g, "request_id", None):
            g.request_id = uuid.uuid4().hex

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if not app.config.get("KEAP_API_KEY"):
            raise RuntimeError("KEAP_API_KEY is required in production.")

    # The API key only ever comes from the environment; without it every page
    # shows a configuration error instead of calling Keap.
    if app.config.get("KEAP_API_KEY"):
        app.extensions["keap_client"] = client_from_config(app.config)
        app.logger.info("Keap client configured (base_url=%s)", app.config["KEAP_BASE_URL"])
    else:
        app.extensions["keap_client"] = None
        app.logger.warning("KEAP_API_KEY not set; contact pages will show a configuration error.")

    app.register_blueprint(routes_bp)
    app.register_blueprint(contacts_bp)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        app.logger.exception("Unhandled 500 (request_id=%s)", rid)
        return render_template("errors/500.html", request_id=rid), 500

    # Startup logging
    import logging
    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
