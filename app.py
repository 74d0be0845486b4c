import json
import logging

import click
from flask import Flask
from flask_migrate import Migrate

from config import Config
from models import db
from models.user import User
from routes import ALL_BLUEPRINTS
from security.cors import apply_cors_headers
from security.rate_limit import prune_counters
from security.rbac import admin_allowlists
from security.session import create_session
from services.reconcile import reconcile_checkout
from services.reminders import run_daily
from utils.auth_context import load_current_user
from utils.errors import ApiError, register_error_handlers
from utils.log_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app.config)

    # Register routes
    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_error_handlers(app)

    ids, emails = admin_allowlists(app.config)
    if not ids and not emails:
        # the admin guard answers 500 until ADMIN_UIDS or ADMIN_EMAILS is set
        logger.error("admin_allowlist_missing")

    @app.before_request
    def _load_user():
        load_current_user()

    @app.after_request
    def add_security_headers(resp):
        apply_cors_headers(resp)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_cli(app):
    @app.cli.command("issue-token")
    @click.argument("email")
    @click.option("--label", default="cli", help="Stored with the session for auditing.")
    def issue_token(email, label):
        """Issue a bearer token for an existing user."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            raise click.ClickException("User not found")
        click.echo(create_session(user.id, label=label))

    @app.cli.command("send-reminders")
    def send_reminders():
        """Send tomorrow's appointment reminders (run once a day)."""
        summary = run_daily()
        click.echo(json.dumps(summary.to_dict()))

    @app.cli.command("reconcile-checkout")
    @click.argument("session_file", type=click.File("r"))
    @click.option("--no-notify", is_flag=True, help="Skip the confirmation notification.")
    def reconcile_checkout_cmd(session_file, no_notify):
        """Replay a saved Checkout Session JSON (webhook backfill)."""
        data = json.load(session_file)
        session = data.get("session", data) if isinstance(data, dict) else data
        try:
            result = reconcile_checkout(session, notify=not no_notify)
        except ApiError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"booking {result.booking_id} <- {result.payment_intent_id}")

    @app.cli.command("prune-rate-limits")
    @click.option("--older-than", default=86400, show_default=True, help="Seconds.")
    def prune_rate_limits(older_than):
        """Delete rate-limit buckets that can no longer affect a decision."""
        click.echo(f"deleted {prune_counters(older_than)} buckets")


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
