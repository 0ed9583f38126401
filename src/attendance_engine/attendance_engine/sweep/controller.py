from __future__ import annotations

import hmac
import logging

import click
from flask import Flask, current_app, jsonify, request

from ..common.http import as_flag, json_errors
from ..container import Container

logger = logging.getLogger(__name__)


def _cron_authorized() -> bool:
    secret = current_app.config.get("CRON_SECRET") or ""
    if not secret:
        # Without a configured secret the trigger is only open in debug mode.
        return bool(current_app.config.get("DEBUG"))
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header.encode("utf-8"), f"Bearer {secret}".encode("utf-8"))


def register(app: Flask, container: Container) -> None:
    @app.route("/api/cron/auto-checkout", methods=["POST"], endpoint="api_cron_auto_checkout")
    @json_errors
    def api_cron_auto_checkout():
        if not _cron_authorized():
            logger.warning("Rejected auto-checkout trigger from %s", request.remote_addr)
            return jsonify({"success": False, "kind": "unauthorized", "message": "Unauthorized"}), 401
        report = container.sweep.run(dry_run=as_flag(request.args.get("dry_run")))
        return jsonify({"success": True, "report": report.as_dict()}), 200

    @app.route("/api/cron/checkout-reminders", methods=["POST"], endpoint="api_cron_checkout_reminders")
    @json_errors
    def api_cron_checkout_reminders():
        if not _cron_authorized():
            logger.warning("Rejected reminder trigger from %s", request.remote_addr)
            return jsonify({"success": False, "kind": "unauthorized", "message": "Unauthorized"}), 401
        report = container.reminders.run()
        return jsonify({"success": True, "report": report.as_dict()}), 200

    @app.cli.command("auto-checkout")
    @click.option("--dry-run", is_flag=True, help="Only list the records that would be closed.")
    def auto_checkout_command(dry_run: bool):
        """Close open records whose owner forgot to check out."""
        report = container.sweep.run(dry_run=dry_run)
        for item in report.items:
            click.echo(f"{item.action:12} record={item.record_id} user={item.user_id} checkout={item.fallback_checkout}")
        click.echo(
            f"processed={report.processed} would_close={report.would_close} "
            f"skipped={report.skipped} errors={len(report.errors)}"
        )

    @app.cli.command("checkout-reminders")
    def checkout_reminders_command():
        """Send the checkout reminders that are due for open shift records."""
        report = container.reminders.run()
        for item in report.items:
            click.echo(f"record={item.record_id} user={item.user_id} reminders={','.join(item.reminders) or '-'} {item.error}")
        click.echo(f"sent={report.sent} errors={len(report.errors)}")
