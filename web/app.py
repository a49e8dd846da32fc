"""
Flask JSON API for SignalPulse.

Endpoints:
  GET  /api/health              - Liveness plus upstream reachability (?deep=1)
  GET  /api/signals/<symbol>    - Combined technical signal for a crypto or stock symbol
  GET  /api/sentiment           - Classified sentiment metrics and overall score
  GET  /api/alerts/check        - Scheduled alert check (Bearer CRON_SECRET)
  GET  /api/alerts/config       - Current alert config (chat id redacted)
  POST /api/alerts/config       - Update alert config
  PUT  /api/alerts/config       - Reset alert config to defaults
  GET  /api/alerts/history      - Alert history (?limit=, ?stats=true)
  POST /api/alerts/test         - Send a test message through the configured sender

Started via: python main.py web [--port 5000] [--host 0.0.0.0]
"""
import hmac
import logging

from flask import Flask, jsonify, request

from __version__ import __version__
from models.alerts import AlertConfigError
from monitor.api import DataUnavailableError

logger = logging.getLogger("signalpulse.web.app")

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100


def create_app(config: dict, engines: dict) -> Flask:
    """
    Factory function. Receives initialized engines from main.py / wsgi.py.

    Args:
        config: Application config dict
        engines: dict with ``monitor`` (SignalMonitor), ``alert_engine`` (AlertEngine),
                 ``market`` (MarketDataRegistry) and optionally ``bot`` (TelegramBot)
    """
    app = Flask(__name__)
    cron_secret = config.get("web", {}).get("cron_secret")

    monitor = engines["monitor"]
    alert_engine = engines["alert_engine"]

    def _authorized():
        if not cron_secret:
            return True  # not configured: local development
        header = request.headers.get("Authorization", "")
        return hmac.compare_digest(header, f"Bearer {cron_secret}")

    @app.errorhandler(DataUnavailableError)
    def data_unavailable(e):
        logger.warning(f"Upstream unavailable: {e}")
        return jsonify({"error": str(e), "source": e.source}), 503

    @app.errorhandler(AlertConfigError)
    def config_error(e):
        return jsonify({"error": str(e)}), 400

    # ─── Market ──────────────────────────────────────────

    @app.route("/api/health")
    def api_health():
        body = {"status": "ok", "version": __version__}
        if request.args.get("deep") and "market" in engines:
            body["upstreams"] = engines["market"].health_check()
        return jsonify(body)

    @app.route("/api/signals/<symbol>")
    def api_signals(symbol):
        asset_type = request.args.get("type")
        if asset_type not in (None, "crypto", "stock"):
            return jsonify({"error": "type must be 'crypto' or 'stock'"}), 400
        ids = request.args.get("indicators")
        enabled = [i.strip() for i in ids.split(",") if i.strip()] if ids is not None else None
        analysis = monitor.analyze(symbol, asset_type=asset_type, enabled_ids=enabled)
        return jsonify(analysis.to_dict())

    @app.route("/api/sentiment")
    def api_sentiment():
        _, summary = monitor.sentiment()
        return jsonify(summary.to_dict())

    # ─── Alerts ──────────────────────────────────────────

    @app.route("/api/alerts/check", methods=["GET", "POST"])
    def api_alerts_check():
        if not _authorized():
            return jsonify({"error": "Unauthorized"}), 401
        result = monitor.run_alert_check()
        return jsonify(result.to_dict())

    @app.route("/api/alerts/config", methods=["GET"])
    def api_alerts_config():
        return jsonify({"config": alert_engine.get_config().to_dict(redact=True)})

    @app.route("/api/alerts/config", methods=["POST"])
    def api_alerts_config_update():
        updates = request.get_json(silent=True)
        if not isinstance(updates, dict):
            return jsonify({"error": "Expected a JSON object"}), 400

        if updates.get("telegram_enabled") and updates.get("telegram_chat_id"):
            bot = engines.get("bot")
            if bot is None:
                return jsonify({"error": "TELEGRAM_BOT_TOKEN not configured on server"}), 500
            if not bot.verify_chat(str(updates["telegram_chat_id"])):
                return jsonify({"error": "Telegram verification failed: chat not reachable"}), 400

        config = alert_engine.update_config(**updates)
        logger.info(f"Alert config updated: {sorted(updates)}")
        return jsonify({"success": True, "config": config.to_dict(redact=True)})

    @app.route("/api/alerts/config", methods=["PUT"])
    def api_alerts_config_reset():
        config = alert_engine.reset_config()
        return jsonify({"success": True, "message": "Config reset to defaults",
                        "config": config.to_dict(redact=True)})

    @app.route("/api/alerts/history")
    def api_alerts_history():
        try:
            limit = int(request.args.get("limit", DEFAULT_HISTORY_LIMIT))
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400
        history = alert_engine.get_history(min(limit, MAX_HISTORY_LIMIT))
        stats = alert_engine.get_alert_stats() if request.args.get("stats") == "true" else None
        return jsonify({
            "history": [e.to_dict() for e in history],
            "stats": stats,
            "count": len(history),
        })

    @app.route("/api/alerts/test", methods=["POST"])
    def api_alerts_test():
        result = alert_engine.send_test_alert()
        status = 200 if result.success else 502
        return jsonify({"success": result.success, "messageId": result.message_id,
                        "error": result.error}), status

    return app
