#!/usr/bin/env python3
"""SignalPulse - CLI Entry Point."""
import sys
import json
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.table import Table

from __version__ import __version__

console = Console()
logger = logging.getLogger("signalpulse.cli")


def build_components(config):
    """Wire store, providers, sender, engine and monitor from a loaded config."""
    from models.database import Database
    from monitor.api import MarketDataRegistry
    from monitor.monitor import SignalMonitor
    from alerts.engine import AlertEngine
    from alerts.channels import ConsoleChannel, TelegramChannel
    from notifications.telegram_bot import TelegramBot

    db = Database(config["database"]["path"])
    db.connect()

    market = MarketDataRegistry(config)

    tg_config = config.get("telegram", {})
    bot = None
    sender = None
    if tg_config.get("bot_token"):
        bot = TelegramBot(tg_config["bot_token"], tg_config.get("chat_id"),
                          timeout=tg_config.get("timeout", 30))
        sender = TelegramChannel(bot)
    elif sys.stdout.isatty():
        sender = ConsoleChannel(console)

    alert_engine = AlertEngine(db, sender, user_id=config["alerts"].get("user_id", "default"))
    seed = dict(config["alerts"])
    if tg_config.get("chat_id"):
        seed["telegram_chat_id"] = tg_config["chat_id"]
        seed["telegram_enabled"] = bot is not None
    alert_engine.ensure_config(seed)

    monitor = SignalMonitor(market, db, alert_engine, config)
    return {
        "config": config, "db": db, "market": market, "monitor": monitor,
        "alert_engine": alert_engine, "bot": bot, "sender": sender,
    }


def _init_components(config_path=None, verbose=False):
    """Lazy initialization of all components."""
    from utils.logger import setup_logging
    from config import load_config

    config = load_config(config_path)
    level = "DEBUG" if verbose else config["logging"]["level"]
    setup_logging(level, config["logging"].get("file"))
    return build_components(config)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="signalpulse")
@click.pass_context
def cli(ctx, config_path, verbose):
    """SignalPulse - technical signals, market sentiment and Telegram alerts."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_components(ctx):
    if "_components" not in ctx.obj:
        ctx.obj["_components"] = _init_components(ctx.obj.get("config_path"), ctx.obj.get("verbose"))
    return ctx.obj["_components"]


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


def _fail(message):
    console.print(f"[red]✗[/red] {message}")
    sys.exit(1)


# ──────────────────────────────────────────────────────
# HEALTH
# ──────────────────────────────────────────────────────
@cli.command()
@click.pass_context
def health(ctx):
    """Check database and upstream API connectivity."""
    c = _get_components(ctx)
    console.print("[bold cyan]SignalPulse - Health[/bold cyan]\n")
    console.print(f"[green]✓[/green] Database: {c['config']['database']['path']}")
    for name, info in c["market"].health_check().items():
        status = "[green]✓[/green]" if info["reachable"] else "[red]✗[/red]"
        console.print(f"  {status} {name} ({info['latency_ms']}ms)")
    sender = type(c["sender"]).__name__ if c["sender"] else "none"
    console.print(f"\nNotification sender: [bold]{sender}[/bold]")


# ──────────────────────────────────────────────────────
# SIGNALS
# ──────────────────────────────────────────────────────
@cli.group()
def signals():
    """Technical indicator signals."""
    pass


@signals.command("analyze")
@click.argument("symbol")
@click.option("--type", "asset_type", type=click.Choice(["crypto", "stock"]), default=None,
              help="Asset type (default: crypto for known tickers, else stock)")
@click.option("--indicators", default=None, help="Comma-separated indicator ids")
@click.option("--all", "all_indicators", is_flag=True, help="Run every available indicator")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def signals_analyze(ctx, symbol, asset_type, indicators, all_indicators, as_json):
    """Run the enabled indicators over SYMBOL's daily history."""
    from indicators.registry import indicator_ids
    from monitor.api import DataUnavailableError
    from utils.formatters import format_pct, format_score, format_signal, format_usd

    c = _get_components(ctx)
    ids = None
    if all_indicators:
        ids = indicator_ids()
    elif indicators:
        ids = [i.strip() for i in indicators.split(",") if i.strip()]

    try:
        analysis = c["monitor"].analyze(symbol, asset_type=asset_type, enabled_ids=ids)
    except DataUnavailableError as e:
        _fail(str(e))

    if as_json:
        _echo_json(analysis.to_dict())
        return

    sig = analysis.signal
    console.print(f"\n[bold]{analysis.symbol}[/bold] ({analysis.asset_type}) "
                  f"{format_usd(analysis.price)} {format_pct(analysis.change_pct, with_color=True)}")
    console.print(f"Overall: {format_signal(sig.overall)}  Score: {format_score(sig.score)}  "
                  f"[green]{sig.bullish_count} bullish[/green] / "
                  f"[red]{sig.bearish_count} bearish[/red] / {sig.neutral_count} neutral\n")

    table = Table(show_header=True)
    table.add_column("Indicator")
    table.add_column("Value", justify="right")
    table.add_column("Signal")
    table.add_column("Description", style="dim")
    for r in sig.indicators:
        table.add_row(r.name, f"{r.value}", format_signal(r.signal), r.description)
    console.print(table)


@signals.command("indicators")
def signals_indicators():
    """List available indicators."""
    from indicators.registry import ALL_INDICATORS

    table = Table(title="Indicators", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Min prices", justify="right")
    table.add_column("Default")
    table.add_column("Description")
    for ind in ALL_INDICATORS:
        table.add_row(ind.id, ind.name, str(ind.min_length),
                      "[green]✓[/green]" if ind.enabled_by_default else "",
                      ind.description)
    console.print(table)


# ──────────────────────────────────────────────────────
# SENTIMENT
# ──────────────────────────────────────────────────────
@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sentiment(ctx, as_json):
    """Show contrarian sentiment readings (fear & greed, funding, long/short, OI)."""
    from utils.formatters import format_score, format_signal

    c = _get_components(ctx)
    _, summary = c["monitor"].sentiment()
    if as_json:
        _echo_json(summary.to_dict())
        return

    table = Table(title="Market Sentiment", show_header=True)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_column("Signal")
    table.add_column("Description", style="dim")
    for m in summary.metrics:
        table.add_row(m.name, f"{m.value}", format_signal(m.signal), m.description)
    console.print(table)
    if not summary.metrics:
        console.print("[yellow]No sentiment data available[/yellow]")
    console.print(f"Overall: {format_signal(summary.overall)}  Score: {format_score(summary.score)}")


# ──────────────────────────────────────────────────────
# ALERTS
# ──────────────────────────────────────────────────────
@cli.group()
def alerts():
    """Alert conditions, configuration and history."""
    pass


@alerts.command("check")
@click.pass_context
def alerts_check(ctx):
    """Fetch current metrics and fire an alert if a condition matches."""
    from models.alerts import AlertConfigError
    from monitor.api import DataUnavailableError
    from utils.formatters import format_alert_type, format_timestamp

    c = _get_components(ctx)
    try:
        result = c["monitor"].run_alert_check()
    except (AlertConfigError, DataUnavailableError) as e:
        _fail(f"Alert check failed: {e}")

    if not result.decision.should_send:
        console.print(f"[green]All clear[/green] - {result.reason}")
    elif result.suppressed:
        console.print(f"[yellow]Suppressed[/yellow] {format_alert_type(result.alert_type)} "
                      f"{result.reason} (next allowed {format_timestamp(result.next_allowed_at)})")
    elif result.event and result.event.delivered:
        console.print(f"[green]Sent[/green] {format_alert_type(result.alert_type)} {result.reason}")
    else:
        error = result.event.error if result.event else "unknown error"
        console.print(f"[red]Delivery failed[/red] {format_alert_type(result.alert_type)} "
                      f"{result.reason}: {error}")


@alerts.command("test")
@click.pass_context
def alerts_test(ctx):
    """Evaluate every rule against current metrics, ignoring the cooldown."""
    from utils.formatters import format_timestamp

    c = _get_components(ctx)
    snapshot = c["monitor"].current_snapshot()
    report = c["alert_engine"].test_rules(snapshot)

    table = Table(title="Alert Rules Test", show_header=True)
    table.add_column("Rule")
    table.add_column("Metric")
    table.add_column("Condition")
    table.add_column("Current")
    table.add_column("Would Fire")
    table.add_column("Enabled")
    for r in report["rules"]:
        fire_str = "[green]YES[/green]" if r["would_fire"] else "[dim]no[/dim]"
        if r["selected"]:
            fire_str += " [bold](wins)[/bold]"
        val = f"{r['current_value']:.4g}" if r["current_value"] is not None else "N/A"
        table.add_row(r["name"], r["metric"], f"{r['operator']} {r['threshold']:g}", val,
                      fire_str, "✓" if r["enabled"] else "✗")
    console.print(table)

    decision = report["decision"]
    console.print(f"Decision: [bold]{decision.alert_type.value}[/bold] - {decision.reason}")
    if report["next_allowed_at"]:
        console.print(f"Cooldown until: {format_timestamp(report['next_allowed_at'])}")


@alerts.command("send-test")
@click.option("--console", "to_console", is_flag=True, help="Print instead of using Telegram")
@click.pass_context
def alerts_send_test(ctx, to_console):
    """Send a test message through the notification sender."""
    from alerts.channels import ConsoleChannel
    from alerts.engine import AlertEngine

    c = _get_components(ctx)
    engine = c["alert_engine"]
    if to_console:
        engine = AlertEngine(engine.store, ConsoleChannel(console), user_id=engine.user_id)
    result = engine.send_test_alert()
    if result.success:
        console.print(f"[green]✓[/green] Test alert sent ({result.message_id})")
    else:
        _fail(f"Test alert failed: {result.error}")


@alerts.command("history")
@click.option("--limit", default=20, type=click.IntRange(1, 100), help="Number of alerts")
@click.option("--stats", is_flag=True, help="Include per-type statistics")
@click.pass_context
def alerts_history(ctx, limit, stats):
    """Show past alerts."""
    from utils.formatters import format_alert_type, format_timestamp

    c = _get_components(ctx)
    history = c["alert_engine"].get_history(limit)
    if not history:
        console.print("[dim]No alerts in history[/dim]")
    else:
        table = Table(title="Alert History", show_header=True)
        table.add_column("Time", style="dim")
        table.add_column("Type")
        table.add_column("Reason")
        table.add_column("Delivered")
        for e in history:
            delivered = "[green]✓[/green]" if e.delivered else f"[red]✗[/red] {e.error or ''}"
            table.add_row(format_timestamp(e.timestamp), format_alert_type(e.alert_type),
                          e.reason, delivered)
        console.print(table)

    if stats:
        s = c["alert_engine"].get_alert_stats()
        by_type = ", ".join(f"{k}: {v}" for k, v in sorted(s["by_type"].items())) or "none"
        console.print(f"\nTotal sent: {s['total']} ({by_type})  Failed: {s['failed']}")
        console.print(f"Last 24h: {s['last_24h']}  Last 7d: {s['last_7d']}")


@alerts.group("config")
def alerts_config():
    """View or change alert thresholds."""
    pass


@alerts_config.command("show")
@click.pass_context
def alerts_config_show(ctx):
    c = _get_components(ctx)
    config = c["alert_engine"].get_config().to_dict(redact=True)
    table = Table(title="Alert Config", show_header=True)
    table.add_column("Setting")
    table.add_column("Value")
    for key, val in config.items():
        table.add_row(key, str(val))
    console.print(table)


@alerts_config.command("set")
@click.argument("pairs", nargs=-1, required=True)
@click.pass_context
def alerts_config_set(ctx, pairs):
    """Update settings, e.g. ``fear_greed_buy_threshold=20 telegram_enabled=true``."""
    from models.alerts import AlertConfigError

    changes = {}
    for pair in pairs:
        if "=" not in pair:
            _fail(f"Expected key=value, got '{pair}'")
        key, value = pair.split("=", 1)
        changes[key.strip()] = None if value.strip().lower() in ("", "none", "null") else value.strip()

    c = _get_components(ctx)
    try:
        c["alert_engine"].update_config(**changes)
    except AlertConfigError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] Updated {', '.join(sorted(changes))}")


@alerts_config.command("reset")
@click.confirmation_option(prompt="Reset alert config to defaults?")
@click.pass_context
def alerts_config_reset(ctx):
    c = _get_components(ctx)
    c["alert_engine"].reset_config()
    console.print("[green]✓[/green] Alert config reset to defaults (alerts disabled)")


# ──────────────────────────────────────────────────────
# SCHEDULER / WEB
# ──────────────────────────────────────────────────────
@cli.command()
@click.option("--interval", default=None, type=click.IntRange(min=60),
              help="Seconds between checks (default from config)")
@click.pass_context
def run(ctx, interval):
    """Run scheduled alert checks until interrupted."""
    from monitor.scheduler import AlertScheduler, run_forever

    c = _get_components(ctx)
    interval = interval or c["config"]["monitor"]["check_interval"]
    scheduler = AlertScheduler(c["monitor"], interval_seconds=interval)
    console.print(f"[bold cyan]SignalPulse[/bold cyan] checking every {interval}s. Ctrl+C to stop.")
    run_forever(scheduler)


@cli.command()
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--host", default=None, type=str, help="Host to bind to")
@click.pass_context
def web(ctx, port, host):
    """Launch the JSON API server."""
    from web.app import create_app

    c = _get_components(ctx)
    web_cfg = c["config"].get("web", {})
    host = host or web_cfg.get("host", "127.0.0.1")
    port = port or web_cfg.get("port", 5000)

    app = create_app(c["config"], c)
    console.print(f"\n[bold cyan]SignalPulse API[/bold cyan] on http://{host}:{port}")
    console.print("  Press Ctrl+C to stop.\n")
    app.run(host=host, port=port, debug=False)


if __name__ == "__main__":
    cli()
