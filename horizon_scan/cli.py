"""
Command-line interface for Horizon Scan.

Uses Typer. Settings come from the YAML config file, with the database path
and log level overridable by option or environment variable. A .env file in
the working directory is loaded before options are parsed.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
import typer

from .config import AppConfig, load_config
from .digest import build_digest, render_digest_html, run_digest_cycle
from .errors import ConfigError
from .logging_utils import setup_logging
from .pipeline import run_poll_cycle
from .runner import build_provider, build_sender, open_store, serve as serve_forever

app = typer.Typer(add_completion=False, help="RSS horizon scanning with LLM relevance assessment.")
console = Console()

ConfigOption = typer.Option(Path("config.yaml"), "--config", "-c", envvar="CONFIG_PATH", help="YAML config file.")
DatabaseOption = typer.Option(
    None, "--database", "-d", envvar="DATABASE_URL", help="SQLite database path (overrides config)."
)
LogLevelOption = typer.Option(None, "--log-level", envvar="LOG_LEVEL", help="Logging level.")


def _load(config: Path, log_level: str | None) -> AppConfig:
    try:
        cfg = load_config(str(config))
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    setup_logging(cfg.logging, level_override=log_level)
    return cfg


@app.command()
def serve(
    config: Path = ConfigOption,
    database: str | None = DatabaseOption,
    log_level: str | None = LogLevelOption,
):
    """Run the poll and digest schedulers until interrupted."""
    cfg = _load(config, log_level)
    serve_forever(cfg, database)


@app.command()
def poll(
    config: Path = ConfigOption,
    database: str | None = DatabaseOption,
    log_level: str | None = LogLevelOption,
):
    """Run one ingestion cycle: poll, fetch, extract and assess."""
    cfg = _load(config, log_level)
    store = open_store(cfg, database)
    try:
        report = run_poll_cycle(store, cfg, build_provider(cfg))
    finally:
        store.close()
    console.print(
        f"Polled {report.feeds_polled} feed(s): {report.new_articles} new, "
        f"{report.fetched} fetched, {report.extracted} extracted, {report.assessed} assessed"
    )
    if report.feed_errors or report.stage_errors:
        console.print(f"[yellow]{report.feed_errors} feed error(s), stage errors: {report.stage_errors or 'none'}[/yellow]")


@app.command()
def digest(
    config: Path = ConfigOption,
    database: str | None = DatabaseOption,
    log_level: str | None = LogLevelOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the digest HTML instead of sending it."),
):
    """Build and send one digest covering verdicts since the last successful send."""
    cfg = _load(config, log_level)
    store = open_store(cfg, database)
    try:
        with store.session_scope() as session:
            if dry_run:
                data = build_digest(session)
                console.print(f"{data.total_article_count} article(s) in digest window")
                typer.echo(render_digest_html(data))
                return
            sender = build_sender(cfg)
            if sender is None:
                console.print(
                    f"[red]{cfg.mailgun.api_key_env} and {cfg.mailgun.domain_env} must be set to send a digest[/red]"
                )
                raise typer.Exit(code=1)
            record = run_digest_cycle(session, cfg.digest, sender)
            console.print(f"Digest {record.status}: {record.article_count} article(s) to {record.recipient}")
    finally:
        store.close()


@app.command()
def seed(
    config: Path = ConfigOption,
    database: str | None = DatabaseOption,
    log_level: str | None = LogLevelOption,
):
    """Create the database schema and seed feeds and topics."""
    cfg = _load(config, log_level)
    store = open_store(cfg, database)
    store.close()
    console.print(f"Database ready: {database or cfg.database.path}")


def main() -> None:
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
