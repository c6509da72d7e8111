"""Click CLI for mbr-tui."""

from dataclasses import asdict, fields
from typing import Optional

import click
from trogon import tui

from mbr_tui import __version__
from mbr_tui.api import MetabaseClient, ServiceClient
from mbr_tui.config import API_KEY_ENV, MbrConfig, get_api_key
from mbr_tui.errors import ApiError, ConfigurationError
from mbr_tui.log import configure_logging


def build_service(config: MbrConfig, url: Optional[str] = None) -> ServiceClient:
    """Create the API facade from configuration and environment."""
    client = MetabaseClient(
        config.resolve_url(url),
        api_key=get_api_key(),
        timeout=config.request_timeout,
        query_timeout=config.query_timeout,
        max_retries=config.max_retries,
    )
    return ServiceClient(
        client,
        question_limit=config.question_limit,
        collection_question_limit=config.collection_question_limit,
        preview_limit=config.preview_limit,
    )


@tui()
@click.group()
@click.version_option(version=__version__, prog_name="mbr-tui")
def cli() -> None:
    """mbr-tui - Interactive terminal client for Metabase.

    Browse questions, collections and databases, run saved questions and
    explore their results.

    Quick start:
        export MBR_API_KEY=...      API key for your Metabase server
        mbr-tui config set-url URL  Remember the server URL
        mbr-tui whoami              Check the connection
        mbr-tui dashboard           Launch the interactive client
        mbr-tui tui                 Launch command explorer (Trogon)
    """


@cli.command()
@click.option("--url", "-u", help="Server URL (overrides MBR_URL and config)")
@click.option("--page-size", type=click.IntRange(min=1), help="Rows per result page")
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
def dashboard(
    url: Optional[str],
    page_size: Optional[int],
    verbose: bool,
    log_file: Optional[str],
) -> None:
    """Launch the interactive dashboard.

    Keyboard shortcuts:
        1 2 3 - Questions / Collections / Databases
        Enter - Open or run the selected item
        Esc   - Back
        r     - Refresh
        ?     - Help
        q     - Quit
    """
    config = MbrConfig.load()
    if page_size:
        config.page_size = page_size
    try:
        config.validate()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    configure_logging(verbose=verbose, log_file=log_file or config.log_file)

    if not get_api_key():
        click.echo(f"Warning: {API_KEY_ENV} is not set; requests will be unauthenticated.", err=True)

    from mbr_tui.tui import MbrApp

    service = build_service(config, url)
    app = MbrApp(
        service,
        page_size=config.page_size,
        tick_rate_ms=config.tick_rate_ms,
        theme=config.theme,
        sub_title=service.client.base_url,
    )
    app.run()


@cli.command()
@click.option("--url", "-u", help="Server URL (overrides MBR_URL and config)")
def whoami(url: Optional[str]) -> None:
    """Show the user the API key belongs to."""
    config = MbrConfig.load()
    service = build_service(config, url)
    try:
        user = service.authenticate_check()
    except ApiError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        service.close()

    click.echo(f"✓ Connected to {service.client.base_url}")
    click.echo(f"  User: {user.display_name}")
    if user.email:
        click.echo(f"  Email: {user.email}")
    if user.is_superuser:
        click.echo("  Role: admin")


# =============================================================================
# Config Commands - Manage persistent settings
# =============================================================================


@cli.group()
def config() -> None:
    """Manage mbr-tui settings.

    Settings live in ~/.mbr-tui/config.json (override with MBR_TUI_CONFIG).
    The API key is never stored; set MBR_API_KEY instead.
    """
    pass


@config.command("show")
def config_show() -> None:
    """Show current settings."""
    cfg = MbrConfig.load()
    click.echo(f"Config file: {MbrConfig.get_config_path()}")
    for name, value in asdict(cfg).items():
        click.echo(f"  {name}: {value}")
    click.echo(f"  effective url: {cfg.resolve_url()}")
    click.echo(f"  api key: {'set' if get_api_key() else 'not set'} ({API_KEY_ENV})")


@config.command("set-url")
@click.argument("url")
def config_set_url(url: str) -> None:
    """Set the server URL."""
    _set_and_save("url", url.rstrip("/"))


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set KEY to VALUE."""
    _set_and_save(key, value)


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def config_reset(yes: bool) -> None:
    """Reset all settings to defaults."""
    if not yes:
        click.confirm("Reset all settings to defaults?", abort=True)
    cfg = MbrConfig.load()
    cfg.reset()
    cfg.save()
    click.echo("✓ Settings reset to defaults")


def _set_and_save(key: str, value: str) -> None:
    cfg = MbrConfig.load()
    try:
        cfg.set_value(key, value)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        known = ", ".join(f.name for f in fields(MbrConfig))
        click.echo(f"Known settings: {known}", err=True)
        raise SystemExit(1)
    cfg.save()
    click.echo(f"✓ {key} = {getattr(cfg, key)}")


if __name__ == "__main__":
    cli()
