"""Store commands: auth, status."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.panel import Panel

from ..config import config_path
from ..sync import AWSSecretsManagerStore, create_store
from ._common import console, get_config, report_errors


def register_auth_commands(main: click.Group) -> None:
    """Register the store credential and status commands."""

    @main.command("auth")
    @click.pass_context
    @report_errors
    def auth_cmd(ctx):
        """Authenticate with AWS Secrets Manager."""
        store = create_store(get_config(ctx), ctx.obj["home"])
        if not isinstance(store, AWSSecretsManagerStore):
            console.print(
                f"[yellow]The {store.name} store needs no authentication.[/]"
            )
            return

        store.configure()
        identity = store.identity()
        console.print(f"AWS Account ID: [cyan]{escape(identity['account'])}[/]")
        console.print(f"AWS User ID: [cyan]{escape(identity['user_id'])}[/]")

    @main.command("status")
    @click.pass_context
    def status_cmd(ctx):
        """Show the configured secret store."""
        home = ctx.obj["home"]
        config = get_config(ctx)
        store = create_store(config, home)

        cfg_file = config_path(home)
        lines = [
            f"Config: {escape(str(cfg_file))}"
            + ("" if cfg_file.exists() else " [dim](defaults)[/]"),
            f"Backend: [cyan]{store.name}[/]",
        ]
        if isinstance(store, AWSSecretsManagerStore):
            lines.append(f"Profile: {escape(config.aws_profile)}")
            lines.append(f"Region: {escape(config.aws_region or 'profile default')}")
        else:
            lines.append(f"Path: {escape(str(store.path))}")
        lines.append(
            "Available: "
            + ("[green]yes[/]" if store.available() else "[yellow]no[/]")
        )
        lines.append(
            f"Backup on reset: {'yes' if config.backup_on_reset else 'no'}"
        )

        console.print()
        console.print(Panel("\n".join(lines), title="tc-secrets", border_style="magenta"))
        console.print()
