"""CLI entry point for mrdecor.

Commands:
  decorate     — reconcile an analysis report with a merge request's discussions
  discussions  — show how existing discussions are classified (read-only)
  init         — interactive setup wizard
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from mrdecor_cli.commands.decorate import decorate_cmd
from mrdecor_cli.commands.discussions import discussions_cmd
from mrdecor_cli.commands.init import init_cmd


def _build_client(config: dict, shadow: bool = False):
    """Instantiate the GitLab client from config, wrapped for shadow runs.

    Lives in cli.py so mrdecor_core never needs to know about tokens or the
    CLI config format.
    """
    from mrdecor_core.client.gitlab import GitlabClient
    from mrdecor_core.client.shadow import ShadowClient

    token = config.get("gitlab_token")
    if not token:
        raise click.UsageError(
            "No GitLab token found. Set GITLAB_TOKEN or run `glab auth login` first.\n"
            "Create a token with the 'api' scope under User Settings → Access Tokens."
        )
    client = GitlabClient(config["gitlab_url"], token, timeout=config.get("request_timeout", 30))
    if shadow:
        return ShadowClient(client)
    return client


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("mrdecor"),
    prog_name="mrdecor",
)
@click.option(
    "--config",
    "config_path",
    default=".mrdecor.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MRDECOR_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every decision at debug level.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Decorate GitLab merge requests with code-analysis results."""
    from mrdecor_core.config import load_config
    from mrdecor_cli.auth import resolve_gitlab_token

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_gitlab_token(config["gitlab_url"])
    if token:
        config["gitlab_token"] = token

    ctx.obj["config"] = config
    ctx.obj["build_client"] = lambda shadow=False: _build_client(config, shadow)


main.add_command(decorate_cmd)
main.add_command(discussions_cmd)
main.add_command(init_cmd)
