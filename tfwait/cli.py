"""
Command-line interface for tfwait.

Usage:
    python -m tfwait.cli --organization my-org --workspaces "net,dns" --wait-for-apply
    tfwait --config tfwait.yaml

Every option can also be set from the environment; the INPUT_* variables
are the ones GitHub Actions exports for action inputs.
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__
from .core.client import TFEClient, TFWaitError
from .core.config import build_config
from .core.loop import ConvergenceLoop


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--organization",
    "-o",
    envvar=["TFE_ORG", "INPUT_ORGANIZATION"],
    help="Terraform Cloud organization name",
)
@click.option(
    "--workspaces",
    "-w",
    envvar=["TFE_WORKSPACES", "INPUT_WORKSPACES"],
    help="Comma-separated list of workspace names",
)
@click.option(
    "--token",
    envvar=["TFE_TOKEN", "INPUT_TOKEN"],
    help="Terraform Cloud API token",
)
@click.option(
    "--wait-for-apply/--no-wait-for-apply",
    default=None,
    envvar=["WAIT_FOR_APPLY", "INPUT_WAITFORAPPLY"],
    help="Also wait for applies of runs that are not plan-only",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds between polls (default: 1)",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Fail after this many seconds (default: wait forever)",
)
@click.option(
    "--base-url",
    envvar="TFE_ADDRESS",
    help="Terraform Cloud / Enterprise address",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with organization, workspaces and polling settings",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log every API request",
)
def cli(
    organization: str,
    workspaces: str,
    token: str,
    wait_for_apply: bool,
    interval: float,
    timeout: float,
    base_url: str,
    config_file: str,
    verbose: bool,
):
    """Wait for the latest runs of Terraform Cloud workspaces to finish."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    # urllib3 connection chatter is not useful even in verbose mode
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    try:
        config = build_config(
            config_file,
            organization=organization,
            workspaces=workspaces,
            token=token,
            wait_for_apply=wait_for_apply,
            interval=interval,
            timeout=timeout,
            base_url=base_url,
        )

        refs = config.workspace_refs()
        click.echo(f"Workspaces to check: {', '.join(ref.name for ref in refs)}")

        with TFEClient(config.token, base_url=config.base_url) as client:
            loop = ConvergenceLoop(
                client,
                refs,
                wait_for_apply=config.wait_for_apply,
                interval=config.interval,
                timeout=config.timeout,
            )
            loop.run()
    except TFWaitError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
