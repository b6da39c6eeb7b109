"""
Convergence loop.

Polls every workspace once per tick and keeps ticking until all of them are
done, a run fails, the deadline passes, or the caller cancels.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import click

from .classifier import classify
from .client import TFEClient, TFWaitError, TFE_ADDRESS
from .models import WorkspaceRef, WorkspaceStatus, parse_workspace_refs


logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


class WaitCancelled(TFWaitError):
    """Raised when the cancel event is set while waiting."""
    pass


class WaitTimeout(TFWaitError):
    """Raised when workspaces are still busy after the deadline."""

    def __init__(self, timeout: float, pending: list[WorkspaceStatus]):
        names = ", ".join(s.workspace.name for s in pending) or "none"
        super().__init__(f"Workspaces did not settle within {timeout:g}s (still waiting for: {names})")
        self.timeout = timeout
        self.pending = pending


class ConvergenceLoop:
    """
    Drives repeated polling across a fixed set of workspaces.

    Ticks are strictly serialized and workspaces inside a tick are
    classified in the order given. The first fatal error aborts the tick
    and the loop.
    """

    def __init__(
        self,
        client: TFEClient,
        refs: list[WorkspaceRef],
        wait_for_apply: bool = False,
        interval: float = DEFAULT_INTERVAL,
        timeout: Optional[float] = None,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = time.monotonic,
        cancel_event: Optional[threading.Event] = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self.client = client
        self.refs = list(refs)
        self.wait_for_apply = wait_for_apply
        self.interval = interval
        self.timeout = timeout
        self.clock = clock
        self.cancel_event = cancel_event
        self.echo = echo
        self.ticks = 0

        if sleep is not None:
            self.sleep = sleep
        elif cancel_event is not None:
            # Wakes up as soon as the event is set
            self.sleep = cancel_event.wait
        else:
            self.sleep = time.sleep

    def tick(self) -> list[WorkspaceStatus]:
        """Classify every workspace once. Not-done entries sort first."""
        statuses = []
        for ref in self.refs:
            status = classify(self.client, ref, self.wait_for_apply)
            if status is not None:
                statuses.append(status)

        self.ticks += 1
        # sorted() is stable, so input order is kept within each group
        return sorted(statuses, key=lambda s: s.done)

    def run(self) -> list[WorkspaceStatus]:
        """Tick until every workspace is done; returns the final statuses."""
        started = self.clock()

        while True:
            self._check_cancelled()

            statuses = self.tick()
            pending = [s for s in statuses if not s.done]

            if not pending:
                break

            self.report(statuses)

            if self.timeout is not None and self.clock() - started >= self.timeout:
                raise WaitTimeout(self.timeout, pending)

            self.sleep(self.interval)

        self.echo("All Terraform workspaces are ready!")
        return statuses

    def report(self, statuses: list[WorkspaceStatus]) -> None:
        self.echo("")
        self.echo("Waiting for the following workspaces:")
        for status in statuses:
            self.echo(f"• {status.workspace.name}: {status.status}")

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info("Cancellation requested after %d tick(s)", self.ticks)
            raise WaitCancelled("Waiting for Terraform workspaces was cancelled")


def wait_for_workspaces(
    organization: str,
    workspaces: str | list[str],
    token: str,
    wait_for_apply: bool = False,
    base_url: str = TFE_ADDRESS,
    client: Optional[TFEClient] = None,
    **kwargs,
) -> list[WorkspaceStatus]:
    """
    Wait until every named workspace's latest run has settled.

    ``workspaces`` is a comma-separated string or a list of names. Extra
    keyword arguments are passed to ConvergenceLoop.
    """
    refs = parse_workspace_refs(organization, workspaces)
    logger.info("Workspaces to check: %s", ", ".join(ref.name for ref in refs))

    if client is not None:
        return ConvergenceLoop(client, refs, wait_for_apply=wait_for_apply, **kwargs).run()

    with TFEClient(token, base_url=base_url) as client:
        return ConvergenceLoop(client, refs, wait_for_apply=wait_for_apply, **kwargs).run()
