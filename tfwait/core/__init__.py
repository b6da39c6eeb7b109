"""
Core modules for tfwait.
"""

from .models import (
    RunStatus,
    RunRecord,
    WorkspaceRef,
    WorkspaceStatus,
    parse_workspace_refs,
)
from .client import (
    TFEClient,
    TFWaitError,
    Unauthorized,
    NotFound,
    TransportError,
    MalformedResponse,
)
from .classifier import RunFailed, classify, classify_run, get_latest_run
from .loop import ConvergenceLoop, WaitCancelled, WaitTimeout, wait_for_workspaces
from .config import ConfigError, WaitConfig, build_config, load_config_file

__all__ = [
    "RunStatus",
    "RunRecord",
    "WorkspaceRef",
    "WorkspaceStatus",
    "parse_workspace_refs",
    "TFEClient",
    "TFWaitError",
    "Unauthorized",
    "NotFound",
    "TransportError",
    "MalformedResponse",
    "RunFailed",
    "classify",
    "classify_run",
    "get_latest_run",
    "ConvergenceLoop",
    "WaitCancelled",
    "WaitTimeout",
    "wait_for_workspaces",
    "ConfigError",
    "WaitConfig",
    "build_config",
    "load_config_file",
]
