"""
Shared fixtures: an in-memory stand-in for the Terraform Cloud API.
"""

import json

import pytest
import requests

from tfwait.core.client import TFEClient
from tfwait.core.models import WorkspaceRef


ORG = "acme"
TOKEN = "secret-token"


def make_response(status_code: int, body=None, url: str = "", raw: bytes = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    resp.url = url
    resp.encoding = "utf-8"
    resp.headers["Content-Type"] = "application/vnd.api+json"
    if raw is not None:
        resp._content = raw
    else:
        resp._content = json.dumps(body if body is not None else {}).encode("utf-8")
    return resp


class FakeTFE:
    """
    Serves workspace and run resources the way Terraform Cloud does.

    Implements just enough of requests.Session (``get``) to be injected
    into TFEClient.
    """

    base = "https://app.terraform.io"

    def __init__(self, token: str = TOKEN, organization: str = ORG):
        self.token = token
        self.organization = organization
        self.runs: dict[str, dict] = {}
        self.never_ran: set[str] = set()
        self.requests: list[str] = []
        self.headers: list[dict] = []
        self.overrides: dict[str, requests.Response] = {}

    def set_run(self, workspace: str, status: str, plan_only=False, auto_apply=False, run_id=None):
        self.never_ran.discard(workspace)
        self.runs[workspace] = {
            "id": run_id or f"run-{workspace}",
            "type": "runs",
            "attributes": {
                "status": status,
                "plan-only": plan_only,
                "auto-apply": auto_apply,
            },
        }

    def set_no_runs(self, workspace: str):
        self.runs.pop(workspace, None)
        self.never_ran.add(workspace)

    def get(self, url, headers=None, timeout=None):
        self.requests.append(url)
        self.headers.append(dict(headers or {}))

        if url in self.overrides:
            return self.overrides[url]

        if headers is None or headers.get("Authorization") != f"Bearer {self.token}":
            return make_response(401, {"errors": [{"status": "401", "title": "unauthorized"}]}, url)
        assert headers["Content-Type"] == "application/vnd.api+json"

        ws_prefix = f"{self.base}/api/v2/organizations/{self.organization}/workspaces/"
        if url.startswith(ws_prefix):
            name = url[len(ws_prefix):]
            return self._workspace(name, url)

        run_prefix = f"{self.base}/api/v2/workspaces/ws-"
        if url.startswith(run_prefix) and url.endswith("/latest-run"):
            name = url[len(run_prefix):-len("/latest-run")]
            if name in self.runs:
                return make_response(200, {"data": self.runs[name]}, url)

        return make_response(404, {"errors": [{"status": "404", "title": "not found"}]}, url)

    def _workspace(self, name: str, url: str) -> requests.Response:
        if name in self.never_ran:
            relationships = {"latest-run": {"data": None}}
        elif name in self.runs:
            relationships = {
                "latest-run": {
                    "data": {"id": self.runs[name]["id"], "type": "runs"},
                    "links": {"related": f"/api/v2/workspaces/ws-{name}/latest-run"},
                }
            }
        else:
            return make_response(404, {"errors": [{"status": "404", "title": "not found"}]}, url)

        data = {
            "id": f"ws-{name}",
            "type": "workspaces",
            "attributes": {"name": name},
            "relationships": relationships,
        }
        return make_response(200, {"data": data}, url)


@pytest.fixture
def fake_tfe():
    return FakeTFE()


@pytest.fixture
def client(fake_tfe):
    return TFEClient(TOKEN, session=fake_tfe)


@pytest.fixture
def ref():
    return WorkspaceRef(organization=ORG, name="network")
