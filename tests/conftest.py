"""Shared fixtures: fake remote sessions and a sample fleet."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from fleetlog_mcp.models import Instance
from fleetlog_mcp.services.discovery import LIST_UNITS_COMMAND, list_files_command
from fleetlog_mcp.services.status import FleetStatus

LIST_UNITS_OUTPUT = b"""\
auditd.service          loaded    active   running Security Auditing Service
kubelet.service         loaded    active   running Kubernetes Kubelet
rpcbind.service         not-found inactive dead    rpcbind.service
sshd-keygen.service     loaded    inactive dead    OpenSSH Server Key Generation
"""

FIND_OUTPUT = b"/var/log/messages\n/var/log/aws-routed-eni/ipamd.log\n"

# 3 static + 2 services + 1 diagnostic + 2 log files
FILES_PER_INSTANCE = 8


class FakeSession:
    """In-memory RemoteSession returning canned outputs."""

    def __init__(
        self,
        instance: Instance,
        outputs: dict[str, bytes] | None = None,
        fail_connect: bool = False,
        fail_on: str | None = None,
    ) -> None:
        self.instance = instance
        self.outputs = {
            LIST_UNITS_COMMAND: LIST_UNITS_OUTPUT,
            list_files_command("/var/log"): FIND_OUTPUT,
            **(outputs or {}),
        }
        self.fail_connect = fail_connect
        self.fail_on = fail_on
        self.commands: list[str] = []
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        if self.fail_connect:
            raise OSError(f"connection refused by {self.instance.public_ip}")
        self.connected = True

    async def run(self, command: str, verbose: bool = False) -> bytes:
        self.commands.append(command)
        if self.fail_on is not None and self.fail_on in command:
            raise RuntimeError(f"exit status 1 for {command}")
        return self.outputs.get(command, f"{self.instance.instance_id}: {command}\n".encode())

    async def close(self) -> None:
        self.closed = True


class FakeSessionFactory:
    """Session factory recording every session it creates."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.overrides: dict[str, dict] = {}
        self.sessions: dict[str, FakeSession] = {}

    def __call__(self, instance: Instance) -> FakeSession:
        kwargs = {**self.kwargs, **self.overrides.get(instance.instance_id, {})}
        session = FakeSession(instance, **kwargs)
        self.sessions[instance.instance_id] = session
        return session


FLEET_DOC = {
    "name": "test-fleet",
    "region": "us-west-2",
    "groups": {
        "ng-a": {
            "instances": {
                "i-0aaa1111": {
                    "public_ip": "3.1.2.3",
                    "public_dns_name": "ec2-3-1-2-3.us-west-2.compute.amazonaws.com",
                },
                "i-0aaa2222": {
                    "public_ip": "3.1.2.4",
                    "public_dns_name": "ec2-3-1-2-4.us-west-2.compute.amazonaws.com",
                },
            },
        },
        "ng-b": {
            "instances": {
                "i-0bbb1111": {
                    "public_ip": "3.1.9.9",
                    "public_dns_name": "ec2-3-1-9-9.us-west-2.compute.amazonaws.com",
                },
            },
        },
    },
}


@pytest.fixture
def status_path(tmp_path: Path) -> Path:
    """Write the sample fleet document and return its path."""
    path = tmp_path / "fleetlog.json"
    path.write_text(json.dumps(FLEET_DOC))
    return path


@pytest.fixture
def fleet_status(status_path: Path) -> FleetStatus:
    return FleetStatus.load(status_path)


@pytest.fixture
def session_factory() -> Callable[..., FakeSessionFactory]:
    """Build a FakeSessionFactory with default session options."""
    return FakeSessionFactory
