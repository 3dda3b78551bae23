"""Command sets collected from every instance.

Static commands run on every instance. Dynamic commands are discovered
per instance: one journal dump per active systemd service, and one `cat`
per file under the remote log directory.
"""

import posixpath

from fleetlog_mcp.models import CommandSpec
from fleetlog_mcp.utils.shell import quote_path

LIST_UNITS_COMMAND = "sudo systemctl list-units -t service --no-pager --no-legend --all"

STATIC_COMMANDS: tuple[CommandSpec, ...] = (
    # kernel logs
    CommandSpec("sudo journalctl --no-pager --output=short-precise -k", "kernel.out.log"),
    # full journal logs (e.g. disk mounts)
    CommandSpec("sudo journalctl --no-pager --output=short-precise", "journal.out.log"),
    # other systemd services
    CommandSpec(LIST_UNITS_COMMAND, "list-units-systemctl.out.log"),
)

DIAGNOSTIC_FILE_NAME = "v1-enis"

# Markers systemctl prints in front of failed or changed units
_UNIT_STATUS_MARKERS = ("●", "*")


def diagnostic_command(url: str) -> CommandSpec:
    """Build the IPAM debug query command."""
    return CommandSpec(f"curl {url}", DIAGNOSTIC_FILE_NAME)


def list_files_command(log_dir: str) -> str:
    return f"sudo find {quote_path(log_dir)} ! -type d"


def _text(output: bytes | str) -> str:
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def parse_service_units(output: bytes | str) -> list[CommandSpec]:
    """Select loaded, non-inactive services from systemctl output.

    Expected format (one unit per line):

        auditd.service   loaded    active   running Security Auditing Service
        rpcbind.service  not-found inactive dead    rpcbind.service

    Lines with fewer than 5 fields, a `not-found` load state or an
    `inactive` active state are skipped.

    Returns:
        One journal command per selected unit, in listing order
    """
    specs: dict[str, CommandSpec] = {}
    for line in _text(output).splitlines():
        fields = line.split()
        if fields and fields[0] in _UNIT_STATUS_MARKERS:
            fields = fields[1:]
        if len(fields) < 5:
            continue
        if fields[1] == "not-found":
            continue
        if fields[2] == "inactive":
            continue

        unit = fields[0]
        command = f"sudo journalctl --no-pager --output=cat -u {unit}"
        specs.setdefault(command, CommandSpec(command, f"{unit}.out.log"))
    return list(specs.values())


def _unique_name(name: str, used_names: set[str]) -> str:
    candidate = name
    counter = 1
    while candidate in used_names:
        candidate = f"{name}-{counter}"
        counter += 1
    return candidate


def parse_log_files(output: bytes | str) -> list[CommandSpec]:
    """Turn a `find` listing into one `cat` command per file.

    Files are stored under their base name. When two listed files share
    a base name, later ones use the full path with slashes replaced by
    dashes (`/var/log/a/x.log` -> `var-log-a-x.log`). If that name is
    taken too (`/var/log/a-b/x.log` and `/var/log/a/b/x.log`), a counter
    is appended (`var-log-a-b-x.log-1`).

    Returns:
        One read command per listed path, in listing order
    """
    specs: dict[str, CommandSpec] = {}
    used_names: set[str] = set()
    for line in _text(output).splitlines():
        path = line.strip()
        if not path:
            continue

        command = f"sudo cat {quote_path(path)}"
        if command in specs:
            continue

        name = posixpath.basename(path)
        if name in used_names:
            name = _unique_name(path.strip("/").replace("/", "-"), used_names)
        used_names.add(name)
        specs[command] = CommandSpec(command, name)
    return list(specs.values())
