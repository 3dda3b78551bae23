"""Persistent fleet status backed by a JSON document.

The document holds fleet membership (groups and their instances) and the
log files already collected per instance:

    {
      "name": "prod",
      "groups": {
        "ng-a": {
          "instances": {"i-0abc": {"public_ip": "...", "public_dns_name": "..."}},
          "logs": {"i-0abc": ["/logs/prod-logs1x2y/i-0abc-3123usw-kernel.out.log"]}
        }
      }
    }

Unknown top-level keys are preserved when syncing.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import suppress
from pathlib import Path
from typing import Any

from fleetlog_mcp.models import GroupStatus, Instance

logger = logging.getLogger(__name__)


class FleetStatus:
    """Fleet membership and collected-log status."""

    def __init__(
        self,
        path: Path | str,
        name: str = "",
        groups: dict[str, GroupStatus] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.path = Path(path)
        self.name = name
        self.groups: dict[str, GroupStatus] = groups if groups is not None else {}
        self._extra = dict(extra or {})

    @classmethod
    def load(cls, path: Path | str) -> "FleetStatus":
        """Load fleet status from a JSON document.

        Raises:
            FileNotFoundError: If the document does not exist
            ValueError: If the document is not valid JSON or malformed
        """
        path = Path(path)
        try:
            doc = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid fleet status document {path}: {e}") from e
        if not isinstance(doc, dict):
            raise ValueError(f"Invalid fleet status document {path}: expected an object")

        groups: dict[str, GroupStatus] = {}
        for group_name, group_doc in (doc.get("groups") or {}).items():
            instances = {
                instance_id: Instance(
                    instance_id=instance_id,
                    public_ip=(inst or {}).get("public_ip", ""),
                    public_dns_name=(inst or {}).get("public_dns_name", ""),
                )
                for instance_id, inst in (group_doc.get("instances") or {}).items()
            }
            logs = {
                instance_id: list(paths)
                for instance_id, paths in (group_doc.get("logs") or {}).items()
            }
            groups[group_name] = GroupStatus(name=group_name, instances=instances, logs=logs)

        extra = {k: v for k, v in doc.items() if k not in ("name", "groups")}
        status = cls(path, name=doc.get("name", ""), groups=groups, extra=extra)
        logger.debug(
            "Loaded fleet status from %s (%d group(s), %d instance(s))",
            path,
            len(groups),
            status.instance_count,
        )
        return status

    def membership(self) -> dict[str, dict[str, Instance]]:
        """Return a snapshot of group name to instances."""
        return {name: dict(group.instances) for name, group in self.groups.items()}

    @property
    def instance_count(self) -> int:
        return sum(len(group.instances) for group in self.groups.values())

    def log_paths(self) -> Iterator[str]:
        """Iterate over every recorded log file path."""
        for group in self.groups.values():
            for paths in group.logs.values():
                yield from paths

    def to_dict(self) -> dict[str, Any]:
        doc: dict[str, Any] = dict(self._extra)
        doc["name"] = self.name
        doc["groups"] = {
            name: {
                "instances": {
                    instance_id: {
                        "public_ip": inst.public_ip,
                        "public_dns_name": inst.public_dns_name,
                    }
                    for instance_id, inst in group.instances.items()
                },
                "logs": {instance_id: list(paths) for instance_id, paths in group.logs.items()},
            }
            for name, group in self.groups.items()
        }
        return doc

    def sync(self) -> None:
        """Persist status to disk atomically.

        Raises:
            OSError: If the document cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self.to_dict(), f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            with suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise
        logger.debug("Synced fleet status to %s", self.path)

