"""Command execution data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CommandSpec:
    """Remote command and the file name its output is stored under."""

    command: str
    file_name: str


@dataclass
class InstanceLogs:
    """Result of collecting logs from a single instance."""

    group: str
    instance_id: str
    paths: list[str] = field(default_factory=list)
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None
