"""Fleet membership data models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Instance:
    """Remote compute instance reachable over SSH."""

    instance_id: str
    public_ip: str = ""
    public_dns_name: str = ""

    @property
    def connection_hostname(self) -> str:
        """Get the address to use for SSH connection.

        Returns:
            Public IP if known, otherwise public DNS name
        """
        return self.public_ip or self.public_dns_name


@dataclass
class GroupStatus:
    """Instances of one named group and the log files collected from them."""

    name: str
    instances: dict[str, Instance] = field(default_factory=dict)
    logs: dict[str, list[str]] = field(default_factory=dict)
