"""Fleet status resource."""

from fleetlog_mcp.services import get_collector


async def fleet_status_resource() -> str:
    """List fleet groups and the log files collected per instance.

    Returns:
        Formatted list of groups with per-instance collection state.
    """
    status = get_collector().status

    if not status.groups:
        return "No fleet groups configured."

    lines = [f"Fleet {status.name or '(unnamed)'}:", ""]
    for name, group in sorted(status.groups.items()):
        lines.append(f"  {name} ({len(group.instances)} instance(s))")
        for instance_id, instance in sorted(group.instances.items()):
            paths = group.logs.get(instance_id)
            state = f"{len(paths)} file(s)" if paths is not None else "not collected"
            host = instance.connection_hostname or "-"
            lines.append(f"    {instance_id:<22} {host:<40} {state}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
