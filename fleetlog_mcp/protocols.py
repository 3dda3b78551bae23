"""Protocol interfaces for dependency inversion.

Defines the remote session contract the collectors depend on, so the
SSH implementation can be swapped for a fake in tests.

Usage Example:

    from fleetlog_mcp.protocols import RemoteSession

    async def uptime(session: RemoteSession) -> bytes:
        await session.connect()
        try:
            return await session.run("uptime")
        finally:
            await session.close()

    # Any object with the same async methods works
    class FakeSession:
        async def connect(self) -> None: ...
        async def run(self, command, verbose=False) -> bytes:
            return b"up 3 days"
        async def close(self) -> None: ...
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from fleetlog_mcp.models import Instance


@runtime_checkable
class RemoteSession(Protocol):
    """Protocol for a command session against one remote instance.

    Implementations execute blocking request/response commands only;
    no streaming.
    """

    async def connect(self) -> None:
        """Open the session.

        Raises:
            Exception: If the instance cannot be reached
        """
        ...

    async def run(self, command: str, verbose: bool = False) -> bytes:
        """Run a command and return its standard output.

        Args:
            command: Shell command to execute
            verbose: Log command details at debug level

        Returns:
            Raw stdout bytes

        Raises:
            Exception: If the command fails or exits non-zero
        """
        ...

    async def close(self) -> None:
        """Close the session.

        Safe to call on a session that never connected.
        """
        ...


SessionFactory = Callable[[Instance], RemoteSession]
