"""
Gateway Contracts

Narrow interfaces the reconciliation core consumes. The core never
implements these; HttpGateway and test fakes do.
"""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class CommandAck:
    """Remote answer to a write request"""
    code: int = 0
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.code == 0


class LiveStateGateway(Protocol):
    """Reads current device parameters"""

    async def get_parameter(
        self,
        device_id: str,
        param: str | list[str],
    ) -> Any:
        """
        Read one parameter (returns its value) or several (returns a
        dict with None for missing names).
        """
        ...

    async def get_all_parameters(self, device_id: str) -> dict[str, Any] | None:
        """Read every parameter the device reports"""
        ...


class CommandGateway(Protocol):
    """Submits parameter writes"""

    async def submit(self, device_id: str, payload: dict[str, Any]) -> CommandAck:
        ...


class CatalogSource(Protocol):
    """Supplies the raw device list for a family"""

    async def fetch_things(self, family_id: str, lang: str = "en") -> list[dict[str, Any]]:
        ...
