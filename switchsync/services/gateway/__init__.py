"""
Gateway Layer - Remote API access

Responsibilities:
- Read live device parameters
- Submit parameter writes
- Fetch the device catalog
"""

from .http_gateway import HttpGateway
from .protocols import CatalogSource, CommandAck, CommandGateway, LiveStateGateway

__all__ = [
    "HttpGateway",
    "CatalogSource",
    "CommandAck",
    "CommandGateway",
    "LiveStateGateway",
]
