"""CRM adapter abstract base class -- the narrow deal-store contract.

The compliance workflow only needs to read and write deal properties. Every
CRM backend (HubSpot today) implements this ABC; tests substitute AsyncMocks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class CRMAdapter(ABC):
    """Abstract interface for deal property access.

    Methods:
        get_deal_properties: Fetch the given properties of a deal.
        update_deal_properties: Write several properties in one atomic call.
        update_deal_property: Write a single property.

    Implementations raise CRMError on failure.
    """

    @abstractmethod
    async def get_deal_properties(
        self, deal_id: str, properties: list[str]
    ) -> dict[str, Any]:
        """Return a mapping of property name to raw value."""
        ...

    @abstractmethod
    async def update_deal_properties(
        self, deal_id: str, properties: dict[str, str]
    ) -> dict[str, Any]:
        """Write all properties at once, return the CRM acknowledgement."""
        ...

    async def update_deal_property(
        self, deal_id: str, property_name: str, value: str
    ) -> dict[str, Any]:
        """Write a single property."""
        return await self.update_deal_properties(deal_id, {property_name: value})
