"""CRM integration layer -- pluggable adapter pattern for deal properties.

Provides the abstract CRMAdapter interface and the HubSpotAdapter
implementation over the CRM v3 deal objects API.
"""

from src.rld_compliance.deals.crm.adapter import CRMAdapter
from src.rld_compliance.deals.crm.hubspot import HubSpotAdapter

__all__ = [
    "CRMAdapter",
    "HubSpotAdapter",
]
