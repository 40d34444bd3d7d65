"""FastAPI dependency injection for the compliance workflow.

Builds the rule engine, CRM adapter, Slack notifier and approval policy from
settings once per process. Tests replace ``get_workflow`` through
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from src.rld_compliance.compliance.evaluator import ComplianceEvaluator
from src.rld_compliance.compliance.holidays import HolidayCalendar
from src.rld_compliance.config import Settings, get_settings
from src.rld_compliance.deals.crm.hubspot import HubSpotAdapter
from src.rld_compliance.deals.policy import ApprovalPolicy
from src.rld_compliance.deals.workflow import OverrideWorkflow
from src.rld_compliance.notifications.slack import SlackNotifier


def build_workflow(settings: Settings) -> OverrideWorkflow:
    """Wire an OverrideWorkflow from settings."""
    holidays = HolidayCalendar.us_federal(extra=settings.EXTRA_HOLIDAYS)
    evaluator = ComplianceEvaluator(
        holidays=holidays,
        expansions_pipeline_id=settings.EXPANSIONS_PIPELINE_ID,
    )

    crm = None
    if settings.has_hubspot_token():
        crm = HubSpotAdapter(
            access_token=settings.HUBSPOT_ACCESS_TOKEN,
            base_url=settings.HUBSPOT_API_BASE_URL,
            timeout_read=settings.HTTP_TIMEOUT_READ,
            timeout_mutate=settings.HTTP_TIMEOUT_MUTATE,
        )

    notifier = SlackNotifier(
        webhook_url=settings.SLACK_WEBHOOK_URL,
        timeout=settings.HTTP_TIMEOUT_READ,
    )

    return OverrideWorkflow(
        crm=crm,
        notifier=notifier,
        evaluator=evaluator,
        policy=ApprovalPolicy.from_settings(settings),
        settings=settings,
    )


@lru_cache
def _cached_workflow() -> OverrideWorkflow:
    return build_workflow(get_settings())


async def get_workflow() -> OverrideWorkflow:
    """Process-wide OverrideWorkflow."""
    return _cached_workflow()
