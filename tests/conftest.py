"""Shared test fixtures.

Provides:
- A fixed business date (TODAY) so date rules are deterministic
- HolidayCalendar / ComplianceEvaluator built from the US federal list
- FakeCRM: in-memory CRMAdapter recording every write
- Settings with test credentials (no .env loading)
- OverrideWorkflow wired to FakeCRM and an AsyncMock Slack notifier
"""

from __future__ import annotations

from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.rld_compliance.compliance.evaluator import ComplianceEvaluator
from src.rld_compliance.compliance.holidays import HolidayCalendar
from src.rld_compliance.config import Settings
from src.rld_compliance.deals.crm.adapter import CRMAdapter
from src.rld_compliance.deals.policy import ApprovalPolicy
from src.rld_compliance.deals.schemas import Actor
from src.rld_compliance.deals.workflow import OverrideWorkflow
from src.rld_compliance.errors import CRMError
from src.rld_compliance.notifications.slack import SlackNotifier

TODAY = date(2025, 5, 1)
EXPANSIONS_PIPELINE = "782785325"
DEAL_ID = "39542884170"


class FakeCRM(CRMAdapter):
    """In-memory deal store implementing the CRMAdapter contract."""

    def __init__(self, deals: dict[str, dict[str, Any]] | None = None) -> None:
        self.deals: dict[str, dict[str, Any]] = {k: dict(v) for k, v in (deals or {}).items()}
        self.writes: list[tuple[str, dict[str, str]]] = []
        self.reads: list[tuple[str, list[str]]] = []
        self.fail_writes: str | None = None

    async def get_deal_properties(self, deal_id: str, properties: list[str]) -> dict[str, Any]:
        self.reads.append((deal_id, list(properties)))
        if deal_id not in self.deals:
            raise CRMError("resource not found", 404)
        stored = self.deals[deal_id]
        return {name: stored.get(name) for name in properties}

    async def update_deal_properties(self, deal_id: str, properties: dict[str, str]) -> dict[str, Any]:
        if self.fail_writes:
            raise CRMError(self.fail_writes, 500)
        if deal_id not in self.deals:
            raise CRMError("resource not found", 404)
        self.writes.append((deal_id, dict(properties)))
        self.deals[deal_id].update(properties)
        return {"id": deal_id, "updatedAt": "2025-05-01T12:00:00Z"}


@pytest.fixture
def holidays() -> HolidayCalendar:
    return HolidayCalendar.us_federal()


@pytest.fixture
def evaluator(holidays: HolidayCalendar) -> ComplianceEvaluator:
    return ComplianceEvaluator(holidays=holidays, expansions_pipeline_id=EXPANSIONS_PIPELINE)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        HUBSPOT_ACCESS_TOKEN="test-token",
        SLACK_WEBHOOK_URL="https://hooks.slack.test/services/T000/B000/XXX",
        EXPANSIONS_PIPELINE_ID=EXPANSIONS_PIPELINE,
    )


@pytest.fixture
def compliant_deal_properties() -> dict[str, Any]:
    """A deal whose dates satisfy every rule on TODAY, not yet approved."""
    return {
        "dealname": "Acme Expansion",
        "seat_count___final": "250",
        "closedate": "2025-06-02T00:00:00Z",
        "requested_launch_date": "2025-06-30",
        "is_closed": "false",
        "pipeline": "default",
        "compliance_status": "",
        "override_request_status": "",
    }


@pytest.fixture
def fake_crm(compliant_deal_properties: dict[str, Any]) -> FakeCRM:
    return FakeCRM({DEAL_ID: compliant_deal_properties})


@pytest.fixture
def notifier() -> AsyncMock:
    mock = AsyncMock(spec=SlackNotifier)
    mock.notify.return_value = 200
    mock.respond.return_value = 200
    return mock


@pytest.fixture
def policy() -> ApprovalPolicy:
    return ApprovalPolicy(
        allowed_teams=["Revenue", "IT, Systems & Compliance"],
        allowed_user_ids=[60990003],
    )


@pytest.fixture
def workflow(
    fake_crm: FakeCRM,
    notifier: AsyncMock,
    evaluator: ComplianceEvaluator,
    policy: ApprovalPolicy,
    settings: Settings,
) -> OverrideWorkflow:
    return OverrideWorkflow(
        crm=fake_crm,
        notifier=notifier,
        evaluator=evaluator,
        policy=policy,
        settings=settings,
        today=lambda: TODAY,
    )


@pytest.fixture
def rep() -> Actor:
    return Actor(
        id="1001",
        first_name="Sam",
        last_name="Rep",
        email="sam.rep@example.com",
        teams=["Sales"],
    )


@pytest.fixture
def manager() -> Actor:
    return Actor(
        id="2002",
        first_name="Morgan",
        last_name="Lead",
        email="morgan.lead@example.com",
        teams=["Revenue"],
    )
