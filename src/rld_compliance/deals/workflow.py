"""Override workflow -- compliance sync, launch-date edits, and approvals.

Composes the rule engine (evaluator, suggestion, reconciler), the CRM adapter,
the Slack notifier and the approval policy into the operations behind the
deal sidebar and the Slack buttons.

Every public method returns an OperationResult and never raises: validation
problems are reported without touching the network, CRM and Slack failures
are caught here and surfaced with diagnostic context. Property writes are
batched into a single CRM call; Slack is always best effort and always runs
after the properties are committed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
import structlog

from src.rld_compliance.compliance.dates import (
    format_display,
    format_for_api,
    now_in,
    parse_date,
    today_in,
)
from src.rld_compliance.compliance.evaluator import (
    ComplianceEvaluator,
    is_compliant,
    needs_rld_fix,
    primary_violation,
    violation_messages,
)
from src.rld_compliance.compliance.reconciler import (
    ReconciliationPlan,
    approval_properties,
    cleared_override_properties,
    reconcile,
)
from src.rld_compliance.compliance.schemas import Violation
from src.rld_compliance.compliance.suggestion import suggest_launch_date
from src.rld_compliance.config import Settings
from src.rld_compliance.deals import properties as props
from src.rld_compliance.deals.crm.adapter import CRMAdapter
from src.rld_compliance.deals.policy import ApprovalPolicy
from src.rld_compliance.deals.schemas import (
    Actor,
    DealSnapshot,
    OperationResult,
    OverrideStatus,
    PropertyUpdateResult,
)
from src.rld_compliance.errors import (
    ComplianceServiceError,
    CRMError,
    InvalidDateError,
    SlackDeliveryError,
    SlackPayloadError,
)
from src.rld_compliance.notifications.interactions import parse_slack_action
from src.rld_compliance.notifications.messages import (
    build_decision_message,
    build_override_request_message,
)
from src.rld_compliance.notifications.slack import SlackNotifier

logger = structlog.get_logger(__name__)

NO_TOKEN_ERROR = "No access token found"


class OverrideWorkflow:
    """Deal compliance and override operations.

    Args:
        crm: CRM adapter, or None when no access token is configured.
        notifier: Slack notifier for override requests and decisions.
        evaluator: Compliance evaluator (holds holidays and pipeline config).
        policy: Who may approve overrides.
        settings: Application settings (time zone, deal URLs).
        today: Optional clock override returning the current business date.
    """

    def __init__(
        self,
        crm: CRMAdapter | None,
        notifier: SlackNotifier,
        evaluator: ComplianceEvaluator,
        policy: ApprovalPolicy,
        settings: Settings,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._crm = crm
        self._notifier = notifier
        self._evaluator = evaluator
        self._policy = policy
        self._settings = settings
        self._today = today or (lambda: today_in(settings.BUSINESS_TIMEZONE))

    # ── Boundary helpers ────────────────────────────────────────────────────

    def _debug_info(self, exc: BaseException | None = None) -> dict[str, Any]:
        info: dict[str, Any] = {"has_access_token": self._crm is not None}
        if exc is not None:
            info["error_type"] = type(exc).__name__
            if isinstance(exc, CRMError) and exc.status_code is not None:
                info["status_code"] = exc.status_code
        return info

    def _failure(
        self, operation: str, exc: BaseException, deal_id: str | None, **data: Any
    ) -> OperationResult:
        if isinstance(exc, ComplianceServiceError):
            logger.warning(f"workflow.{operation}_failed", deal_id=deal_id, error=str(exc))
        else:
            logger.error(f"workflow.{operation}_error", deal_id=deal_id, exc_info=True)
        return OperationResult.fail(
            str(exc), deal_id=deal_id, debug_info=self._debug_info(exc), **data
        )

    def _precheck(self, deal_id: str | None) -> OperationResult | None:
        """Local validation shared by every deal operation."""
        if not deal_id:
            return OperationResult.fail("Deal ID is required", deal_id=deal_id)
        if self._crm is None:
            return OperationResult.fail(
                NO_TOKEN_ERROR, deal_id=deal_id, debug_info=self._debug_info()
            )
        return None

    # ── CRM access ──────────────────────────────────────────────────────────

    async def _load(self, deal_id: str) -> DealSnapshot:
        raw = await self._crm.get_deal_properties(deal_id, props.DEFAULT_DEAL_PROPERTIES)
        return DealSnapshot.from_properties(deal_id, raw)

    async def _write(
        self, deal_id: str, updates: dict[str, str]
    ) -> list[PropertyUpdateResult]:
        """Write all updates in one call and report the outcome per field."""
        if not updates:
            return []
        try:
            await self._crm.update_deal_properties(deal_id, updates)
        except CRMError as exc:
            logger.warning(
                "workflow.property_write_failed",
                deal_id=deal_id,
                fields=sorted(updates),
                error=str(exc),
            )
            return [
                PropertyUpdateResult(property=p, value=v, success=False, error=str(exc))
                for p, v in updates.items()
            ]
        return [PropertyUpdateResult(property=p, value=v, success=True) for p, v in updates.items()]

    @staticmethod
    def _succeeded(results: list[PropertyUpdateResult]) -> dict[str, str]:
        return {r.property: r.value for r in results if r.success}

    @staticmethod
    def _failures(results: list[PropertyUpdateResult]) -> list[PropertyUpdateResult]:
        return [r for r in results if not r.success]

    def _evaluate(self, deal: DealSnapshot, rld: str | None = None) -> list[Violation]:
        return self._evaluator.evaluate(
            deal.close_date,
            deal.requested_launch_date if rld is None else rld,
            deal.is_closed,
            deal.pipeline,
            today=self._today(),
        )

    def _suggest(self, deal: DealSnapshot) -> date | None:
        return suggest_launch_date(
            deal.close_date, deal.requested_launch_date, self._evaluator.holidays
        )

    async def _reconcile_and_write(
        self, deal: DealSnapshot
    ) -> tuple[list[Violation], ReconciliationPlan, list[PropertyUpdateResult], DealSnapshot]:
        violations = self._evaluate(deal)
        plan = reconcile(deal, violations, self._today())
        results = await self._write(deal.deal_id, plan.updates)
        updated = deal.with_updates(self._succeeded(results))
        return violations, plan, results, updated

    # ── Serverless-function equivalents ─────────────────────────────────────

    async def get_deal(
        self, deal_id: str, properties: list[str] | None = None
    ) -> OperationResult:
        """Fetch deal properties (the full tracked set when none are given)."""
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        requested = properties or props.DEFAULT_DEAL_PROPERTIES
        try:
            fetched = await self._crm.get_deal_properties(deal_id, requested)
        except Exception as exc:
            return self._failure("get_deal", exc, deal_id, requested_properties=requested)
        return OperationResult.ok(
            deal_id,
            properties=fetched,
            properties_fetched=sorted(fetched.keys()),
        )

    async def update_property(
        self, deal_id: str, property_name: str | None, value: str | None
    ) -> OperationResult:
        """Write a single deal property after local validation."""
        if not deal_id:
            return OperationResult.fail("Deal ID is required")
        if not property_name:
            return OperationResult.fail("Property name is required", deal_id=deal_id)
        if value is None:
            return OperationResult.fail("Property value is required", deal_id=deal_id)
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            ack = await self._crm.update_deal_property(deal_id, property_name, str(value))
        except Exception as exc:
            return self._failure(
                "update_property", exc, deal_id, property=property_name, value=value
            )
        return OperationResult.ok(
            deal_id, property=property_name, value=value, hubspot_response=ack
        )

    # ── Compliance ──────────────────────────────────────────────────────────

    async def evaluate_deal(self, deal_id: str) -> OperationResult:
        """Read-only compliance view of a deal."""
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            deal = await self._load(deal_id)
            violations = self._evaluate(deal)
            suggested = self._suggest(deal)
        except Exception as exc:
            return self._failure("evaluate", exc, deal_id)
        return OperationResult.ok(
            deal_id,
            violations=[v.model_dump(mode="json") for v in violations],
            primary_violation=primary_violation(violations).value,
            compliant=is_compliant(violations),
            suggested_rld=format_for_api(suggested),
            needs_rld_fix=needs_rld_fix(violations),
            override_status=deal.override_status.value,
            can_close=deal.can_close,
        )

    async def sync_compliance(self, deal_id: str) -> OperationResult:
        """Evaluate a deal and write back compliance and approval state."""
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            deal = await self._load(deal_id)
            violations, plan, results, updated = await self._reconcile_and_write(deal)
        except Exception as exc:
            return self._failure("sync_compliance", exc, deal_id)

        failures = self._failures(results)
        logger.info(
            "workflow.compliance_synced",
            deal_id=deal_id,
            compliance_status=plan.compliance_status.value,
            transitions=[t.value for t in plan.transitions],
            updated=sorted(self._succeeded(results)),
            failed=[f.property for f in failures],
        )
        data = dict(
            violations=[v.model_dump(mode="json") for v in violations],
            compliance_status=plan.compliance_status.value,
            transitions=[t.value for t in plan.transitions],
            updates=[r.model_dump() for r in results],
            deal=updated.to_properties(),
        )
        if failures:
            return OperationResult.fail(
                f"Failed to update {', '.join(f.property for f in failures)}",
                deal_id=deal_id,
                debug_info=self._debug_info(),
                **data,
            )
        return OperationResult.ok(deal_id, **data)

    # ── Launch-date edits ───────────────────────────────────────────────────

    async def apply_suggested_rld(self, deal_id: str) -> OperationResult:
        """Set the RLD to the suggested date, then reconcile approval state."""
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            deal = await self._load(deal_id)
            if not deal.close_date:
                return OperationResult.fail(
                    "Cannot fix RLD: Close Date is required", deal_id=deal_id
                )
            suggested = self._suggest(deal)
            if suggested is None:
                return OperationResult.fail("Could not calculate perfect RLD", deal_id=deal_id)

            formatted = format_for_api(suggested)
            await self._crm.update_deal_property(deal_id, props.REQUESTED_LAUNCH_DATE, formatted)
            deal = deal.with_updates({props.REQUESTED_LAUNCH_DATE: formatted})
            violations, plan, results, updated = await self._reconcile_and_write(deal)
        except Exception as exc:
            return self._failure("apply_suggested_rld", exc, deal_id)

        compliant = is_compliant(violations)
        logger.info(
            "workflow.suggested_rld_applied",
            deal_id=deal_id,
            rld=formatted,
            compliant=compliant,
        )
        suffix = "Perfect and compliant!" if compliant else "Still needs approval"
        return OperationResult.ok(
            deal_id,
            message=f"RLD updated to {format_display(suggested)} ({suffix})",
            requested_launch_date=formatted,
            compliant=compliant,
            violations=[v.model_dump(mode="json") for v in violations],
            transitions=[t.value for t in plan.transitions],
            updates=[r.model_dump() for r in results],
            deal=updated.to_properties(),
        )

    @staticmethod
    def _parse_custom_date(raw_date: str | None) -> date:
        if not raw_date or not str(raw_date).strip():
            raise InvalidDateError(raw_date)
        parsed = parse_date(raw_date)
        if parsed is None:
            raise InvalidDateError(raw_date)
        return parsed

    async def set_custom_rld(self, deal_id: str, raw_date: str | None) -> OperationResult:
        """Set a user-chosen RLD if it is compliant.

        A non-compliant date is not written; the violations come back with
        ``allow_override`` so the caller can offer "Set & Request Override".
        """
        if not raw_date:
            return OperationResult.fail("Please enter a date first", deal_id=deal_id)
        try:
            custom = self._parse_custom_date(raw_date)
        except InvalidDateError as exc:
            return OperationResult.fail(str(exc), deal_id=deal_id)
        if (failed := self._precheck(deal_id)) is not None:
            return failed

        formatted = format_for_api(custom)
        try:
            deal = await self._load(deal_id)
            violations = self._evaluate(deal, rld=formatted)
            if not is_compliant(violations):
                return OperationResult.fail(
                    "Custom date has compliance violations",
                    deal_id=deal_id,
                    violations=[v.model_dump(mode="json") for v in violations],
                    allow_override=True,
                )

            await self._crm.update_deal_property(deal_id, props.REQUESTED_LAUNCH_DATE, formatted)
            deal = deal.with_updates({props.REQUESTED_LAUNCH_DATE: formatted})
            _, plan, results, updated = await self._reconcile_and_write(deal)
        except Exception as exc:
            return self._failure("set_custom_rld", exc, deal_id)

        return OperationResult.ok(
            deal_id,
            message=f"RLD updated to {format_display(custom)} (Custom date approved!)",
            requested_launch_date=formatted,
            transitions=[t.value for t in plan.transitions],
            updates=[r.model_dump() for r in results],
            deal=updated.to_properties(),
        )

    async def set_custom_rld_with_override(
        self, deal_id: str, raw_date: str | None, actor: Actor
    ) -> OperationResult:
        """Set a non-compliant RLD anyway and request a manager override."""
        if not raw_date:
            return OperationResult.fail("Please enter a date first", deal_id=deal_id)
        try:
            custom = self._parse_custom_date(raw_date)
        except InvalidDateError as exc:
            return OperationResult.fail(str(exc), deal_id=deal_id)
        if (failed := self._precheck(deal_id)) is not None:
            return failed

        formatted = format_for_api(custom)
        try:
            deal = await self._load(deal_id)
            await self._crm.update_deal_property(deal_id, props.REQUESTED_LAUNCH_DATE, formatted)
        except Exception as exc:
            return self._failure("set_custom_rld_with_override", exc, deal_id)

        deal = deal.with_updates({props.REQUESTED_LAUNCH_DATE: formatted})
        result = await self._request_override(deal, actor)
        result.data["requested_launch_date"] = formatted
        if result.success:
            sent = result.data.get("slack_sent")
            result.message = (
                f"RLD set to {format_display(custom)} - "
                + ("Slack notification sent to managers" if sent else "Override requested (Slack notification failed)")
            )
        return result

    # ── Overrides ───────────────────────────────────────────────────────────

    async def request_override(self, deal_id: str, actor: Actor) -> OperationResult:
        """Mark the deal pending approval, then notify managers on Slack."""
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            deal = await self._load(deal_id)
        except Exception as exc:
            return self._failure("request_override", exc, deal_id)
        return await self._request_override(deal, actor)

    async def _request_override(self, deal: DealSnapshot, actor: Actor) -> OperationResult:
        deal_id = deal.deal_id
        request_date = self._today()
        requested_by = actor.display
        pending = {
            props.OVERRIDE_REQUEST_STATUS: OverrideStatus.PENDING.value,
            props.OVERRIDE_REQUESTED_BY: requested_by,
            props.OVERRIDE_REQUEST_DATE: format_for_api(request_date),
            props.OVERRIDE_APPROVED_BY: "",
            props.OVERRIDE_APPROVAL_DATE: "",
            props.LEGACY_OVERRIDE_APPROVAL: "",
        }

        try:
            results = await self._write(deal_id, pending)
        except Exception as exc:
            return self._failure("request_override", exc, deal_id)
        if failures := self._failures(results):
            # No Slack message for a request the CRM never recorded.
            return OperationResult.fail(
                "Failed to request override: " + ", ".join(f.error or "" for f in failures),
                deal_id=deal_id,
                debug_info=self._debug_info(),
                updates=[r.model_dump() for r in results],
            )
        deal = deal.with_updates(pending)

        slack_sent, slack_error = await self._send_override_request(
            deal, actor, requested_by, request_date
        )
        message = (
            "Override requested! Properties updated, Slack notification sent to managers."
            if slack_sent
            else "Override requested! Properties updated (Slack notification failed, but override is pending)"
        )
        return OperationResult.ok(
            deal_id,
            message=message,
            slack_sent=slack_sent,
            slack_error=slack_error,
            properties_updated=sorted(pending),
            deal=deal.to_properties(),
        )

    async def _send_override_request(
        self, deal: DealSnapshot, actor: Actor, requested_by: str, request_date: date
    ) -> tuple[bool, str | None]:
        """Best-effort Slack notification. Returns (sent, error)."""
        try:
            violations = self._evaluate(deal)
            payload = build_override_request_message(
                deal,
                violations=violation_messages(violations),
                suggested_rld=self._suggest(deal),
                requested_by=requested_by,
                request_date=request_date,
                rep_name=actor.full_name,
                deal_url=self._settings.deal_url(deal.deal_id),
            )
            await self._notifier.notify(payload)
        except (SlackDeliveryError, httpx.HTTPError) as exc:
            logger.warning(
                "slack.notification_failed", deal_id=deal.deal_id, error=str(exc)
            )
            return False, str(exc)
        except Exception as exc:
            # The override is already pending in the CRM.
            logger.error(
                "slack.notification_error", deal_id=deal.deal_id, exc_info=True
            )
            return False, str(exc)
        return True, None

    async def approve_override(self, deal_id: str, actor: Actor) -> OperationResult:
        """Manager approval from the CRM sidebar."""
        if not self._policy.can_approve(actor):
            return OperationResult.fail(
                "You don't have permission to approve overrides. Contact your manager.",
                deal_id=deal_id,
            )
        if (failed := self._precheck(deal_id)) is not None:
            return failed
        try:
            deal = await self._load(deal_id)
            approval = approval_properties(
                deal, actor.display, self._today(), props.LEGACY_APPROVED_WITH_OVERRIDE
            )
            results = await self._write(deal_id, approval)
        except Exception as exc:
            return self._failure("approve_override", exc, deal_id)
        if failures := self._failures(results):
            return OperationResult.fail(
                "Failed to approve override: " + ", ".join(f.error or "" for f in failures),
                deal_id=deal_id,
                debug_info=self._debug_info(),
                updates=[r.model_dump() for r in results],
            )

        logger.info("workflow.override_approved", deal_id=deal_id, approved_by=actor.display)
        return OperationResult.ok(
            deal_id,
            message="Override approved! Deal can now be closed.",
            deal=deal.with_updates(approval).to_properties(),
        )

    async def handle_slack_action(self, envelope: Any) -> OperationResult:
        """Process an approve/deny button click from Slack."""
        try:
            action = parse_slack_action(envelope)
        except SlackPayloadError as exc:
            return OperationResult.fail(str(exc), debug_info=self._debug_info(exc))

        deal_id = action.deal_id
        logger.info(
            "workflow.slack_action_received",
            action=action.action,
            deal_id=deal_id,
            manager=action.manager_name,
        )
        if (failed := self._precheck(deal_id)) is not None:
            return failed

        try:
            if action.action == "approve":
                deal = await self._load(deal_id)
                updates = approval_properties(
                    deal,
                    action.manager_name,
                    self._today(),
                    props.LEGACY_APPROVED_WITH_OVERRIDE,
                )
            else:
                updates = cleared_override_properties()
            await self._crm.update_deal_properties(deal_id, updates)
        except Exception as exc:
            return self._failure("slack_action", exc, deal_id, action=action.action)

        slack_updated = False
        if action.response_url:
            decision = build_decision_message(
                action.action,
                deal_id,
                action.manager_name,
                now_in(self._settings.BUSINESS_TIMEZONE),
            )
            try:
                await self._notifier.respond(action.response_url, decision)
                slack_updated = True
            except (SlackDeliveryError, httpx.HTTPError) as exc:
                logger.warning(
                    "slack.message_update_failed", deal_id=deal_id, error=str(exc)
                )

        return OperationResult.ok(
            deal_id,
            message=f"Override {action.action} processed successfully",
            action=action.action,
            manager=action.manager_name,
            slack_message_updated=slack_updated,
        )
