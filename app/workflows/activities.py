import asyncio
from datetime import datetime, timezone

from temporalio import activity
from temporalio.client import Client

from app.services.notification_service import NotificationService
from app.services.report_service import ReportService
from app.utils.tokens import encode_token
from app.workflows.names import (
    PERSIST_REPORT_ACTIVITY, REQUEST_CONSENT_ACTIVITY, TODO_ISSUED_SIGNAL, research_activity
)
from app.workflows.types import (
    CONSENT, CRIMINAL, EDUCATION, EMPLOYMENT, MOTOR_VEHICLE, SSN_TRACE,
    BackgroundCheckInput, ConsentResult, CriminalSearchResult,
    EducationVerificationResult, EmploymentVerificationResult, IssuedTodo,
    MotorVehicleResult, Report, SSNTraceResult
)


class BackgroundCheckActivities:
    """Side-effecting steps of a case.

    Consent and research activities hand their task token to the workflow and
    to a human, then suspend until the gateway completes them by token.
    """

    def __init__(self, client: Client, notifications: NotificationService = None,
                 reports: ReportService = None):
        self.client = client
        self.notifications = notifications or NotificationService()
        self.reports = reports or ReportService()

    async def _suspend_on_human(self, kind: str, notify) -> None:
        info = activity.info()
        token = encode_token(info.task_token)
        created_at = datetime.now(timezone.utc)
        if info.schedule_to_close_timeout:
            deadline = info.scheduled_time + info.schedule_to_close_timeout
        else:
            deadline = created_at + info.start_to_close_timeout

        todo = IssuedTodo(
            kind=kind,
            token=token,
            created_at=created_at.isoformat(),
            deadline=deadline.isoformat()
        )
        await asyncio.to_thread(notify, token, todo.deadline)

        # Only a token that reached its human is listed as a todo
        await self.client.get_workflow_handle(
            info.workflow_id, run_id=info.workflow_run_id
        ).signal(TODO_ISSUED_SIGNAL, todo)
        activity.logger.info(f"{kind} awaiting completion (attempt {info.attempt})")
        activity.raise_complete_async()

    async def _request_research(self, kind: str, check: BackgroundCheckInput) -> None:
        await self._suspend_on_human(
            kind,
            lambda token, deadline: self.notifications.send_research_request(
                check.email, kind, token, deadline
            )
        )

    @activity.defn(name=REQUEST_CONSENT_ACTIVITY)
    async def request_consent(self, check: BackgroundCheckInput) -> ConsentResult:
        await self._suspend_on_human(
            CONSENT,
            lambda token, deadline: self.notifications.send_consent_request(
                check.email, token, deadline
            )
        )

    @activity.defn(name=research_activity(SSN_TRACE))
    async def research_ssn_trace(self, check: BackgroundCheckInput) -> SSNTraceResult:
        await self._request_research(SSN_TRACE, check)

    @activity.defn(name=research_activity(CRIMINAL))
    async def research_criminal(self, check: BackgroundCheckInput) -> CriminalSearchResult:
        await self._request_research(CRIMINAL, check)

    @activity.defn(name=research_activity(EMPLOYMENT))
    async def research_employment(self, check: BackgroundCheckInput) -> EmploymentVerificationResult:
        await self._request_research(EMPLOYMENT, check)

    @activity.defn(name=research_activity(EDUCATION))
    async def research_education(self, check: BackgroundCheckInput) -> EducationVerificationResult:
        await self._request_research(EDUCATION, check)

    @activity.defn(name=research_activity(MOTOR_VEHICLE))
    async def research_motor_vehicle(self, check: BackgroundCheckInput) -> MotorVehicleResult:
        await self._request_research(MOTOR_VEHICLE, check)

    @activity.defn(name=PERSIST_REPORT_ACTIVITY)
    def persist_report(self, report: Report) -> str:
        return self.reports.save_report(report)

    def all(self) -> list:
        """Every activity, for worker registration"""
        return [
            self.request_consent,
            self.research_ssn_trace,
            self.research_criminal,
            self.research_employment,
            self.research_education,
            self.research_motor_vehicle,
            self.persist_report,
        ]
