"""The background check case workflow.

One execution per candidate email. The case waits for the candidate's
consent, fans out the package's searches to researchers, then assembles and
stores the report. Human replies arrive as completions of the suspended
consent and research activities; the workflow keeps the tokens of those
activities so the gateway can list them as todos.
"""
import asyncio
from datetime import timedelta
from typing import Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError, is_cancelled_exception
from temporalio.exceptions import TimeoutError as ActivityTimeoutError

with workflow.unsafe.imports_passed_through():
    from app.workflows import catalog
    from app.workflows.ids import candidate_workflow_id, research_activity_id
    from app.workflows.names import (
        BACKGROUND_CHECK_WORKFLOW, CANDIDATE_TODOS_QUERY, PERSIST_REPORT_ACTIVITY,
        REQUEST_CONSENT_ACTIVITY, RESEARCHER_TODOS_QUERY, STATUS_QUERY,
        TODO_ISSUED_SIGNAL, research_activity
    )
    from app.workflows.types import (
        CONSENT, SEARCH_KINDS, BackgroundCheckInput, BackgroundCheckStatus,
        CandidateTodo, CaseSettings, CaseState, ConsentResult, IssuedTodo,
        ResearcherTodo, SearchState, SearchStatus, parse_search_payload
    )
    from app.workflows.verdict import build_report

PERSIST_REPORT_TIMEOUT = timedelta(minutes=2)


@workflow.defn(name=BACKGROUND_CHECK_WORKFLOW)
class BackgroundCheckWorkflow:

    def __init__(self) -> None:
        self._check: Optional[BackgroundCheckInput] = None
        self._status: Optional[BackgroundCheckStatus] = None
        # Outstanding activities awaiting a human, keyed by consent/search kind
        self._handles: Dict[str, workflow.ActivityHandle] = {}
        self._todos: Dict[str, IssuedTodo] = {}
        self._results: Dict[str, object] = {}
        self._errors: Dict[str, str] = {}

    @workflow.run
    async def run(self, check: BackgroundCheckInput,
                  settings: Optional[CaseSettings] = None) -> BackgroundCheckStatus:
        settings = settings or CaseSettings()
        self._check = check
        self._status = BackgroundCheckStatus(
            email=check.email,
            tier=check.tier,
            package=check.package,
            state=CaseState.PENDING_CONSENT,
            started_at=self._now()
        )

        try:
            kinds = catalog.searches_for(check.tier, check.package)
        except ValueError as e:
            self._finish(CaseState.FAILED)
            raise ApplicationError(str(e), type='InvalidCase', non_retryable=True)

        try:
            consent = await self._await_consent(check, settings)
            if consent is None:
                self._finish(CaseState.FAILED)
                return self._status
            if not consent:
                workflow.logger.info(f"Background check for {check.email} declined")
                self._finish(CaseState.DECLINED)
                return self._status

            self._status.state = CaseState.RUNNING
            await self._run_searches(check, kinds, settings)

            failed_mandatory = [k for k in self._errors if catalog.is_mandatory(check.package, k)]
            if failed_mandatory:
                workflow.logger.warning(f"Mandatory searches failed: {', '.join(failed_mandatory)}")
                self._finish(CaseState.FAILED)
                return self._status

            report = build_report(
                workflow.info().workflow_id,
                check,
                self._results,
                self._errors,
                self._now()
            )
            try:
                await workflow.execute_activity(
                    PERSIST_REPORT_ACTIVITY,
                    report,
                    start_to_close_timeout=PERSIST_REPORT_TIMEOUT,
                    retry_policy=self._retry_policy(settings)
                )
            except ActivityError as e:
                if is_cancelled_exception(e):
                    raise
                workflow.logger.error(f"Could not store report: {e.cause or e}")
                self._finish(CaseState.FAILED)
                return self._status

            self._status.report = report
            self._finish(CaseState.COMPLETED)
            return self._status

        except (asyncio.CancelledError, ActivityError) as e:
            if not is_cancelled_exception(e):
                raise
            workflow.logger.info(f"Background check for {check.email} cancelled")
            self._cancel_outstanding()
            self._finish(CaseState.CANCELLED)
            raise

    async def _await_consent(self, check: BackgroundCheckInput,
                             settings: CaseSettings) -> Optional[bool]:
        """Wait for the candidate's decision.

        Returns the decision, False once the deadline passes, or None when
        the consent request itself failed.
        """
        timeout = timedelta(seconds=settings.consent_timeout_seconds)
        handle = workflow.start_activity(
            REQUEST_CONSENT_ACTIVITY,
            check,
            activity_id=candidate_workflow_id(check.email),
            result_type=dict,
            schedule_to_close_timeout=timeout,
            # Only the deadline ends the consent request
            retry_policy=self._retry_policy(settings, limit_attempts=False),
            cancellation_type=workflow.ActivityCancellationType.TRY_CANCEL
        )
        self._handles[CONSENT] = handle

        try:
            await workflow.wait_condition(lambda: handle.done(), timeout=timeout)
        except asyncio.TimeoutError:
            workflow.logger.info(f"Consent deadline passed for {check.email}")
            self._cancel_outstanding()
            return False
        finally:
            self._todos.pop(CONSENT, None)

        self._handles.pop(CONSENT, None)
        try:
            result = ConsentResult.from_dict(handle.result())
        except ActivityError as e:
            if is_cancelled_exception(e):
                raise
            if isinstance(e.cause, ActivityTimeoutError):
                workflow.logger.info(f"Consent deadline passed for {check.email}")
                return False
            workflow.logger.warning(f"Consent request failed: {e.cause or e}")
            return None
        except ValueError as e:
            workflow.logger.warning(f"Malformed consent result: {e}")
            return None
        return result.consent

    async def _run_searches(self, check: BackgroundCheckInput, kinds: List[str],
                            settings: CaseSettings) -> None:
        started_at = self._now()
        for kind in kinds:
            self._status.searches[kind] = SearchStatus(
                status=SearchState.RUNNING,
                started_at=started_at
            )
            self._handles[kind] = workflow.start_activity(
                research_activity(kind),
                check,
                activity_id=research_activity_id(check.email, kind),
                result_type=dict,
                schedule_to_close_timeout=timedelta(seconds=settings.search_timeout_seconds),
                retry_policy=self._retry_policy(settings),
                cancellation_type=workflow.ActivityCancellationType.TRY_CANCEL
            )

        await asyncio.gather(*(
            self._settle_search(check, kind, self._handles[kind]) for kind in kinds
        ))

    async def _settle_search(self, check: BackgroundCheckInput, kind: str,
                             handle: workflow.ActivityHandle) -> None:
        try:
            raw = await handle
        except ActivityError as e:
            if is_cancelled_exception(e):
                self._record_search(kind, SearchState.CANCELLED)
                return
            if isinstance(e.cause, ActivityTimeoutError):
                error = 'DeadlineExceeded'
            else:
                error = str(e.cause or e)
            self._search_failed(check, kind, error)
            return

        try:
            self._results[kind] = parse_search_payload(kind, raw)
        except ValueError as e:
            self._search_failed(check, kind, f'Malformed {kind} result: {e}')
            return
        self._record_search(kind, SearchState.COMPLETED)

    def _search_failed(self, check: BackgroundCheckInput, kind: str, error: str) -> None:
        workflow.logger.warning(f"{kind} search failed for {check.email}: {error}")
        self._errors[kind] = error
        self._record_search(kind, SearchState.FAILED, error)
        if catalog.is_mandatory(check.package, kind):
            # The case can no longer complete
            self._cancel_outstanding()

    def _record_search(self, kind: str, state: str, error: str = None) -> None:
        self._handles.pop(kind, None)
        self._todos.pop(kind, None)
        search = self._status.searches[kind]
        search.status = state
        search.completed_at = self._now()
        search.error = error

    def _cancel_outstanding(self) -> None:
        for handle in list(self._handles.values()):
            if not handle.done():
                handle.cancel()
        self._handles.clear()
        self._todos.clear()

    def _finish(self, state: str) -> None:
        self._status.state = state
        self._status.completed_at = self._now()

    @staticmethod
    def _retry_policy(settings: CaseSettings, limit_attempts: bool = True) -> RetryPolicy:
        return RetryPolicy(
            initial_interval=timedelta(seconds=settings.initial_retry_seconds),
            backoff_coefficient=2.0,
            maximum_interval=timedelta(seconds=settings.max_retry_seconds),
            # 0 means unlimited
            maximum_attempts=settings.max_attempts if limit_attempts else 0
        )

    @staticmethod
    def _now() -> str:
        return workflow.now().isoformat()

    @workflow.signal(name=TODO_ISSUED_SIGNAL)
    def todo_issued(self, todo: IssuedTodo) -> None:
        handle = self._handles.get(todo.kind)
        if handle is None or handle.done():
            return
        # A retried activity carries a new token; the latest one wins
        self._todos[todo.kind] = todo

    @workflow.query(name=STATUS_QUERY)
    def status(self) -> BackgroundCheckStatus:
        return self._status

    @workflow.query(name=CANDIDATE_TODOS_QUERY)
    def candidate_todos(self) -> List[CandidateTodo]:
        todo = self._todos.get(CONSENT)
        if todo is None:
            return []
        return [CandidateTodo(
            token=todo.token,
            kind=todo.kind,
            created_at=todo.created_at,
            deadline=todo.deadline
        )]

    @workflow.query(name=RESEARCHER_TODOS_QUERY)
    def researcher_todos(self) -> List[ResearcherTodo]:
        return [
            ResearcherTodo(
                token=todo.token,
                kind=todo.kind,
                email=self._check.email,
                created_at=todo.created_at,
                deadline=todo.deadline
            )
            for kind, todo in sorted(self._todos.items(), key=lambda item: _kind_order(item[0]))
            if kind != CONSENT
        ]


def _kind_order(kind: str) -> int:
    return SEARCH_KINDS.index(kind) if kind in SEARCH_KINDS else len(SEARCH_KINDS)
