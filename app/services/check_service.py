from contextlib import contextmanager
from dataclasses import asdict
from typing import Dict, List

from app import errors
from app.integrations import temporal_client
from app.integrations.temporal_client import WorkflowClient
from app.utils.tokens import decode_token
from app.utils.validators import validate_email
from app.workflows import catalog
from app.workflows.ids import CASE_PREFIX, background_check_workflow_id, email_from_workflow_id
from app.workflows.names import (
    BACKGROUND_CHECK_WORKFLOW, CANDIDATE_TODOS_QUERY, RESEARCHER_TODOS_QUERY, STATUS_QUERY
)
from app.workflows.types import (
    BackgroundCheckInput, BackgroundCheckStatus, CandidateTodo, CaseSettings,
    CaseState, ConsentResult, Report, ResearcherTodo, search_result_payload,
    tagged_search_result
)
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 3600


def case_settings_from_config(config=Config) -> CaseSettings:
    """Deadlines and retry limits for new cases"""
    return CaseSettings(
        consent_timeout_seconds=config.CONSENT_TIMEOUT_DAYS * SECONDS_PER_DAY,
        search_timeout_seconds=config.SEARCH_TIMEOUT_DAYS * SECONDS_PER_DAY,
        max_attempts=config.ACTIVITY_MAX_ATTEMPTS,
        initial_retry_seconds=config.ACTIVITY_INITIAL_RETRY_SECONDS,
        max_retry_seconds=config.ACTIVITY_MAX_RETRY_SECONDS
    )


@contextmanager
def _runtime_errors(not_found: str = None):
    """Translate workflow runtime adapter errors into gateway errors"""
    try:
        yield
    except temporal_client.ConflictError as e:
        raise errors.ConflictError("Background check already exists") from e
    except temporal_client.NotFoundError as e:
        raise errors.NotFoundError(not_found) from e
    except temporal_client.UnknownTokenError as e:
        raise errors.GoneError() from e
    except temporal_client.MalformedTokenError as e:
        raise errors.BadRequestError("Invalid token") from e
    except temporal_client.WorkflowClientError as e:
        raise errors.InternalError() from e


class CheckService:
    """Service for driving background check workflows"""

    def __init__(self, workflow_client: WorkflowClient, settings: CaseSettings = None):
        self.workflow_client = workflow_client
        self.settings = settings or case_settings_from_config()

    @staticmethod
    def _case_id(email: str) -> str:
        valid, error = validate_email(email)
        if not valid:
            raise errors.BadRequestError(error)
        return background_check_workflow_id(email)

    @staticmethod
    def _token(value: str) -> bytes:
        try:
            return decode_token(value)
        except ValueError as e:
            raise errors.BadRequestError(str(e)) from e

    def list_checks(self) -> List[Dict]:
        """Open background checks"""
        with _runtime_errors():
            executions = self.workflow_client.list_workflows(BACKGROUND_CHECK_WORKFLOW, CASE_PREFIX)
        return [
            {
                'email': email_from_workflow_id(execution['workflow_id']),
                'workflow_id': execution['workflow_id'],
                'started_at': execution['started_at']
            }
            for execution in executions
        ]

    def create_check(self, data: Dict) -> Dict:
        """Start the case workflow for a candidate"""
        try:
            check = BackgroundCheckInput.from_dict(data)
            catalog.validate_package(check.tier, check.package)
        except ValueError as e:
            raise errors.BadRequestError(str(e)) from e

        case_id = background_check_workflow_id(check.email)
        with _runtime_errors():
            self.workflow_client.start_workflow(case_id, BACKGROUND_CHECK_WORKFLOW, check, self.settings)

        logger.info(f"Started background check {case_id} ({check.tier}/{check.package})")
        return {'workflow_id': case_id, 'email': check.email}

    def get_status(self, email: str) -> BackgroundCheckStatus:
        case_id = self._case_id(email)
        with _runtime_errors():
            data = self.workflow_client.query_workflow(case_id, STATUS_QUERY)
        return BackgroundCheckStatus.from_dict(data)

    def cancel_check(self, email: str) -> None:
        case_id = self._case_id(email)
        with _runtime_errors():
            self.workflow_client.cancel_workflow(case_id)
        logger.info(f"Cancellation requested for {case_id}")

    def get_report(self, email: str) -> Report:
        """Final report; only completed checks have one"""
        status = self.get_status(email)
        if status.state != CaseState.COMPLETED or status.report is None:
            raise errors.ConflictError(f"Background check is {status.state}, no report available")
        return status.report

    def submit_consent(self, token: str, data: Dict) -> None:
        raw_token = self._token(token)
        try:
            result = ConsentResult.from_dict(data)
        except ValueError as e:
            raise errors.BadRequestError(str(e)) from e
        self._complete(raw_token, result)
        logger.info(f"Consent {'given' if result.consent else 'declined'}")

    def decline(self, token: str) -> None:
        self._complete(self._token(token), ConsentResult(consent=False))
        logger.info("Consent declined")

    def submit_search(self, token: str, data: Dict) -> None:
        raw_token = self._token(token)
        try:
            payload = search_result_payload(data)
        except ValueError as e:
            raise errors.BadRequestError(str(e)) from e
        # The workflow checks the tag against the search the token belongs to
        self._complete(raw_token, tagged_search_result(payload))
        logger.info(f"Search result submitted ({data['kind']})")

    def _complete(self, token: bytes, result) -> None:
        with _runtime_errors():
            self.workflow_client.complete_activity(token, result)

    def candidate_todos(self, email: str) -> List[CandidateTodo]:
        case_id = self._case_id(email)
        with _runtime_errors():
            data = self.workflow_client.query_workflow(case_id, CANDIDATE_TODOS_QUERY)
        return [CandidateTodo(**todo) for todo in data or []]

    def researcher_todos(self, email: str) -> List[ResearcherTodo]:
        case_id = self._case_id(email)
        with _runtime_errors():
            data = self.workflow_client.query_workflow(case_id, RESEARCHER_TODOS_QUERY)
        return [ResearcherTodo(**todo) for todo in data or []]


def to_json(record) -> Dict:
    return asdict(record)
