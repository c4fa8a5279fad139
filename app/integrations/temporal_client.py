import asyncio
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Any, Dict, List, Optional

from temporalio.client import Client, WorkflowQueryFailedError, WorkflowQueryRejectedError
from temporalio.exceptions import ApplicationError, WorkflowAlreadyStartedError
from temporalio.service import RPCError, RPCStatusCode

from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowClientError(Exception):
    """Base class for workflow runtime adapter errors"""


class ConflictError(WorkflowClientError):
    """A workflow with the requested id is already running"""


class NotFoundError(WorkflowClientError):
    """No workflow execution for the requested id"""


class UnknownTokenError(WorkflowClientError):
    """Task token does not name a pending activity (consumed, cancelled or closed)"""


class MalformedTokenError(WorkflowClientError):
    """The runtime rejected the task token bytes"""


class TransientError(WorkflowClientError):
    """Runtime unreachable or call failed; the caller may retry"""


class WorkflowClient:
    """Wrapper for the durable workflow runtime.

    Holds one runtime client for the life of the process. The runtime SDK is
    asyncio based while the gateway is not, so calls are run on a private
    event loop thread and the public methods block until they finish.
    """

    def __init__(self, address: str = None, namespace: str = None,
                 task_queue: str = None, rpc_timeout: float = None):
        self.address = address or Config.TEMPORAL_ADDRESS
        self.namespace = namespace or Config.TEMPORAL_NAMESPACE
        self.task_queue = task_queue or Config.TASK_QUEUE
        self.rpc_timeout = rpc_timeout or Config.TEMPORAL_RPC_TIMEOUT_SECONDS
        self._client: Optional[Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def init(self) -> None:
        """Start the event loop thread and connect to the runtime"""
        with self._lock:
            if self._client is not None:
                return
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._loop.run_forever,
                name='workflow-client',
                daemon=True
            )
            self._thread.start()
            try:
                self._client = self._run(Client.connect(self.address, namespace=self.namespace))
            except Exception:
                self._stop_loop()
                raise
            logger.info(f"Connected to workflow runtime at {self.address} ({self.namespace})")

    def close(self) -> None:
        """Drop the runtime client and stop the event loop thread"""
        with self._lock:
            if self._loop is None:
                return
            self._client = None
            self._stop_loop()
            logger.info("Workflow runtime client closed")

    def _stop_loop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        self._loop = None
        self._thread = None

    def _run(self, coro):
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            # Slack over the RPC deadline so the runtime reports its own timeout first
            return future.result(self.rpc_timeout + 5)
        except FutureTimeoutError as e:
            future.cancel()
            raise TransientError("Workflow runtime call timed out") from e

    def _require_client(self) -> Client:
        if self._client is None:
            raise TransientError("Workflow runtime client is not initialized")
        return self._client

    @property
    def _timeout(self) -> timedelta:
        return timedelta(seconds=self.rpc_timeout)

    def start_workflow(self, workflow_id: str, workflow: str, *args: Any) -> str:
        """Start a workflow on the case task queue, returning its id"""
        client = self._require_client()

        async def start():
            handle = await client.start_workflow(
                workflow,
                args=list(args),
                id=workflow_id,
                task_queue=self.task_queue,
                rpc_timeout=self._timeout
            )
            return handle.id

        try:
            return self._run(start())
        except WorkflowAlreadyStartedError as e:
            raise ConflictError(f"Workflow {workflow_id} already exists") from e
        except RPCError as e:
            if e.status == RPCStatusCode.ALREADY_EXISTS:
                raise ConflictError(f"Workflow {workflow_id} already exists") from e
            logger.error(f"Error starting workflow {workflow_id}: {str(e)}")
            raise TransientError(str(e)) from e

    def cancel_workflow(self, workflow_id: str) -> None:
        """Request cancellation of a running workflow"""
        client = self._require_client()

        async def cancel():
            await client.get_workflow_handle(workflow_id).cancel(rpc_timeout=self._timeout)

        try:
            self._run(cancel())
        except RPCError as e:
            if e.status == RPCStatusCode.NOT_FOUND:
                raise NotFoundError(f"Workflow {workflow_id} not found") from e
            logger.error(f"Error cancelling workflow {workflow_id}: {str(e)}")
            raise TransientError(str(e)) from e

    def query_workflow(self, workflow_id: str, query: str, *args: Any) -> Any:
        """Run a query and return its JSON-decoded value"""
        client = self._require_client()

        async def run_query():
            return await client.get_workflow_handle(workflow_id).query(
                query,
                args=list(args),
                rpc_timeout=self._timeout
            )

        try:
            return self._run(run_query())
        except RPCError as e:
            if e.status == RPCStatusCode.NOT_FOUND:
                raise NotFoundError(f"Workflow {workflow_id} not found") from e
            logger.error(f"Error querying {query} on {workflow_id}: {str(e)}")
            raise TransientError(str(e)) from e
        except (WorkflowQueryFailedError, WorkflowQueryRejectedError) as e:
            logger.error(f"Query {query} on {workflow_id} failed: {str(e)}")
            raise TransientError(str(e)) from e

    def complete_activity(self, token: bytes, result: Any = None, error: Exception = None) -> None:
        """Complete (or, with ``error``, fail) an activity awaiting external completion"""
        client = self._require_client()

        async def complete():
            handle = client.get_async_activity_handle(task_token=token)
            if error is not None:
                if not isinstance(error, ApplicationError):
                    failure = ApplicationError(str(error), type=type(error).__name__)
                else:
                    failure = error
                await handle.fail(failure, rpc_timeout=self._timeout)
            else:
                await handle.complete(result, rpc_timeout=self._timeout)

        try:
            self._run(complete())
        except RPCError as e:
            if e.status == RPCStatusCode.NOT_FOUND:
                raise UnknownTokenError("Activity is no longer awaiting completion") from e
            if e.status == RPCStatusCode.INVALID_ARGUMENT:
                raise MalformedTokenError(str(e)) from e
            logger.error(f"Error completing activity: {str(e)}")
            raise TransientError(str(e)) from e

    def list_workflows(self, workflow_type: str, prefix: str) -> List[Dict]:
        """Running executions of a workflow type whose ids start with ``prefix``"""
        client = self._require_client()
        query = f"WorkflowType = '{workflow_type}' AND ExecutionStatus = 'Running'"

        async def list_running():
            executions = []
            async for execution in client.list_workflows(query, rpc_timeout=self._timeout):
                if not execution.id.startswith(prefix):
                    continue
                executions.append({
                    'workflow_id': execution.id,
                    'started_at': execution.start_time.isoformat() if execution.start_time else None
                })
            return executions

        try:
            return self._run(list_running())
        except RPCError as e:
            logger.error(f"Error listing {workflow_type} workflows: {str(e)}")
            raise TransientError(str(e)) from e
