import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from temporalio.client import WorkflowQueryFailedError
from temporalio.exceptions import ApplicationError, WorkflowAlreadyStartedError
from temporalio.service import RPCError, RPCStatusCode
from app.integrations.temporal_client import (
    ConflictError, MalformedTokenError, NotFoundError, TransientError,
    UnknownTokenError, WorkflowClient
)


def rpc_error(status):
    return RPCError(f"rpc failed: {status.name}", status, b'')


@pytest.fixture
def runtime():
    """Fake runtime client returned by Client.connect"""
    fake = MagicMock()
    handle = MagicMock()
    handle.id = 'BackgroundCheck-a@example.com'
    handle.cancel = AsyncMock()
    handle.query = AsyncMock(return_value={'state': 'running'})
    fake.start_workflow = AsyncMock(return_value=handle)
    fake.get_workflow_handle = MagicMock(return_value=handle)

    activity_handle = MagicMock()
    activity_handle.complete = AsyncMock()
    activity_handle.fail = AsyncMock()
    fake.get_async_activity_handle = MagicMock(return_value=activity_handle)
    fake.workflow_handle = handle
    fake.activity_handle = activity_handle
    return fake


@pytest.fixture
def workflow_client(runtime):
    with patch('app.integrations.temporal_client.Client') as client_class:
        client_class.connect = AsyncMock(return_value=runtime)
        wc = WorkflowClient(address='temporal:7233', namespace='checks',
                            task_queue='background-checks-main', rpc_timeout=1)
        wc.init()
        client_class.connect.assert_awaited_once_with('temporal:7233', namespace='checks')
        yield wc
        wc.close()


class TestWorkflowClient:
    """Test the workflow runtime adapter"""

    def test_lifecycle(self, workflow_client):
        assert workflow_client.connected
        workflow_client.close()
        assert not workflow_client.connected
        with pytest.raises(TransientError):
            workflow_client.query_workflow('BackgroundCheck-a@example.com', 'status')

    def test_init_failure_stops_loop(self):
        with patch('app.integrations.temporal_client.Client') as client_class:
            client_class.connect = AsyncMock(side_effect=RuntimeError('connection refused'))
            wc = WorkflowClient(address='temporal:7233', rpc_timeout=1)
            with pytest.raises(RuntimeError):
                wc.init()
            assert not wc.connected

    def test_start_workflow(self, workflow_client, runtime):
        result = workflow_client.start_workflow('BackgroundCheck-a@example.com', 'BackgroundCheck', 'in', 'opts')

        assert result == 'BackgroundCheck-a@example.com'
        args, kwargs = runtime.start_workflow.call_args
        assert args == ('BackgroundCheck',)
        assert kwargs['args'] == ['in', 'opts']
        assert kwargs['id'] == 'BackgroundCheck-a@example.com'
        assert kwargs['task_queue'] == 'background-checks-main'

    def test_start_workflow_conflict(self, workflow_client, runtime):
        runtime.start_workflow.side_effect = WorkflowAlreadyStartedError(
            'BackgroundCheck-a@example.com', 'BackgroundCheck'
        )
        with pytest.raises(ConflictError):
            workflow_client.start_workflow('BackgroundCheck-a@example.com', 'BackgroundCheck')

    def test_start_workflow_unavailable(self, workflow_client, runtime):
        runtime.start_workflow.side_effect = rpc_error(RPCStatusCode.UNAVAILABLE)
        with pytest.raises(TransientError):
            workflow_client.start_workflow('BackgroundCheck-a@example.com', 'BackgroundCheck')

    def test_cancel_workflow(self, workflow_client, runtime):
        workflow_client.cancel_workflow('BackgroundCheck-a@example.com')

        runtime.get_workflow_handle.assert_called_with('BackgroundCheck-a@example.com')
        runtime.workflow_handle.cancel.assert_awaited_once()

    def test_cancel_unknown_workflow(self, workflow_client, runtime):
        runtime.workflow_handle.cancel.side_effect = rpc_error(RPCStatusCode.NOT_FOUND)
        with pytest.raises(NotFoundError):
            workflow_client.cancel_workflow('BackgroundCheck-a@example.com')

    def test_query_workflow(self, workflow_client, runtime):
        assert workflow_client.query_workflow('BackgroundCheck-a@example.com', 'status') == {'state': 'running'}
        args, kwargs = runtime.workflow_handle.query.call_args
        assert args == ('status',)
        assert kwargs['args'] == []

    def test_query_unknown_workflow(self, workflow_client, runtime):
        runtime.workflow_handle.query.side_effect = rpc_error(RPCStatusCode.NOT_FOUND)
        with pytest.raises(NotFoundError):
            workflow_client.query_workflow('BackgroundCheck-a@example.com', 'status')

    def test_query_failed(self, workflow_client, runtime):
        runtime.workflow_handle.query.side_effect = WorkflowQueryFailedError('unknown query')
        with pytest.raises(TransientError):
            workflow_client.query_workflow('BackgroundCheck-a@example.com', 'bogus')

    def test_complete_activity(self, workflow_client, runtime):
        workflow_client.complete_activity(b'token', {'consent': True})

        runtime.get_async_activity_handle.assert_called_once_with(task_token=b'token')
        runtime.activity_handle.complete.assert_awaited_once()
        assert runtime.activity_handle.complete.call_args[0] == ({'consent': True},)

    def test_fail_activity(self, workflow_client, runtime):
        workflow_client.complete_activity(b'token', error=ValueError('no records office'))

        failure = runtime.activity_handle.fail.call_args[0][0]
        assert isinstance(failure, ApplicationError)
        assert failure.type == 'ValueError'
        runtime.activity_handle.complete.assert_not_awaited()

    def test_complete_consumed_token(self, workflow_client, runtime):
        runtime.activity_handle.complete.side_effect = rpc_error(RPCStatusCode.NOT_FOUND)
        with pytest.raises(UnknownTokenError):
            workflow_client.complete_activity(b'token', {'consent': True})

    def test_complete_malformed_token(self, workflow_client, runtime):
        runtime.activity_handle.complete.side_effect = rpc_error(RPCStatusCode.INVALID_ARGUMENT)
        with pytest.raises(MalformedTokenError):
            workflow_client.complete_activity(b'garbage', {'consent': True})

    def test_list_workflows(self, workflow_client, runtime):
        started = datetime(2024, 1, 1, tzinfo=timezone.utc)

        async def executions(query, **kwargs):
            for workflow_id in ('BackgroundCheck-a@example.com', 'Other-b@example.com'):
                execution = MagicMock()
                execution.id = workflow_id
                execution.start_time = started
                yield execution

        runtime.list_workflows = MagicMock(side_effect=executions)

        result = workflow_client.list_workflows('BackgroundCheck', 'BackgroundCheck-')

        assert result == [{
            'workflow_id': 'BackgroundCheck-a@example.com',
            'started_at': started.isoformat()
        }]
        query = runtime.list_workflows.call_args[0][0]
        assert "WorkflowType = 'BackgroundCheck'" in query
        assert "ExecutionStatus = 'Running'" in query
