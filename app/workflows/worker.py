from concurrent.futures import ThreadPoolExecutor

from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.workflow import NondeterminismError

from config.config import Config
from app.services.notification_service import NotificationService
from app.services.report_service import ReportService
from app.workflows.activities import BackgroundCheckActivities
from app.workflows.background_check import BackgroundCheckWorkflow


def create_worker(client: Client, task_queue: str = None,
                  notifications: NotificationService = None,
                  reports: ReportService = None,
                  activity_executor: ThreadPoolExecutor = None) -> Worker:
    """Worker hosting the case workflow and its activities on one task queue"""
    activities = BackgroundCheckActivities(client, notifications, reports)
    return Worker(
        client,
        task_queue=task_queue or Config.TASK_QUEUE,
        workflows=[BackgroundCheckWorkflow],
        activities=activities.all(),
        # Fail the case instead of retrying its workflow task forever
        workflow_failure_exception_types=[NondeterminismError],
        # persist_report is synchronous
        activity_executor=activity_executor or ThreadPoolExecutor(
            max_workers=Config.WORKER_ACTIVITY_THREADS
        )
    )


async def run_worker(address: str = None, namespace: str = None) -> None:
    client = await Client.connect(
        address or Config.TEMPORAL_ADDRESS,
        namespace=namespace or Config.TEMPORAL_NAMESPACE
    )
    worker = create_worker(client)
    await worker.run()
