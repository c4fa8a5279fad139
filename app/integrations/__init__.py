from .sendgrid_client import SendGridClient
from .temporal_client import (
    WorkflowClient, WorkflowClientError, ConflictError, NotFoundError,
    UnknownTokenError, MalformedTokenError, TransientError
)

__all__ = [
    'SendGridClient', 'WorkflowClient', 'WorkflowClientError', 'ConflictError',
    'NotFoundError', 'UnknownTokenError', 'MalformedTokenError', 'TransientError'
]
