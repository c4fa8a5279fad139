import os
import tempfile

# Configure before any application module reads Config
_tmp = tempfile.mkdtemp(prefix='background-checks-')
os.environ.setdefault('DATABASE_URL', f"sqlite:///{os.path.join(_tmp, 'test.db')}")
os.environ.setdefault('LOG_FILE', os.path.join(_tmp, 'logs', 'test.log'))
os.environ.setdefault('FLASK_ENV', 'testing')

from unittest.mock import MagicMock

import pytest

from app.integrations.temporal_client import WorkflowClient
from app.main import create_app


@pytest.fixture
def workflow_client():
    """Adapter stand-in; tests set return values and side effects"""
    return MagicMock(spec=WorkflowClient)


@pytest.fixture
def app(workflow_client):
    return create_app('testing', workflow_client=workflow_client)


@pytest.fixture
def client(app):
    return app.test_client()
