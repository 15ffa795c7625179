import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.orm import Session

from backoffice.common.config.queue_config import QueueConfig
from backoffice.common.services.queue_publisher import QueuePublisher
from backoffice.common.tests.helpers import FakeProcedureExecutor


@pytest.fixture
def executor():
    return FakeProcedureExecutor()


@pytest.fixture
def db_session(executor):
    """execute 호출을 FakeProcedureExecutor로 기록하는 Session Mock"""
    db = MagicMock(spec=Session)
    db.execute.side_effect = executor
    return db


@pytest.fixture
def mock_publisher():
    publisher = MagicMock(spec=QueuePublisher)
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def queue_config():
    return QueueConfig(queue_url="redis://test-redis:6379/0", queue_name="corp-action-rebranding")
