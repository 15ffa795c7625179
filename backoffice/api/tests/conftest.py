import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.orm import Session

from backoffice.api.main import app
from backoffice.api.routers.corporate_action import get_app_queue_config, get_queue_publisher
from backoffice.common.config.queue_config import QueueConfig
from backoffice.common.database.db_connector import get_db
from backoffice.common.services.queue_publisher import QueuePublisher
from backoffice.common.tests.helpers import FakeProcedureExecutor


@pytest.fixture
def executor():
    return FakeProcedureExecutor()


@pytest.fixture
def mock_db_session(executor):
    """SQLAlchemy Session의 Mock 객체. execute 호출은 executor에 기록됩니다."""
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


@pytest.fixture
def overridden_app(mock_db_session, mock_publisher, queue_config):
    """DB 세션, 큐 발행기, 큐 설정이 Mock으로 대체된 app"""
    def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_queue_publisher] = lambda: mock_publisher
    app.dependency_overrides[get_app_queue_config] = lambda: queue_config

    yield app

    # 테스트 종료 후 오버라이드 복원
    app.dependency_overrides.clear()


@pytest.fixture
def client(overridden_app):
    """의존성 주입이 Mock된 TestClient"""
    with TestClient(overridden_app) as c:
        yield c
