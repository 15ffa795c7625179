"""Message queue configuration for corporate action notifications."""
import os
from pydantic import BaseModel, Field

QUEUE_NAME_ENV = "CORP_ACTION_QUEUE_NAME"


class QueueConfig(BaseModel):
    """Redis queue settings for the corporate action event side-channel"""

    queue_url: str = Field(default_factory=lambda: os.getenv("CORP_ACTION_QUEUE_URL", "redis://localhost:6379/0"))
    queue_name: str = Field(default_factory=lambda: os.getenv(QUEUE_NAME_ENV, "").strip())

    @property
    def is_configured(self) -> bool:
        """Check if a target queue name is set"""
        return bool(self.queue_name)


def get_queue_config() -> QueueConfig:
    # 호출 시점의 환경 변수를 읽습니다. API는 lifespan에서 한 번만 호출합니다.
    return QueueConfig()
