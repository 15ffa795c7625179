import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from backoffice.common.utils.exceptions import QueueNotDurableError

logger = logging.getLogger(__name__)


class PublisherState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"   # 클라이언트 생성됨, PING/영속화 확인 전
    READY = "ready"


class QueuePublisher:
    """
    Redis 리스트를 내구성 큐로 사용하는 이벤트 발행기입니다.

    연결 시 PING 후 INFO persistence로 AOF 영속화를 확인하며, 꺼져 있으면
    READY로 가지 않고 QueueNotDurableError를 발생시킵니다.

    프로세스당 하나의 인스턴스를 lifespan에서 만들고 요청 간에 공유합니다.
    연결은 첫 발행 시점에 lock 안에서 한 번만 생성되며, 연결/타임아웃 오류가
    나면 UNCONNECTED로 돌아가 다음 발행에서 새로 연결합니다. 재시도는 하지 않습니다.
    """

    def __init__(self, url: str, client_factory: Optional[Callable[..., Any]] = None):
        self.url = url
        self._client_factory = client_factory or redis.from_url
        self._client = None
        self._lock = asyncio.Lock()
        self.state = PublisherState.UNCONNECTED

    async def _get_client(self):
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                logger.info(f"[Queue] Redis 연결 시도: {self.url}")
                client = self._client_factory(self.url, decode_responses=True)
                self.state = PublisherState.CONNECTED
                try:
                    await client.ping()
                    await self._ensure_durable(client)
                except Exception:
                    await self._discard(client)
                    raise
                self._client = client
                self.state = PublisherState.READY
                logger.info("[Queue] Redis 연결 완료.")
        return self._client

    async def _ensure_durable(self, client):
        info = await client.info("persistence")
        if int(info.get("aof_enabled", 0)) != 1:
            logger.error(f"[Queue] AOF 영속화가 꺼져 있어 이벤트를 발행하지 않습니다: {self.url}")
            raise QueueNotDurableError(self.url)

    async def _discard(self, client):
        # 다른 요청이 이미 재연결했다면 그 연결은 건드리지 않습니다.
        if self._client is client or self._client is None:
            self._client = None
            self.state = PublisherState.UNCONNECTED
        try:
            await client.aclose()
        except Exception as e:
            logger.debug(f"[Queue] 끊어진 연결 정리 중 오류 무시: {e}")

    async def publish(self, queue_name: str, message: dict) -> None:
        """메시지를 JSON으로 직렬화해 큐 끝에 추가합니다. 실패 시 예외를 그대로 전파합니다."""
        client = await self._get_client()
        body = json.dumps(message, ensure_ascii=False)
        try:
            length = await client.rpush(queue_name, body)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error(f"[Queue] 연결 오류로 발행 실패, 연결을 재설정합니다: {e}")
            await self._discard(client)
            raise
        logger.info(f"[Queue] '{queue_name}' 큐에 메시지 발행 (대기 {length}건)")

    async def close(self) -> None:
        if self._client is None:
            return
        client = self._client
        self._client = None
        self.state = PublisherState.UNCONNECTED
        await client.aclose()
        logger.info("[Queue] Redis 연결 종료.")
