from fastapi import FastAPI
from contextlib import asynccontextmanager
from backoffice.api.routers import corporate_action_router
from backoffice.common.config.queue_config import get_queue_config
from backoffice.common.services.queue_publisher import QueuePublisher
import sys
import os
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime

APP_ENV = os.getenv("APP_ENV", "development")

# 로깅 레벨 설정
LOGGING_LEVEL = logging.DEBUG if APP_ENV == "development" else logging.INFO

# 로그 디렉토리 생성
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "app.log")
os.makedirs(LOG_DIR, exist_ok=True)

# 로깅 설정
logging.basicConfig(
    level=LOGGING_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        RotatingFileHandler(LOG_FILE, maxBytes=5*1024*1024, backupCount=2, encoding='utf-8')
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting back-office API service...")
    # 큐 설정은 시작 시 한 번 읽고, 연결은 첫 발행 시점에 생성됩니다.
    app.state.queue_config = get_queue_config()
    app.state.queue_publisher = QueuePublisher(app.state.queue_config.queue_url)

    yield

    logger.info("Shutting down back-office API service...")
    await app.state.queue_publisher.close()


app = FastAPI(title="Back-office Corporate Action API", lifespan=lifespan)

# --- Routers ---
app.include_router(corporate_action_router, prefix="/api/v1")

# --- Basic Endpoints ---
@app.get("/")
def read_root():
    return {"message": "API 서비스 정상 동작"}

@app.get("/health")
def health_check():
    """헬스체크 엔드포인트"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }
