import logging
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.common.database.procedures import call_procedure

logger = logging.getLogger(__name__)

BULK_UPSERT_LOGS_PROCEDURE = 'ritefolio."BulkUpsertCorpActionLogs"'


def refresh_corporate_action_logs(db: Session) -> Optional[str]:
    """
    보유 종목 기준으로 기업행위 로그를 전체 재계산합니다.

    로그 테이블은 파생 데이터이므로 실패해도 원 요청은 성공으로 처리합니다.
    실패 시 경고 메시지를, 성공 시 None을 반환합니다.
    """
    logger.info("BulkUpsertCorpActionLogs 프로시저 호출")
    try:
        # p_profile_id, p_demat_account_id, p_corporate_action_id 모두 NULL = 전체 재계산
        call_procedure(db, BULK_UPSERT_LOGS_PROCEDURE, [None, None, None])
    except Exception as e:
        logger.error(f"BulkUpsertCorpActionLogs 실행 실패: {e}", exc_info=True)
        logger.warning("기업행위 작업은 성공했지만 기업행위 로그 갱신은 실패했습니다.")
        return f"Corporate action logs refresh failed: {e}"
    logger.info("BulkUpsertCorpActionLogs 실행 완료")
    return None
