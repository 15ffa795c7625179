import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backoffice.common.config.queue_config import QueueConfig, QUEUE_NAME_ENV
from backoffice.common.database.procedures import call_function, call_procedure
from backoffice.common.schemas.corporate_action import (
    CorporateActionDetailUpdate,
    CorporateActionEvent,
    CorporateActionRecordCreate,
    CorporateActionRecordUpdate,
)
from backoffice.common.services.corporate_action_log_service import refresh_corporate_action_logs
from backoffice.common.services.queue_publisher import QueuePublisher
from backoffice.common.utils.date_utils import (
    format_epoch_date,
    get_current_fy_end_epoch,
    get_fy_start_epoch_by_year,
    get_fy_year,
)
from backoffice.common.utils.exceptions import MissingRequiredFieldError, QueueNotConfiguredError

logger = logging.getLogger(__name__)

STRATEGIC_REBRANDING_TYPE_ID = 16

FETCH_TYPES_FUNCTION = 'public."FetchCorporateActionType"'
FETCH_RECORDS_FUNCTION = 'public."FetchCorpActionRecords"'
FETCH_DETAILS_FUNCTION = 'public."FetchCorpActionDetails"'
INSERT_RECORD_PROCEDURE = 'public."InsertCorpActRecord"'
UPDATE_RECORD_PROCEDURE = 'public."UpdateCorpActRecord"'
DELETE_RECORD_PROCEDURE = 'public."DeleteCorpActRecord"'
UPDATE_DETAIL_PROCEDURE = 'public."UpdateCorpActDetail"'
DELETE_DETAIL_PROCEDURE = 'public."DeleteCorpActDetail"'

DEFAULT_ROW_LIMIT = 1000
DEFAULT_LOOKBACK_FY = 2

RECORD_REQUIRED_FIELDS = [
    ("source_stock_id", "sourceStockId"),
    ("corp_action_type_id", "corpActionTypeId"),
    ("ex_date", "exDate"),
    ("record_date", "recordDate"),
]
DETAIL_REQUIRED_FIELDS = [
    ("ratio_quantity_held", "ratioQuantityHeld"),
    ("ratio_quantity_entitled", "ratioQuantityEntitled"),
]


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_fields(model, fields) -> List[str]:
    return [alias for attr, alias in fields if _is_missing(getattr(model, attr))]


def validate_create_payload(payload: CorporateActionRecordCreate) -> None:
    """생성 요청의 필수 필드를 검사합니다. DB/큐 호출 전에 실패해야 합니다."""
    missing = _missing_fields(payload, RECORD_REQUIRED_FIELDS)
    if not payload.details:
        missing.append("details")
    else:
        for index, detail in enumerate(payload.details):
            missing.extend(f"details[{index}].{alias}" for alias in _missing_fields(detail, DETAIL_REQUIRED_FIELDS))
    if missing:
        raise MissingRequiredFieldError(missing)


@dataclass
class CreateOutcome:
    """생성 결과. record_id는 확정된 DB 쓰기, 나머지는 부가 작업의 결과입니다."""
    record_id: Optional[str] = None
    event_published: bool = False
    warnings: List[str] = field(default_factory=list)
    # 큐 이름 미설정은 DB 쓰기가 끝난 뒤에도 요청 실패(404)로 보고합니다.
    config_error: Optional[QueueNotConfiguredError] = None

    @property
    def notification_config_missing(self) -> bool:
        return self.config_error is not None


class CorporateActionService:
    def __init__(self, publisher: Optional[QueuePublisher] = None, queue_config: Optional[QueueConfig] = None):
        self.publisher = publisher
        self.queue_config = queue_config or QueueConfig()

    # --- 조회 ---

    def get_types(self, db: Session) -> List[Dict[str, Any]]:
        return call_function(db, FETCH_TYPES_FUNCTION)

    def get_records(
        self,
        db: Session,
        source_stock_id: Optional[str] = None,
        corp_action_id: Optional[int] = None,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
        action_record_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        row_start: int = 0,
        row_limit: int = DEFAULT_ROW_LIMIT,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """기간 미지정 시 2개 회계연도 전 시작일 ~ 현재 회계연도 종료일 범위로 조회합니다."""
        if start_date is None:
            start_date = get_fy_start_epoch_by_year(get_fy_year(now) - DEFAULT_LOOKBACK_FY)
        if end_date is None:
            end_date = get_current_fy_end_epoch(now)
        logger.debug(f"get_records 호출: source_stock_id={source_stock_id}, corp_action_id={corp_action_id}, "
                     f"기간={format_epoch_date(start_date)} ~ {format_epoch_date(end_date)}")
        return call_function(db, FETCH_RECORDS_FUNCTION, [
            source_stock_id,
            corp_action_id,
            start_date,
            end_date,
            action_record_id,
            is_active,
            row_start,
            row_limit,
        ])

    def get_details(self, db: Session, record_id: str) -> List[Dict[str, Any]]:
        # p_target_stock_id, p_action_detail_id, p_is_active는 필터 없음
        return call_function(db, FETCH_DETAILS_FUNCTION, [record_id, None, None, None, 0, DEFAULT_ROW_LIMIT])

    # --- 생성 ---

    def insert_record(self, db: Session, payload: CorporateActionRecordCreate) -> Optional[str]:
        """레코드와 상세 행을 하나의 프로시저 호출로 삽입하고, 생성된 ID를 반환합니다."""
        details_json = json.dumps(
            [detail.to_procedure_dict() for detail in payload.details],
            ensure_ascii=False,
        )
        row = call_procedure(db, INSERT_RECORD_PROCEDURE, [
            None,  # p_id (OUT)
            payload.source_stock_id,
            payload.corp_action_type_id,
            payload.ex_date,
            payload.record_date,
            payload.allotment_date,
            details_json,
            True if payload.is_active is None else payload.is_active,
            payload.remark,
        ])
        record_id = str(row[0]) if row and row[0] is not None else None
        logger.info(f"기업행위 레코드 생성: id={record_id}, stock={payload.source_stock_id}, "
                    f"type={payload.corp_action_type_id}, ex_date={format_epoch_date(payload.ex_date)}, "
                    f"상세 {len(payload.details)}건")
        return record_id

    async def create_record(self, db: Session, payload: CorporateActionRecordCreate) -> CreateOutcome:
        validate_create_payload(payload)
        # 동기 DB 호출은 스레드에서 실행해 이벤트 루프를 막지 않습니다.
        record_id = await asyncio.to_thread(self.insert_record, db, payload)
        outcome = CreateOutcome(record_id=record_id)

        warning = await asyncio.to_thread(refresh_corporate_action_logs, db)
        if warning:
            outcome.warnings.append(warning)

        if payload.corp_action_type_id == STRATEGIC_REBRANDING_TYPE_ID:
            await self._notify(payload, outcome)
        return outcome

    def build_event(self, payload: CorporateActionRecordCreate) -> CorporateActionEvent:
        return CorporateActionEvent(
            source_stock_id=payload.source_stock_id,
            corp_action_type_id=payload.corp_action_type_id,
            ex_date=payload.ex_date,
            record_date=payload.record_date,
            allotment_date=payload.allotment_date,
            details=payload.details,
            remark=payload.remark,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def _notify(self, payload: CorporateActionRecordCreate, outcome: CreateOutcome) -> None:
        if not self.queue_config.is_configured:
            outcome.config_error = QueueNotConfiguredError(QUEUE_NAME_ENV)
            logger.warning(f"큐 이름이 설정되지 않아 이벤트를 발행하지 않습니다. 레코드({outcome.record_id})는 이미 저장되었습니다.")
            outcome.warnings.append(str(outcome.config_error))
            return
        if self.publisher is None:
            logger.error("QueuePublisher가 주입되지 않아 이벤트를 발행하지 않습니다.")
            outcome.warnings.append("Event publisher is not available")
            return

        queue_name = self.queue_config.queue_name
        event = self.build_event(payload)
        try:
            await self.publisher.publish(queue_name, event.model_dump(by_alias=True, mode="json"))
            outcome.event_published = True
        except Exception as e:
            logger.error(f"'{queue_name}' 큐 발행 실패 (레코드 {outcome.record_id}): {e}", exc_info=True)
            outcome.warnings.append(f"Failed to publish event to queue {queue_name}: {e}")

    # --- 수정/삭제 ---

    def update_record(self, db: Session, record_id: str, payload: CorporateActionRecordUpdate) -> None:
        missing = _missing_fields(payload, RECORD_REQUIRED_FIELDS)
        if missing:
            raise MissingRequiredFieldError(missing)
        call_procedure(db, UPDATE_RECORD_PROCEDURE, [
            record_id,
            payload.source_stock_id,
            payload.corp_action_type_id,
            payload.ex_date,
            payload.record_date,
            payload.allotment_date,
            payload.remark,
            True if payload.is_active is None else payload.is_active,
        ])
        logger.info(f"기업행위 레코드 수정: id={record_id}")

    def delete_record(self, db: Session, record_id: str) -> None:
        # 상세 행이 남아 있으면 DB가 외래 키 위반으로 거부합니다.
        call_procedure(db, DELETE_RECORD_PROCEDURE, [record_id])
        logger.info(f"기업행위 레코드 삭제: id={record_id}")

    def update_detail(self, db: Session, detail_id: str, payload: CorporateActionDetailUpdate) -> None:
        missing = _missing_fields(payload, [("action_record_id", "actionRecordId")] + DETAIL_REQUIRED_FIELDS)
        if missing:
            raise MissingRequiredFieldError(missing)
        call_procedure(db, UPDATE_DETAIL_PROCEDURE, [
            detail_id,
            payload.action_record_id,
            payload.target_stock_id,
            payload.ratio_quantity_held,
            payload.ratio_quantity_entitled,
            payload.ratio_book_value_held,
            payload.ratio_book_value_entitled,
            payload.target_sale_row or False,
            payload.reference_doc_url,  # p_reference_doc_url는 p_remark보다 앞
            payload.remark,
            True if payload.is_active is None else payload.is_active,
        ])
        logger.info(f"기업행위 상세 수정: id={detail_id}, record={payload.action_record_id}")

    def delete_detail(self, db: Session, detail_id: str) -> None:
        call_procedure(db, DELETE_DETAIL_PROCEDURE, [detail_id])
        logger.info(f"기업행위 상세 삭제: id={detail_id}")
