import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from backoffice.common.config.queue_config import QueueConfig, get_queue_config
from backoffice.common.database.db_connector import get_db
from backoffice.common.schemas.corporate_action import (
    CorporateActionDetailUpdate,
    CorporateActionRecordCreate,
    CorporateActionRecordUpdate,
)
from backoffice.common.services.corporate_action_service import CorporateActionService, DEFAULT_ROW_LIMIT
from backoffice.common.services.queue_publisher import QueuePublisher
from backoffice.common.utils.exceptions import MissingRequiredFieldError, ProcedureCallError

router = APIRouter(prefix="/corporate-action", tags=["corporate-action"])
logger = logging.getLogger(__name__)


def get_queue_publisher(request: Request) -> Optional[QueuePublisher]:
    """lifespan에서 생성한 프로세스 공용 QueuePublisher"""
    return getattr(request.app.state, "queue_publisher", None)


def get_app_queue_config(request: Request) -> QueueConfig:
    """lifespan에서 읽은 큐 설정. 큐 URL과 이름은 같은 시점의 값을 사용합니다."""
    config = getattr(request.app.state, "queue_config", None)
    return config if config is not None else get_queue_config()


def get_corporate_action_service(
    publisher: Optional[QueuePublisher] = Depends(get_queue_publisher),
    queue_config: QueueConfig = Depends(get_app_queue_config),
):
    return CorporateActionService(publisher=publisher, queue_config=queue_config)


def _bad_request(e: MissingRequiredFieldError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": e.error_code, "message": str(e), "fields": e.missing_fields},
    )


def _server_error(error: str, e: ProcedureCallError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": error, "message": e.message},
    )


# --- 기업행위 유형 ---

@router.get("/types",
            summary="기업행위 유형 목록 조회",
            description="배당, 무상증자, 합병 등 기업행위 유형 참조 데이터를 조회합니다.")
def get_corporate_action_types(
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        types = service.get_types(db)
    except ProcedureCallError as e:
        raise _server_error("Failed to fetch corporate action types", e)
    return {"success": True, "data": types}


# --- 기업행위 레코드 ---

@router.get("/records",
            summary="기업행위 레코드 조회",
            description="기간 미지정 시 2개 회계연도 전부터 현재 회계연도 말까지의 레코드를 조회합니다.")
def get_corporate_action_records(
    source_stock_id: Optional[str] = Query(None, alias="sourceStockId"),
    corp_action_id: Optional[int] = Query(None, alias="corpActionId"),
    start_date: Optional[int] = Query(None, alias="startDate"),
    end_date: Optional[int] = Query(None, alias="endDate"),
    action_record_id: Optional[str] = Query(None, alias="actionRecordId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    row_start: int = Query(0, alias="rowStart", ge=0),
    row_limit: int = Query(DEFAULT_ROW_LIMIT, alias="rowLimit", ge=1),
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        records = service.get_records(
            db,
            source_stock_id=source_stock_id,
            corp_action_id=corp_action_id,
            start_date=start_date,
            end_date=end_date,
            action_record_id=action_record_id,
            is_active=is_active,
            row_start=row_start,
            row_limit=row_limit,
        )
    except ProcedureCallError as e:
        raise _server_error("Failed to fetch corporate action records", e)
    return {"success": True, "data": records}


@router.post("/records", status_code=201,
             summary="기업행위 레코드 생성",
             description="레코드와 비율 상세를 한 번에 생성하고, 기업행위 로그를 재계산합니다. "
                         "유형 16(전략적 리브랜딩)은 이벤트 큐로도 발행합니다.",
             response_description="생성된 레코드 ID와 부가 작업 경고 목록.")
async def create_corporate_action_record(
    payload: CorporateActionRecordCreate,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        outcome = await service.create_record(db, payload)
    except MissingRequiredFieldError as e:
        raise _bad_request(e)
    except ProcedureCallError as e:
        raise _server_error("Failed to create corporate action record", e)

    if outcome.notification_config_missing:
        # DB 쓰기는 이미 커밋된 상태. 기존 동작대로 404를 반환합니다.
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": outcome.config_error.error_code,
                "message": str(outcome.config_error),
                "recordId": outcome.record_id,
            },
        )

    return {
        "success": True,
        "message": "Corporate action record created successfully",
        "data": {"id": outcome.record_id},
        "warnings": outcome.warnings,
    }


@router.put("/records/{record_id}", summary="기업행위 레코드 수정")
def update_corporate_action_record(
    record_id: str,
    payload: CorporateActionRecordUpdate,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        service.update_record(db, record_id, payload)
    except MissingRequiredFieldError as e:
        raise _bad_request(e)
    except ProcedureCallError as e:
        raise _server_error("Failed to update corporate action record", e)
    return {"success": True, "message": "Corporate action record updated successfully"}


@router.delete("/records/{record_id}", summary="기업행위 레코드 삭제",
               description="상세 행이 남아 있으면 409를 반환합니다. 상세를 먼저 삭제해야 합니다.")
def delete_corporate_action_record(
    record_id: str,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        service.delete_record(db, record_id)
    except ProcedureCallError as e:
        if e.is_foreign_key_violation:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "error": "Cannot delete record",
                    "message": "This corporate action record has associated details. "
                               "Please delete all detail records first before deleting the main record.",
                },
            )
        raise _server_error("Failed to delete corporate action record", e)
    return {"success": True, "message": "Corporate action record deleted successfully"}


# --- 기업행위 상세 ---

@router.get("/records/{record_id}/details", summary="기업행위 상세 조회")
def get_corporate_action_details(
    record_id: str,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        details = service.get_details(db, record_id)
    except ProcedureCallError as e:
        raise _server_error("Failed to fetch corporate action details", e)
    return {"success": True, "data": details}


@router.put("/records/{record_id}/details/{detail_id}", summary="기업행위 상세 수정")
def update_corporate_action_detail(
    record_id: str,
    detail_id: str,
    payload: CorporateActionDetailUpdate,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        service.update_detail(db, detail_id, payload)
    except MissingRequiredFieldError as e:
        raise _bad_request(e)
    except ProcedureCallError as e:
        raise _server_error("Failed to update corporate action detail", e)
    return {"success": True, "message": "Corporate action detail updated successfully"}


@router.delete("/records/{record_id}/details/{detail_id}", summary="기업행위 상세 삭제")
def delete_corporate_action_detail(
    record_id: str,
    detail_id: str,
    db: Session = Depends(get_db),
    service: CorporateActionService = Depends(get_corporate_action_service),
):
    try:
        service.delete_detail(db, detail_id)
    except ProcedureCallError as e:
        raise _server_error("Failed to delete corporate action detail", e)
    return {"success": True, "message": "Corporate action detail deleted successfully"}
