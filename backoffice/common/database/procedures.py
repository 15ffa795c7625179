"""
PostgreSQL 저장 프로시저/함수 호출 헬퍼.

모든 비즈니스 로직은 DB 쪽 루틴에 있으므로, 이 모듈은 위치 기반 파라미터를
바인딩해서 호출하고 드라이버 오류를 ProcedureCallError로 감싸는 역할만 합니다.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.common.utils.exceptions import ProcedureCallError

logger = logging.getLogger(__name__)


def _bind(params: Sequence[Any]):
    placeholders = ", ".join(f":p{i}" for i in range(len(params)))
    values = {f"p{i}": value for i, value in enumerate(params)}
    return placeholders, values


def _wrap_error(db: Session, routine: str, e: SQLAlchemyError) -> ProcedureCallError:
    db.rollback()
    orig = getattr(e, "orig", None)
    message = str(orig) if orig is not None else str(e)
    pgcode = getattr(orig, "pgcode", None)
    logger.error(f"{routine} 호출 실패: {message}", exc_info=True)
    return ProcedureCallError(routine, message.strip(), pgcode)


def call_procedure(db: Session, procedure_name: str, params: Sequence[Any] = ()) -> Optional[tuple]:
    """
    CALL 문으로 프로시저를 실행하고 커밋합니다.

    Returns:
        Optional[tuple]: 프로시저가 OUT/INOUT 파라미터를 돌려주면 그 행, 아니면 None
    """
    placeholders, values = _bind(params)
    logger.debug(f"CALL {procedure_name} params={values}")
    try:
        result = db.execute(text(f"CALL {procedure_name}({placeholders})"), values)
        row = result.first() if result.returns_rows else None
        db.commit()
    except SQLAlchemyError as e:
        raise _wrap_error(db, procedure_name, e) from e
    return tuple(row) if row is not None else None


def call_function(db: Session, function_name: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    """SELECT * FROM 함수(...) 결과를 dict 목록으로 반환합니다."""
    placeholders, values = _bind(params)
    logger.debug(f"SELECT {function_name} params={values}")
    try:
        result = db.execute(text(f"SELECT * FROM {function_name}({placeholders})"), values)
        return [dict(row) for row in result.mappings().all()]
    except SQLAlchemyError as e:
        raise _wrap_error(db, function_name, e) from e
