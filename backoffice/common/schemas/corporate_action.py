from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CorporateActionDetailCreate(CamelModel):
    target_stock_id: Optional[str] = None # None이면 신규 종목 발행 없음 (예: 현금 배당)
    ratio_quantity_held: Optional[float] = None
    ratio_quantity_entitled: Optional[float] = None
    ratio_book_value_held: Optional[float] = None
    ratio_book_value_entitled: Optional[float] = None
    target_sale_row: Optional[bool] = None
    reference_doc_url: Optional[str] = None
    remark: Optional[str] = None

    def to_procedure_dict(self) -> dict:
        """InsertCorpActRecord 프로시저가 기대하는 snake_case 형태로 변환합니다."""
        return {
            "target_stock_id": self.target_stock_id,
            "ratio_quantity_held": self.ratio_quantity_held,
            "ratio_quantity_entitled": self.ratio_quantity_entitled,
            "ratio_book_value_held": self.ratio_book_value_held,
            "ratio_book_value_entitled": self.ratio_book_value_entitled,
            "target_sale_row": self.target_sale_row or False,
            "reference_doc_url": self.reference_doc_url,
            "remark": self.remark,
        }


class CorporateActionRecordCreate(CamelModel):
    # 필수 여부는 validate_create_payload에서 검사합니다 (누락 시 422가 아니라 400 응답).
    source_stock_id: Optional[str] = None
    corp_action_type_id: Optional[int] = None
    ex_date: Optional[int] = None
    record_date: Optional[int] = None
    allotment_date: Optional[int] = None
    remark: Optional[str] = None
    is_active: Optional[bool] = True
    details: Optional[List[CorporateActionDetailCreate]] = None


class CorporateActionRecordUpdate(CamelModel):
    source_stock_id: Optional[str] = None
    corp_action_type_id: Optional[int] = None
    ex_date: Optional[int] = None
    record_date: Optional[int] = None
    allotment_date: Optional[int] = None
    remark: Optional[str] = None
    is_active: Optional[bool] = None


class CorporateActionDetailUpdate(CamelModel):
    action_record_id: Optional[str] = None
    target_stock_id: Optional[str] = None
    ratio_quantity_held: Optional[float] = None
    ratio_quantity_entitled: Optional[float] = None
    ratio_book_value_held: Optional[float] = None
    ratio_book_value_entitled: Optional[float] = None
    target_sale_row: Optional[bool] = None
    reference_doc_url: Optional[str] = None
    remark: Optional[str] = None
    is_active: Optional[bool] = None


class CorporateActionEvent(CamelModel):
    """전략적 리브랜딩(유형 16) 생성 시 큐로 발행되는 이벤트"""
    source_stock_id: str
    corp_action_type_id: int
    ex_date: int
    record_date: int
    allotment_date: Optional[int] = None
    details: List[CorporateActionDetailCreate]
    remark: Optional[str] = None
    timestamp: str
