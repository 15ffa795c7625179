from .corporate_action import (
    CorporateActionDetailCreate,
    CorporateActionDetailUpdate,
    CorporateActionEvent,
    CorporateActionRecordCreate,
    CorporateActionRecordUpdate,
)

__all__ = [
    "CorporateActionDetailCreate",
    "CorporateActionDetailUpdate",
    "CorporateActionEvent",
    "CorporateActionRecordCreate",
    "CorporateActionRecordUpdate",
]
