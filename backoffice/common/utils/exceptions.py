from typing import List, Optional

FOREIGN_KEY_VIOLATION = "23503"


class MissingRequiredFieldError(Exception):
    """요청 본문에 필수 필드가 누락되었을 때 발생하는 오류"""
    error_code = "MISSING_REQUIRED_FIELDS"

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = missing_fields
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}")


class ProcedureCallError(Exception):
    """저장 프로시저/함수 호출이 실패했을 때 발생하는 오류"""
    def __init__(self, routine: str, message: str, pgcode: Optional[str] = None):
        self.routine = routine
        self.message = message
        self.pgcode = pgcode
        super().__init__(message)

    @property
    def is_foreign_key_violation(self) -> bool:
        if self.pgcode == FOREIGN_KEY_VIOLATION:
            return True
        return "foreign key" in (self.message or "").lower()


class QueueNotConfiguredError(Exception):
    """메시지 큐 이름이 설정되지 않았을 때 발생하는 오류"""
    error_code = "QUEUE_NOT_CONFIGURED"

    def __init__(self, env_var: str):
        self.env_var = env_var
        super().__init__(f"Message queue is not configured ({env_var} is not set)")


class QueueNotDurableError(Exception):
    """큐 브로커에 AOF 영속화가 꺼져 있어 재시작 시 메시지가 유실될 수 있을 때 발생하는 오류"""
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Queue broker at {url} has append-only persistence disabled (appendonly no)")
