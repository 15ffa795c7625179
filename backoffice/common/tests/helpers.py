from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError


class FakeForeignKeyViolation(Exception):
    """psycopg2의 ForeignKeyViolation처럼 pgcode를 가진 드라이버 오류"""
    pgcode = "23503"


class FakeProcedureExecutor:
    """
    Session.execute 대체용. 실행된 SQL과 파라미터를 순서대로 기록하고,
    루틴 이름별로 반환 행이나 예외를 지정할 수 있습니다.
    """

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.call_rows = {}
        self.function_rows = {}

    def __call__(self, statement, params=None):
        sql = str(statement)
        self.calls.append((sql, dict(params or {})))
        for routine, error in self.failures.items():
            if routine in sql:
                raise error

        result = MagicMock()
        result.returns_rows = False
        for routine, row in self.call_rows.items():
            if routine in sql:
                result.returns_rows = True
                result.first.return_value = row
        rows = []
        for routine, function_rows in self.function_rows.items():
            if routine in sql:
                rows = function_rows
        result.mappings.return_value.all.return_value = rows
        return result

    def calls_to(self, routine):
        return [(sql, params) for sql, params in self.calls if routine in sql]


def make_operational_error(message="could not connect to server"):
    return OperationalError("CALL", {}, Exception(message))


def make_foreign_key_error():
    return IntegrityError(
        "CALL",
        {},
        FakeForeignKeyViolation('update or delete on table "CorporateActionRecords" violates foreign key constraint'),
    )


def valid_payload(**overrides):
    payload = {
        "sourceStockId": "S1",
        "corpActionTypeId": 5,
        "exDate": 1700000000,
        "recordDate": 1700500000,
        "details": [{"ratioQuantityHeld": 1, "ratioQuantityEntitled": 2}],
    }
    payload.update(overrides)
    return payload
