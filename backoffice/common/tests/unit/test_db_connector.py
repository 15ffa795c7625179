# 이 파일은 backoffice.common.database.db_connector 모듈의 단위 테스트를 포함합니다.
#
# get_db 함수는 세션을 생성하고 사용 후 닫기만 합니다. 실제 DB에 연결하지 않고
# SessionLocal을 모의(mock)하여 세션 관리 로직만 검증합니다.

import pytest
from unittest.mock import patch, MagicMock

from sqlalchemy.orm import Session

from backoffice.common.database.db_connector import get_db


def test_get_db():
    """get_db 의존성 주입 함수의 세션 생성 및 종료 로직을 테스트합니다."""
    mock_session = MagicMock(spec=Session)

    with patch('backoffice.common.database.db_connector.SessionLocal', return_value=mock_session) as mock_session_local:

        db_generator = get_db()

        db_session = next(db_generator)
        assert db_session is mock_session
        mock_session_local.assert_called_once()

        # 제너레이터 종료 시 close()가 한 번 호출되어야 합니다.
        with pytest.raises(StopIteration):
            next(db_generator)

        mock_session.close.assert_called_once()


def test_database_url_uses_psycopg2_driver():
    """선언된 드라이버(psycopg2)와 엔진 URL의 드라이버가 일치해야 합니다."""
    from backoffice.common.database.db_connector import SQLALCHEMY_DATABASE_URL, engine

    assert SQLALCHEMY_DATABASE_URL.startswith("postgresql+psycopg2://")
    assert engine.dialect.driver == "psycopg2"
