"""
Epoch(초) 기반 날짜 유틸리티.

회계연도는 인도 기준(4월 1일 ~ 다음 해 3월 31일)이며, 모든 계산은 서버 로컬 시간 기준입니다.
"""
from datetime import datetime
from typing import Optional

FY_START_MONTH = 4


def date_to_epoch(value: datetime) -> int:
    return int(value.timestamp())


def get_fy_year(now: Optional[datetime] = None) -> int:
    """현재 회계연도의 시작 연도 (1~3월이면 전년도)"""
    now = now or datetime.now()
    return now.year - 1 if now.month < FY_START_MONTH else now.year


def get_fy_start_epoch_by_year(year: int) -> int:
    return date_to_epoch(datetime(year, FY_START_MONTH, 1, 0, 0, 0))


def get_fy_end_epoch_by_year(year: int) -> int:
    # FY 2024-25는 2025년 3월 31일 23:59:59에 끝남
    return date_to_epoch(datetime(year + 1, 3, 31, 23, 59, 59, 999000))


def get_current_fy_end_epoch(now: Optional[datetime] = None) -> int:
    return get_fy_end_epoch_by_year(get_fy_year(now))


def format_epoch_date(epoch_time: Optional[int], include_time: bool = False) -> str:
    """로그 표시용 포맷. 값이 없으면 '-'"""
    if not epoch_time:
        return "-"
    value = datetime.fromtimestamp(epoch_time)
    if include_time:
        return value.strftime("%d %b %Y, %H:%M")
    return value.strftime("%d %b %Y")
