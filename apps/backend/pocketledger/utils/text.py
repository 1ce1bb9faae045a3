"""
정규화 유틸리티 함수

이메일, 검색어 등을 정규화하여 조회/매칭 정확도를 높입니다.
"""

import re
import unicodedata


def normalize_email(value: str | None) -> str:
    """
    이메일 정규화

    - 앞뒤 공백 제거
    - NFKC 정규화
    - 소문자 변환

    Example:
        >>> normalize_email("  Alice@Example.COM ")
        "alice@example.com"
    """
    if not value:
        return ""
    return unicodedata.normalize("NFKC", value).strip().casefold()


def normalize_search(value: str | None) -> str:
    """
    검색어 정규화

    연속 공백을 하나로 줄이고, LIKE 패턴에서 특수 의미를 갖는
    ``%``/``_``/``\\`` 문자를 이스케이프합니다. 결과는 ``escape="\\"``와 함께 사용합니다.

    Example:
        >>> normalize_search("  50%  off ")
        '50\\\\% off'
    """
    if not value:
        return ""
    normalized = unicodedata.normalize("NFKC", value).strip()
    normalized = re.sub(r"\s+", " ", normalized)
    return re.sub(r"([\\%_])", r"\\\1", normalized)
