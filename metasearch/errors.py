"""
검색 예외 정의

- SearchError: 모든 검색 예외의 기본 클래스
- ValidationError: 빈 쿼리 등 잘못된 입력
- UnknownEngineError: 등록되지 않은 검색 엔진
- UpstreamError: 외부 검색 엔진 통신/응답 실패
- UnexpectedParseError: 응답 구조가 예상과 다른 경우 (세션 토큰 누락 등)
"""

from typing import List, Optional


class SearchError(Exception):
    """검색 예외 기본 클래스"""

    def __init__(self, message: str, engine: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.engine = engine

    def to_dict(self) -> dict:
        """호출자(HTTP 계층 등)에 전달할 딕셔너리로 변환"""
        return {
            "success": False,
            "error": self.message,
            "type": type(self).__name__,
            "engine": self.engine
        }


class ValidationError(SearchError):
    """입력 검증 실패"""
    pass


class UnknownEngineError(SearchError):
    """등록되지 않은 검색 엔진"""

    def __init__(self, engine: Optional[str], available: List[str]):
        self.available = list(available)
        message = f"Unknown search engine: {engine}. Available: {', '.join(self.available)}"
        super().__init__(message, engine=engine)


class UpstreamError(SearchError):
    """외부 검색 엔진 요청 또는 응답 처리 실패

    Attributes:
        engine: 실패한 검색 엔진 이름
        cause: 원인 예외 (없을 수 있음)
    """

    def __init__(self, engine: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, engine=engine)
        self.cause = cause


class UnexpectedParseError(UpstreamError):
    """응답 마크업/구조가 예상과 다른 경우"""
    pass
