"""
SearchAdapter 추상 클래스

- 모든 검색 엔진 어댑터의 공통 인터페이스 (웹/이미지/뉴스/추천 검색어)
- HTTP 요청 공통 처리: 랜덤 User-Agent, 타임아웃, 오류 변환
- 어댑터 내부에서는 재시도하지 않는다
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from bs4 import BeautifulSoup
from requests.exceptions import RequestException, Timeout

from metasearch.errors import UnexpectedParseError, UpstreamError
from metasearch.models.data_models import (
    ImageSearchResponse,
    NewsSearchResponse,
    SearchConfig,
    SearchResponse,
    SuggestionResponse,
)
from metasearch.utils.user_agents import get_random_user_agent


logger = logging.getLogger(__name__)


MAX_SUGGESTIONS = 10
MAX_RELATED_SEARCHES = 8
MAX_PEOPLE_ALSO_ASK = 5


def element_text(element) -> str:
    """BeautifulSoup 요소의 텍스트 (공백 정리). 요소가 없으면 빈 문자열"""
    if element is None:
        return ""
    return " ".join(element.get_text().split())


class SearchAdapter(ABC):
    """검색 엔진 어댑터 추상 클래스

    엔진마다 하나의 구현 클래스가 있으며, SearchEngineManager가 이름으로 조회한다.
    각 메서드는 독립적으로 실패할 수 있고 실패 시 UpstreamError를 던진다.
    """

    DEFAULT_HEADERS: Dict[str, str] = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",  # br(Brotli) 제외 - 일부 환경에서 디코딩 문제 발생
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }

    def __init__(self, config: Optional[SearchConfig] = None, session: Optional[requests.Session] = None):
        """SearchAdapter 초기화

        Args:
            config: 검색 설정. None이면 기본값 사용
            session: HTTP 세션. None이면 새로 생성
        """
        self._config = config or SearchConfig()
        self._session = session or requests.Session()

    @property
    @abstractmethod
    def name(self) -> str:
        """엔진 식별 이름 (소문자, 레지스트리 키)"""
        pass

    @property
    @abstractmethod
    def label(self) -> str:
        """로그/오류 메시지에 쓰는 표시 이름"""
        pass

    @abstractmethod
    def search_web(self, query: str, page: int = 1, limit: int = 10, **options) -> SearchResponse:
        """웹 검색

        Args:
            query: 검색어 (앞뒤 공백 제거됨)
            page: 1부터 시작하는 페이지 번호
            limit: 최대 결과 수
            **options: 엔진별 옵션 (lang, country, safe, region, market)

        Returns:
            SearchResponse

        Raises:
            UpstreamError: 요청 또는 응답 처리 실패 시
        """
        pass

    @abstractmethod
    def search_images(
        self,
        query: str,
        limit: int = 20,
        size: Optional[str] = None,
        color: Optional[str] = None
    ) -> ImageSearchResponse:
        """이미지 검색"""
        pass

    @abstractmethod
    def search_news(self, query: str, limit: int = 20, freshness: Optional[str] = None) -> NewsSearchResponse:
        """뉴스 검색 (freshness: day, week, month)"""
        pass

    @abstractmethod
    def get_suggestions(self, query: str) -> SuggestionResponse:
        """추천 검색어"""
        pass

    def _get_headers(self, **extra: str) -> Dict[str, str]:
        """요청 헤더 생성 (User-Agent는 요청마다 무작위 선택)"""
        headers = dict(self.DEFAULT_HEADERS)
        headers["User-Agent"] = get_random_user_agent()
        headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        url: str,
        operation: str = "search",
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None
    ) -> requests.Response:
        """HTTP 요청 수행

        Args:
            method: HTTP 메서드
            url: 요청 URL
            operation: 오류 메시지용 작업 이름 (search, image search, ...)
            params: 쿼리 파라미터
            data: form 데이터
            headers: 요청 헤더. None이면 기본 헤더
            timeout: 타임아웃 (초). None이면 설정값

        Returns:
            2xx 응답

        Raises:
            UpstreamError: 타임아웃, 연결 오류, 2xx가 아닌 응답
        """
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers if headers is not None else self._get_headers(),
                timeout=timeout if timeout is not None else self._config.timeout
            )
            response.raise_for_status()
        except Timeout as e:
            logger.error(f"{self.label} {operation} 타임아웃: {url}")
            raise UpstreamError(self.name, f"{self.label} {operation} failed: request timed out", cause=e) from e
        except RequestException as e:
            logger.error(f"{self.label} {operation} 요청 실패: {e}")
            raise UpstreamError(self.name, f"{self.label} {operation} failed: {e}", cause=e) from e

        return response

    def _request_json(self, method: str, url: str, operation: str = "search", **kwargs) -> Any:
        """HTTP 요청 후 JSON 본문 반환

        Raises:
            UpstreamError: 요청 실패 시
            UnexpectedParseError: 본문이 JSON이 아닌 경우
        """
        response = self._request(method, url, operation=operation, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{self.label} {operation} JSON 파싱 실패: {url}")
            raise UnexpectedParseError(
                self.name, f"{self.label} {operation} failed: invalid JSON response", cause=e
            ) from e

    def _request_soup(self, method: str, url: str, operation: str = "search", **kwargs) -> BeautifulSoup:
        """HTTP 요청 후 HTML을 BeautifulSoup으로 파싱"""
        response = self._request(method, url, operation=operation, **kwargs)
        return BeautifulSoup(response.text, "lxml")

    def _metadata(self, query: str, start_time: float, **extra: Any) -> Dict[str, Any]:
        """searchMetadata 생성"""
        metadata: Dict[str, Any] = {
            "engine": self.name,
            "query": query,
            "totalTime": elapsed_ms(start_time),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        metadata.update(extra)
        return metadata


def elapsed_ms(start_time: float) -> str:
    """시작 시각 이후 경과 시간 ("123ms")"""
    return f"{int((time.time() - start_time) * 1000)}ms"
