"""
SearchEngineManager 구현

- 엔진 이름으로 어댑터 조회 (대소문자 무시)
- 캐시 우선 조회 후 어댑터 호출 (cache-aside)
- 다중 엔진 병렬 검색 및 URL 기준 중복 제거 병합
"""

import copy
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from metasearch.engines import SearchAdapter, create_default_adapters
from metasearch.engines.base import elapsed_ms
from metasearch.errors import UnknownEngineError, ValidationError
from metasearch.models.data_models import (
    EngineOutcome,
    ImageSearchResponse,
    MultiSearchResponse,
    NewsSearchResponse,
    SearchConfig,
    SearchResponse,
    SearchResult,
    SuggestionResponse,
)
from metasearch.search.cache import SearchCache
from metasearch.utils.url_deduplicator import deduplicate_search_results


logger = logging.getLogger(__name__)


class SearchEngineManager:
    """다중 검색 엔진 관리자

    - 등록된 어댑터를 이름으로 조회하여 통일된 인터페이스 제공
    - 단일 엔진 검색 실패는 그대로 전파 (재시도, 다른 엔진 대체 없음)
    - 다중 엔진 검색은 엔진별 실패를 결과에 기록하고 나머지 엔진 결과를 병합
    """

    def __init__(
        self,
        config: Optional[SearchConfig] = None,
        cache: Optional[SearchCache] = None,
        adapters: Optional[Dict[str, SearchAdapter]] = None
    ):
        """SearchEngineManager 초기화

        Args:
            config: 검색 설정
            cache: 검색 캐시. None이면 새로 생성
            adapters: {엔진 이름: 어댑터}. None이면 기본 어댑터 생성
        """
        self._config = config or SearchConfig()
        self._cache = cache if cache is not None else SearchCache(self._config)
        self._adapters: Dict[str, SearchAdapter] = {}

        if adapters is None:
            adapters = create_default_adapters(self._config)
        for name, adapter in adapters.items():
            self.register_adapter(name, adapter)

    @property
    def cache(self) -> SearchCache:
        return self._cache

    def register_adapter(self, name: str, adapter: SearchAdapter) -> None:
        """검색 어댑터 등록

        Args:
            name: 엔진 이름 (소문자로 저장)
            adapter: 등록할 어댑터
        """
        self._adapters[name.lower()] = adapter
        logger.info(f"검색 어댑터 등록: {name.lower()}")

    def get_available_engines(self) -> Dict[str, Any]:
        """등록된 엔진 목록과 기본 엔진 반환"""
        return {
            "available": list(self._adapters.keys()),
            "default": self._config.default_engine
        }

    def resolve_adapter(self, engine: Optional[str] = None) -> SearchAdapter:
        """엔진 이름으로 어댑터 조회

        Args:
            engine: 엔진 이름. None이면 기본 엔진

        Returns:
            SearchAdapter

        Raises:
            UnknownEngineError: 등록되지 않은 엔진
        """
        return self._resolve(engine)[1]

    def search_web(
        self,
        query: str,
        engine: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
        **options: Any
    ) -> SearchResponse:
        """웹 검색

        Args:
            query: 검색어
            engine: 엔진 이름. None이면 기본 엔진
            page: 페이지 번호
            limit: 최대 결과 수. None이면 설정 기본값, 설정의 max_results를 넘지 않음
            **options: 엔진별 옵션 (lang, country, safe, region, market)

        Returns:
            cached 플래그가 설정된 SearchResponse

        Raises:
            ValidationError: 빈 검색어
            UnknownEngineError: 등록되지 않은 엔진
            UpstreamError: 어댑터 검색 실패
        """
        limit = self._clamp_limit(limit, self._config.default_limit)
        return self._cached_search(
            "web",
            query,
            engine,
            {"page": page, "limit": limit, **options},
            lambda adapter, q: adapter.search_web(q, page=page, limit=limit, **options)
        )

    def search_images(
        self,
        query: str,
        engine: Optional[str] = None,
        limit: Optional[int] = None,
        size: Optional[str] = None,
        color: Optional[str] = None
    ) -> ImageSearchResponse:
        """이미지 검색"""
        limit = self._clamp_limit(limit, 20)
        return self._cached_search(
            "images",
            query,
            engine,
            {"limit": limit, "size": size, "color": color},
            lambda adapter, q: adapter.search_images(q, limit=limit, size=size, color=color)
        )

    def search_news(
        self,
        query: str,
        engine: Optional[str] = None,
        limit: Optional[int] = None,
        freshness: Optional[str] = None
    ) -> NewsSearchResponse:
        """뉴스 검색"""
        limit = self._clamp_limit(limit, 20)
        return self._cached_search(
            "news",
            query,
            engine,
            {"limit": limit, "freshness": freshness},
            lambda adapter, q: adapter.search_news(q, limit=limit, freshness=freshness)
        )

    def get_suggestions(self, query: str, engine: Optional[str] = None) -> SuggestionResponse:
        """추천 검색어 (짧은 TTL로 캐싱)"""
        return self._cached_search(
            "suggest",
            query,
            engine,
            {},
            lambda adapter, q: adapter.get_suggestions(q),
            ttl=self._config.suggest_cache_ttl
        )

    def multi_search(
        self,
        query: str,
        engines: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        page: int = 1,
        **options: Any
    ) -> MultiSearchResponse:
        """다중 엔진 웹 검색

        모든 엔진을 병렬로 호출하고 전부 끝날 때까지 기다린다.
        엔진 입력 순서, 엔진 내 순위 순으로 병합하며 같은 URL은 처음 것만 남긴다.

        Args:
            query: 검색어
            engines: 엔진 이름 목록. None이면 등록된 전체 엔진
            limit: 병합 결과 최대 수. None이면 설정값 (30)
            page: 페이지 번호
            **options: 엔진별 옵션

        Returns:
            MultiSearchResponse

        Raises:
            ValidationError: 빈 검색어
        """
        self._validate_query(query)
        start_time = time.time()

        engine_names = list(dict.fromkeys(name.lower() for name in (engines or self._adapters.keys())))
        per_engine_limit = self._clamp_limit(limit, self._config.default_limit)
        merged_limit = limit or self._config.multi_search_limit

        logger.info(f"다중 엔진 검색: {query} (engines={engine_names})")

        outcomes: Dict[str, EngineOutcome] = {}
        collected: List[SearchResult] = []

        with ThreadPoolExecutor(max_workers=max(1, len(engine_names))) as executor:
            futures = [
                (name, executor.submit(
                    self.search_web, query, engine=name, page=page, limit=per_engine_limit, **options
                ))
                for name in engine_names
            ]

            # 입력 순서대로 모든 엔진 결과를 기다림
            for name, future in futures:
                try:
                    response = future.result()
                except Exception as e:
                    logger.warning(f"다중 검색 중 엔진 실패: {name} - {e}")
                    outcomes[name] = EngineOutcome(success=False, error=str(e))
                    continue

                outcomes[name] = EngineOutcome(success=True, count=len(response.results))
                collected.extend(response.results)

        merged = deduplicate_search_results(collected)

        logger.info(
            f"다중 엔진 검색 완료: {len(collected)}개 → {len(merged)}개 "
            f"(중복 제거, limit={merged_limit})"
        )

        return MultiSearchResponse(
            query=query,
            engines=outcomes,
            results=merged[:merged_limit],
            total_results=len(merged),
            execution_time=elapsed_ms(start_time)
        )

    def clear_cache(self) -> int:
        """캐시 초기화

        Returns:
            삭제된 캐시 항목 수
        """
        return self._cache.clear()

    def get_cache_stats(self) -> dict:
        """캐시 통계 반환"""
        return self._cache.stats()

    def _cached_search(
        self,
        search_type: str,
        query: str,
        engine: Optional[str],
        key_options: Dict[str, Any],
        fetch: Callable[[SearchAdapter, str], Any],
        ttl: Optional[int] = None
    ) -> Any:
        """캐시 확인 후 어댑터 호출

        호출자는 항상 깊은 복사본을 받으므로 반환값을 수정해도 캐시 항목은 그대로다.
        """
        clean_query = self._validate_query(query)
        name, adapter = self._resolve(engine)

        key = self._cache.generate_key(search_type, clean_query, name, key_options)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info(f"캐시 히트: {search_type} {name} '{clean_query}'")
            return replace(copy.deepcopy(cached), cached=True)

        result = fetch(adapter, clean_query)
        self._cache.set(key, result, ttl)
        return replace(copy.deepcopy(result), cached=False)

    def _clamp_limit(self, limit: Optional[int], default: int) -> int:
        """요청 limit (없으면 기본값)을 설정의 max_results 이하로 제한"""
        return min(limit or default, self._config.max_results)

    def _resolve(self, engine: Optional[str]) -> Tuple[str, SearchAdapter]:
        name = (engine or self._config.default_engine).lower()
        adapter = self._adapters.get(name)
        if adapter is None:
            raise UnknownEngineError(engine, list(self._adapters.keys()))
        return name, adapter

    @staticmethod
    def _validate_query(query: str) -> str:
        """빈 검색어 거부 후 앞뒤 공백 제거한 검색어 반환"""
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query is required")
        return query.strip()
