"""
SearchCache 구현

- 검색 응답 캐싱 및 TTL 관리 (항목별 TTL 지정 가능)
- 최대 키 수 초과 시 가장 오래 사용하지 않은 항목 제거
- 여러 스레드에서 동시에 읽고 써도 안전 (같은 키는 마지막 쓰기 우선)
"""

import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from metasearch.models.data_models import SearchConfig


logger = logging.getLogger(__name__)


class SearchCache:
    """검색 응답 캐시

    - 키: (검색 유형, 엔진, 정규화된 쿼리, 옵션) 조합
    - 값: 캐시 플래그를 붙이기 전의 응답 객체 (호출자는 변경하지 않는다)
    """

    def __init__(self, config: Optional[SearchConfig] = None, clock: Optional[Callable[[], float]] = None):
        """SearchCache 초기화

        Args:
            config: 검색 설정. None이면 기본값 사용
            clock: 현재 시각(초)을 반환하는 함수. None이면 time.monotonic
        """
        if config is None:
            config = SearchConfig()

        self.ttl: int = config.cache_ttl  # 기본 캐시 유효 시간 (초)
        self.max_keys: int = config.cache_max_keys
        # 캐시 저장소: {key: (value, expires_at)}
        self._cache: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._clock = clock or time.monotonic
        self._hits = 0
        self._misses = 0

    @staticmethod
    def generate_key(
        search_type: str,
        query: str,
        engine: str,
        options: Optional[Dict[str, Any]] = None
    ) -> str:
        """캐시 키 생성

        쿼리는 소문자 변환 및 공백 정리, 옵션은 키 정렬 후 직렬화하므로
        옵션 순서가 달라도 같은 키가 생성된다. 값이 None인 옵션은 제외한다.

        Args:
            search_type: 검색 유형 (web, images, news, suggest)
            query: 검색어
            engine: 엔진 이름
            options: 결과에 영향을 주는 옵션

        Returns:
            캐시 키 문자열
        """
        normalized_query = " ".join(query.lower().split())
        clean_options = {k: v for k, v in (options or {}).items() if v is not None}
        options_string = json.dumps(clean_options, sort_keys=True, ensure_ascii=False, default=str)
        return f"{search_type}:{engine}:{normalized_query}:{options_string}"

    def get(self, key: str) -> Optional[Any]:
        """캐시된 값 반환

        Args:
            key: 캐시 키

        Returns:
            캐시된 값. 캐시 미스 또는 만료 시 None
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"캐시 미스: {key[:50]}")
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._cache[key]
                self._misses += 1
                logger.debug(f"캐시 만료: {key[:50]}")
                return None

            self._cache.move_to_end(key)
            self._hits += 1

        logger.debug(f"캐시 히트: {key[:50]}")
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """값 캐싱

        Args:
            key: 캐시 키
            value: 저장할 값
            ttl: 유효 시간 (초). None이면 기본 TTL
        """
        if ttl is None:
            ttl = self.ttl

        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_keys:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug(f"캐시 용량 초과로 제거: {evicted[:50]}")

            self._cache[key] = (value, self._clock() + ttl)
            self._cache.move_to_end(key)

        logger.debug(f"캐시 저장: {key[:50]} (TTL: {ttl}s)")

    def delete(self, key: str) -> bool:
        """특정 캐시 항목 삭제

        Returns:
            삭제 여부
        """
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
        return False

    def clear(self) -> int:
        """전체 캐시 초기화

        Returns:
            삭제된 캐시 항목 수
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._hits = 0
            self._misses = 0

        logger.info(f"캐시 전체 초기화: {count}개 항목 삭제")
        return count

    def cleanup_expired(self) -> int:
        """만료된 캐시 항목 정리

        Returns:
            삭제된 캐시 항목 수
        """
        with self._lock:
            now = self._clock()
            expired_keys = [k for k, (_, expires_at) in self._cache.items() if now >= expires_at]
            for key in expired_keys:
                del self._cache[key]

        if expired_keys:
            logger.debug(f"만료된 캐시 정리: {len(expired_keys)}개 항목 삭제")

        return len(expired_keys)

    def stats(self) -> Dict[str, Any]:
        """캐시 통계 반환 (관찰용)

        Returns:
            {hits, misses, keys, hitRate}
        """
        with self._lock:
            now = self._clock()
            keys = sum(1 for _, expires_at in self._cache.values() if now < expires_at)
            hits, misses = self._hits, self._misses

        total = hits + misses
        hit_rate = f"{hits / total * 100:.2f}%" if total > 0 else "0%"

        return {
            "hits": hits,
            "misses": misses,
            "keys": keys,
            "hitRate": hit_rate
        }
