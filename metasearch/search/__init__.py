# Search Manager Module
"""
검색 관리 모듈
- SearchCache: 검색 결과 캐싱 (TTL + 최대 키 수)
- SearchEngineManager: 다중 검색 엔진 관리
"""

from metasearch.search.cache import SearchCache
from metasearch.search.manager import SearchEngineManager

__all__ = [
    "SearchCache",
    "SearchEngineManager"
]
