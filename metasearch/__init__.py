# Metasearch Package
"""
메타 검색 패키지
- DuckDuckGo, Bing, Google 검색 결과 통합
- 결과 보강 (파비콘, 사이트명, 콘텐츠 유형, 품질 점수)
- 검색 결과 캐싱 및 다중 엔진 병합
"""

__version__ = "0.1.0"

from metasearch.errors import (
    SearchError,
    ValidationError,
    UnknownEngineError,
    UpstreamError,
    UnexpectedParseError
)
from metasearch.models.data_models import SearchConfig, SearchResult, SearchResponse
from metasearch.search.cache import SearchCache
from metasearch.search.manager import SearchEngineManager

__all__ = [
    "SearchError",
    "ValidationError",
    "UnknownEngineError",
    "UpstreamError",
    "UnexpectedParseError",
    "SearchConfig",
    "SearchResult",
    "SearchResponse",
    "SearchCache",
    "SearchEngineManager",
]
