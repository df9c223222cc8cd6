# Search Engine Adapters Package
"""검색 엔진 어댑터

- SearchAdapter: 어댑터 추상 클래스
- DuckDuckGoAdapter: DuckDuckGo (HTML + JSON 엔드포인트)
- BingAdapter: Bing (HTML)
- GoogleAdapter: Google (HTML + 추천 검색어 JSON)
"""

from typing import Dict, Optional

from metasearch.engines.base import SearchAdapter
from metasearch.engines.duckduckgo import DuckDuckGoAdapter
from metasearch.engines.bing import BingAdapter
from metasearch.engines.google import GoogleAdapter
from metasearch.models.data_models import SearchConfig


ADAPTER_CLASSES = {
    "duckduckgo": DuckDuckGoAdapter,
    "bing": BingAdapter,
    "google": GoogleAdapter,
}


def create_default_adapters(config: Optional[SearchConfig] = None) -> Dict[str, SearchAdapter]:
    """설정의 available_engines에 해당하는 기본 어댑터 생성

    Args:
        config: 검색 설정

    Returns:
        {엔진 이름: 어댑터} (available_engines 순서)
    """
    config = config or SearchConfig()
    return {
        name: ADAPTER_CLASSES[name](config)
        for name in config.available_engines
        if name in ADAPTER_CLASSES
    }


__all__ = [
    "SearchAdapter",
    "DuckDuckGoAdapter",
    "BingAdapter",
    "GoogleAdapter",
    "ADAPTER_CLASSES",
    "create_default_adapters",
]
