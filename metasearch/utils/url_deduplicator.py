"""
URL 중복 제거 유틸리티

- 다중 엔진 결과 병합 시 URL 기준으로 한 번만 포함
- 먼저 나온 결과를 유지 (엔진 입력 순서, 엔진 내 순위 순)
"""

from typing import Iterable, List

from metasearch.models.data_models import SearchResult


def normalize_url(url: str) -> str:
    """URL을 비교 가능한 형태로 정규화

    소문자로 변환하고 끝의 슬래시 하나를 제거한다.

    Args:
        url: 정규화할 URL

    Returns:
        정규화된 URL 문자열
    """
    normalized = url.strip().lower()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def deduplicate_urls(urls: Iterable[str]) -> List[str]:
    """URL 목록에서 중복 제거 (원본 순서 유지, 원본 URL 유지)"""
    seen = set()
    result = []

    for url in urls:
        normalized = normalize_url(url)
        if normalized not in seen:
            seen.add(normalized)
            result.append(url)

    return result


def deduplicate_search_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    """SearchResult 목록에서 URL 기준으로 중복 제거

    Args:
        results: SearchResult 객체 목록 (병합 우선순위 순서)

    Returns:
        중복이 제거된 SearchResult 목록. 중복 URL은 첫 번째 것만 유지
    """
    seen = set()
    result = []

    for search_result in results:
        normalized = normalize_url(search_result.url)
        if normalized not in seen:
            seen.add(normalized)
            result.append(search_result)

    return result
