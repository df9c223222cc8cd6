"""
데이터 모델 정의

- SearchResult / ImageResult / NewsResult: 엔진별 결과를 정규화한 모델
- KnowledgeGraph / FeaturedSnippet: 검색 결과 옆의 요약 블록
- SearchResponse 계열: 검색 유형별 응답 래퍼
- SearchConfig: 검색 설정

결과 모델은 파싱 시 한 번 생성된 뒤 변경하지 않는다 (frozen).
to_dict()는 외부로 내보내는 camelCase 스키마를 만든다.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv


CONTENT_TYPES = (
    "video", "article", "documentation", "forum",
    "product", "social", "wiki", "website"
)

IMAGE_FORMATS = ("jpeg", "png", "gif", "webp", "svg", "unknown")


@dataclass(frozen=True)
class SiteLink:
    """검색 결과 하위 사이트 링크"""
    title: str
    url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "url": self.url}


@dataclass(frozen=True)
class Attribute:
    """지식 패널 속성 (label, value)"""
    label: str
    value: str

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class RelatedTopic:
    text: str
    url: Optional[str] = None

    def to_dict(self) -> dict:
        return {"text": self.text, "url": self.url}


@dataclass(frozen=True)
class KnowledgeGraph:
    """지식 패널 / 즉답 블록

    제목(또는 DuckDuckGo의 경우 요약/답변)이 없으면 생성하지 않는다.
    """
    title: Optional[str]
    type: str = "knowledge_panel"
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    attributes: List[Attribute] = field(default_factory=list)
    related_topics: List[RelatedTopic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "image": self.image,
            "source": self.source,
            "sourceUrl": self.source_url,
            "attributes": [a.to_dict() for a in self.attributes],
            "relatedTopics": [t.to_dict() for t in self.related_topics]
        }


@dataclass(frozen=True)
class FeaturedSnippet:
    """추천 스니펫"""
    content: str
    title: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": "featured_snippet",
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "source": self.source
        }


@dataclass(frozen=True)
class PeopleAlsoAsk:
    question: str
    link: Optional[str] = None

    def to_dict(self) -> dict:
        return {"question": self.question, "link": self.link}


@dataclass(frozen=True)
class SearchResult:
    """웹 검색 결과 데이터 모델

    - title, url은 비어 있지 않다
    - position은 한 응답 안에서 1부터 연속으로 증가한다
    """
    position: int
    title: str
    url: str
    display_url: str
    snippet: str
    domain: str
    favicon: str
    favicon_hd: str
    site_name: str
    breadcrumbs: List[str]
    content_type: str
    is_secure: bool
    engine: str
    quality_score: int = 0
    date_published: Optional[str] = None
    site_links: Optional[List[SiteLink]] = None
    thumbnail: Optional[str] = None
    site_icon: Optional[str] = None

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "position": self.position,
            "title": self.title,
            "url": self.url,
            "displayUrl": self.display_url,
            "snippet": self.snippet,
            "domain": self.domain,
            "favicon": self.favicon,
            "faviconHD": self.favicon_hd,
            "siteName": self.site_name,
            "siteIcon": self.site_icon,
            "thumbnail": self.thumbnail,
            "breadcrumbs": list(self.breadcrumbs),
            "contentType": self.content_type,
            "datePublished": self.date_published,
            "siteLinks": [s.to_dict() for s in self.site_links] if self.site_links else None,
            "isSecure": self.is_secure,
            "qualityScore": self.quality_score,
            "engine": self.engine
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        """딕셔너리에서 객체 생성"""
        site_links = None
        if data.get("siteLinks"):
            site_links = [SiteLink(title=s["title"], url=s["url"]) for s in data["siteLinks"]]
        return cls(
            position=data["position"],
            title=data["title"],
            url=data["url"],
            display_url=data.get("displayUrl", ""),
            snippet=data.get("snippet", ""),
            domain=data.get("domain", ""),
            favicon=data.get("favicon", ""),
            favicon_hd=data.get("faviconHD", ""),
            site_name=data.get("siteName", ""),
            breadcrumbs=list(data.get("breadcrumbs", [])),
            content_type=data.get("contentType", "website"),
            is_secure=data.get("isSecure", False),
            engine=data["engine"],
            quality_score=data.get("qualityScore", 0),
            date_published=data.get("datePublished"),
            site_links=site_links,
            thumbnail=data.get("thumbnail"),
            site_icon=data.get("siteIcon")
        )


@dataclass(frozen=True)
class ImageResult:
    """이미지 검색 결과 데이터 모델

    aspect_ratio는 width, height가 모두 양수일 때만 "w/h" 소수 둘째 자리 문자열
    """
    position: int
    title: str
    image_url: str
    thumbnail_url: str
    source_url: str
    width: int
    height: int
    source: str
    source_domain: str
    source_favicon: str
    format: str
    engine: str
    aspect_ratio: Optional[str] = None
    file_size: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "title": self.title,
            "imageUrl": self.image_url,
            "thumbnailUrl": self.thumbnail_url,
            "sourceUrl": self.source_url,
            "width": self.width,
            "height": self.height,
            "source": self.source,
            "sourceDomain": self.source_domain,
            "sourceFavicon": self.source_favicon,
            "format": self.format,
            "aspectRatio": self.aspect_ratio,
            "fileSize": self.file_size,
            "engine": self.engine
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageResult":
        return cls(
            position=data["position"],
            title=data.get("title", ""),
            image_url=data.get("imageUrl", ""),
            thumbnail_url=data.get("thumbnailUrl", ""),
            source_url=data.get("sourceUrl", ""),
            width=data.get("width", 0),
            height=data.get("height", 0),
            source=data.get("source", ""),
            source_domain=data.get("sourceDomain", ""),
            source_favicon=data.get("sourceFavicon", ""),
            format=data.get("format", "unknown"),
            engine=data["engine"],
            aspect_ratio=data.get("aspectRatio"),
            file_size=data.get("fileSize")
        )


@dataclass(frozen=True)
class NewsResult:
    """뉴스 검색 결과 데이터 모델"""
    position: int
    title: str
    url: str
    snippet: str
    source: str
    source_domain: str
    source_favicon: str
    source_logo: str
    date: str
    image_url: str
    engine: str
    relative_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "source": self.source,
            "sourceDomain": self.source_domain,
            "sourceFavicon": self.source_favicon,
            "sourceLogo": self.source_logo,
            "date": self.date,
            "relativeDate": self.relative_date,
            "imageUrl": self.image_url,
            "engine": self.engine
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NewsResult":
        return cls(
            position=data["position"],
            title=data["title"],
            url=data["url"],
            snippet=data.get("snippet", ""),
            source=data.get("source", ""),
            source_domain=data.get("sourceDomain", ""),
            source_favicon=data.get("sourceFavicon", ""),
            source_logo=data.get("sourceLogo", ""),
            date=data.get("date", ""),
            image_url=data.get("imageUrl", ""),
            engine=data["engine"],
            relative_date=data.get("relativeDate")
        )


@dataclass(frozen=True)
class Highlight:
    """추천 검색어 내 쿼리 위치 분할 (before, match, after)"""
    before: str
    match: str
    after: str

    def to_dict(self) -> dict:
        return {"before": self.before, "match": self.match, "after": self.after}


@dataclass(frozen=True)
class Suggestion:
    text: str
    highlighted: Highlight

    def to_dict(self) -> dict:
        return {"text": self.text, "highlighted": self.highlighted.to_dict()}


@dataclass(frozen=True)
class SearchResponse:
    """웹 검색 응답

    cached 플래그는 캐시 저장 이후 dataclasses.replace로만 덧씌운다.
    """
    engine: str
    query: str
    page: int
    results: List[SearchResult] = field(default_factory=list)
    estimated_total: Optional[int] = None
    knowledge_graph: Optional[KnowledgeGraph] = None
    featured_snippet: Optional[FeaturedSnippet] = None
    related_searches: List[str] = field(default_factory=list)
    people_also_ask: List[PeopleAlsoAsk] = field(default_factory=list)
    search_metadata: Dict[str, object] = field(default_factory=dict)
    execution_time: str = "0ms"
    success: bool = True
    cached: bool = False

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "engine": self.engine,
            "query": self.query,
            "totalResults": self.total_results,
            "estimatedTotal": self.estimated_total,
            "page": self.page,
            "knowledgeGraph": self.knowledge_graph.to_dict() if self.knowledge_graph else None,
            "featuredSnippet": self.featured_snippet.to_dict() if self.featured_snippet else None,
            "results": [r.to_dict() for r in self.results],
            "relatedSearches": list(self.related_searches),
            "peopleAlsoAsk": [p.to_dict() for p in self.people_also_ask],
            "searchMetadata": dict(self.search_metadata),
            "executionTime": self.execution_time,
            "cached": self.cached
        }

    def to_json(self) -> str:
        """JSON 문자열로 직렬화"""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)


@dataclass(frozen=True)
class ImageSearchResponse:
    """이미지 검색 응답"""
    engine: str
    query: str
    results: List[ImageResult] = field(default_factory=list)
    search_metadata: Dict[str, object] = field(default_factory=dict)
    execution_time: str = "0ms"
    success: bool = True
    cached: bool = False

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "engine": self.engine,
            "type": "images",
            "query": self.query,
            "totalResults": self.total_results,
            "results": [r.to_dict() for r in self.results],
            "searchMetadata": dict(self.search_metadata),
            "executionTime": self.execution_time,
            "cached": self.cached
        }


@dataclass(frozen=True)
class NewsSearchResponse:
    """뉴스 검색 응답"""
    engine: str
    query: str
    results: List[NewsResult] = field(default_factory=list)
    search_metadata: Dict[str, object] = field(default_factory=dict)
    execution_time: str = "0ms"
    success: bool = True
    cached: bool = False

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "engine": self.engine,
            "type": "news",
            "query": self.query,
            "totalResults": self.total_results,
            "results": [r.to_dict() for r in self.results],
            "searchMetadata": dict(self.search_metadata),
            "executionTime": self.execution_time,
            "cached": self.cached
        }


@dataclass(frozen=True)
class SuggestionResponse:
    """추천 검색어 응답"""
    engine: str
    query: str
    suggestions_rich: List[Suggestion] = field(default_factory=list)
    execution_time: str = "0ms"
    success: bool = True
    cached: bool = False

    @property
    def suggestions(self) -> List[str]:
        return [s.text for s in self.suggestions_rich]

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "engine": self.engine,
            "query": self.query,
            "suggestions": self.suggestions,
            "suggestionsRich": [s.to_dict() for s in self.suggestions_rich],
            "executionTime": self.execution_time,
            "cached": self.cached
        }


@dataclass(frozen=True)
class EngineOutcome:
    """다중 검색에서 엔진별 실행 결과"""
    success: bool
    count: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "count": self.count}
        return {"success": False, "error": self.error}


@dataclass(frozen=True)
class MultiSearchResponse:
    """다중 엔진 검색 응답

    total_results는 잘라내기 전 병합된 결과 수
    """
    query: str
    engines: Dict[str, EngineOutcome]
    results: List[SearchResult]
    total_results: int
    execution_time: str = "0ms"
    success: bool = True

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "type": "multi-engine",
            "query": self.query,
            "engines": {name: o.to_dict() for name, o in self.engines.items()},
            "totalResults": self.total_results,
            "results": [r.to_dict() for r in self.results],
            "executionTime": self.execution_time
        }


@dataclass
class SearchConfig:
    """검색 설정 데이터 모델

    - 기본 엔진, 사용 가능한 엔진 목록
    - 요청 타임아웃 (초)
    - 결과 수 기본값/상한
    - 캐시 TTL, 최대 키 수
    - 엔진별 지역/언어 기본값
    """
    default_engine: str = "duckduckgo"
    available_engines: List[str] = field(
        default_factory=lambda: ["duckduckgo", "bing", "google"]
    )
    timeout: float = 10.0
    suggest_timeout: float = 5.0
    instant_answer_timeout: float = 5.0
    max_results: int = 50
    default_limit: int = 10
    multi_search_limit: int = 30
    cache_ttl: int = 300
    suggest_cache_ttl: int = 60
    cache_max_keys: int = 1000
    language: str = "en"
    region: str = "wt-wt"
    market: str = "en-US"
    country: str = "us"

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "default_engine": self.default_engine,
            "available_engines": list(self.available_engines),
            "timeout": self.timeout,
            "suggest_timeout": self.suggest_timeout,
            "instant_answer_timeout": self.instant_answer_timeout,
            "max_results": self.max_results,
            "default_limit": self.default_limit,
            "multi_search_limit": self.multi_search_limit,
            "cache_ttl": self.cache_ttl,
            "suggest_cache_ttl": self.suggest_cache_ttl,
            "cache_max_keys": self.cache_max_keys,
            "language": self.language,
            "region": self.region,
            "market": self.market,
            "country": self.country
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchConfig":
        """딕셔너리에서 객체 생성"""
        defaults = cls()
        return cls(
            default_engine=data.get("default_engine", defaults.default_engine),
            available_engines=list(data.get("available_engines", defaults.available_engines)),
            timeout=float(data.get("timeout", defaults.timeout)),
            suggest_timeout=float(data.get("suggest_timeout", defaults.suggest_timeout)),
            instant_answer_timeout=float(
                data.get("instant_answer_timeout", defaults.instant_answer_timeout)
            ),
            max_results=int(data.get("max_results", defaults.max_results)),
            default_limit=int(data.get("default_limit", defaults.default_limit)),
            multi_search_limit=int(data.get("multi_search_limit", defaults.multi_search_limit)),
            cache_ttl=int(data.get("cache_ttl", defaults.cache_ttl)),
            suggest_cache_ttl=int(data.get("suggest_cache_ttl", defaults.suggest_cache_ttl)),
            cache_max_keys=int(data.get("cache_max_keys", defaults.cache_max_keys)),
            language=data.get("language", defaults.language),
            region=data.get("region", defaults.region),
            market=data.get("market", defaults.market),
            country=data.get("country", defaults.country)
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SearchConfig":
        """.env 파일과 환경 변수(METASEARCH_*)에서 설정 로드

        Args:
            dotenv_path: .env 파일 경로. None이면 현재 디렉토리부터 탐색

        Returns:
            SearchConfig
        """
        load_dotenv(dotenv_path)

        data = {}
        env_map = {
            "METASEARCH_DEFAULT_ENGINE": "default_engine",
            "METASEARCH_TIMEOUT": "timeout",
            "METASEARCH_SUGGEST_TIMEOUT": "suggest_timeout",
            "METASEARCH_INSTANT_ANSWER_TIMEOUT": "instant_answer_timeout",
            "METASEARCH_MAX_RESULTS": "max_results",
            "METASEARCH_DEFAULT_LIMIT": "default_limit",
            "METASEARCH_MULTI_SEARCH_LIMIT": "multi_search_limit",
            "METASEARCH_CACHE_TTL": "cache_ttl",
            "METASEARCH_SUGGEST_CACHE_TTL": "suggest_cache_ttl",
            "METASEARCH_CACHE_MAX_KEYS": "cache_max_keys",
            "METASEARCH_LANGUAGE": "language",
            "METASEARCH_REGION": "region",
            "METASEARCH_MARKET": "market",
            "METASEARCH_COUNTRY": "country",
        }
        for env_name, key in env_map.items():
            value = os.getenv(env_name)
            if value:
                data[key] = value

        engines = os.getenv("METASEARCH_ENGINES")
        if engines:
            data["available_engines"] = [e.strip().lower() for e in engines.split(",") if e.strip()]

        return cls.from_dict(data)
