# Data Models Package
"""데이터 모델 정의"""

from .data_models import (
    CONTENT_TYPES,
    IMAGE_FORMATS,
    SiteLink,
    Attribute,
    RelatedTopic,
    KnowledgeGraph,
    FeaturedSnippet,
    PeopleAlsoAsk,
    SearchResult,
    ImageResult,
    NewsResult,
    Highlight,
    Suggestion,
    SearchResponse,
    ImageSearchResponse,
    NewsSearchResponse,
    SuggestionResponse,
    EngineOutcome,
    MultiSearchResponse,
    SearchConfig
)

__all__ = [
    "CONTENT_TYPES",
    "IMAGE_FORMATS",
    # 결과 모델
    "SiteLink",
    "Attribute",
    "RelatedTopic",
    "KnowledgeGraph",
    "FeaturedSnippet",
    "PeopleAlsoAsk",
    "SearchResult",
    "ImageResult",
    "NewsResult",
    "Highlight",
    "Suggestion",
    # 응답 모델
    "SearchResponse",
    "ImageSearchResponse",
    "NewsSearchResponse",
    "SuggestionResponse",
    "EngineOutcome",
    "MultiSearchResponse",
    # 설정
    "SearchConfig"
]
