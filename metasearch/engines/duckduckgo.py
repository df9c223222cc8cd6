"""
DuckDuckGoAdapter - DuckDuckGo 검색 어댑터

- 웹 검색: html.duckduckgo.com form POST 결과 파싱
- 즉답(Instant Answer) API로 지식 패널 구성
- 이미지/뉴스 검색: vqd 세션 토큰을 얻은 뒤 JSON 엔드포인트 호출
- 추천 검색어: /ac/ JSON
"""

import logging
import re
import time
from typing import List, Optional
from urllib.parse import parse_qs, quote, urlparse

from metasearch.engines.base import (
    MAX_PEOPLE_ALSO_ASK,
    MAX_RELATED_SEARCHES,
    MAX_SUGGESTIONS,
    SearchAdapter,
    element_text,
    elapsed_ms,
)
from metasearch.errors import UnexpectedParseError, UpstreamError
from metasearch.models.data_models import (
    Attribute,
    ImageResult,
    ImageSearchResponse,
    KnowledgeGraph,
    NewsResult,
    NewsSearchResponse,
    PeopleAlsoAsk,
    RelatedTopic,
    SearchResponse,
    SearchResult,
    Suggestion,
    SuggestionResponse,
)
from metasearch.utils.enrichment import (
    compute_aspect_ratio,
    detect_image_format,
    enrich_result,
    extract_domain,
    format_relative_date,
    get_favicon_url,
    highlight_match,
    parse_dimension,
    parse_timestamp,
)


logger = logging.getLogger(__name__)


DDG_BASE_URL = "https://html.duckduckgo.com/html/"
DDG_SUGGEST_URL = "https://duckduckgo.com/ac/"
DDG_IMAGE_URL = "https://duckduckgo.com/"
DDG_INSTANT_URL = "https://api.duckduckgo.com/"

# HTML 결과 페이지당 결과 수 (페이지 오프셋 계산용)
RESULTS_PER_PAGE = 30

VQD_PATTERNS = [
    re.compile(r"vqd=['\"]([^'\"]+)['\"]"),
    re.compile(r"vqd=([\d-]+)&"),
]

IMAGE_SIZES = {"small": "Small", "medium": "Medium", "large": "Large", "wallpaper": "Wallpaper"}
NEWS_FRESHNESS = {"day": "d", "week": "w", "month": "m"}


class DuckDuckGoAdapter(SearchAdapter):
    """DuckDuckGo 검색 어댑터"""

    @property
    def name(self) -> str:
        return "duckduckgo"

    @property
    def label(self) -> str:
        return "DuckDuckGo"

    def search_web(self, query: str, page: int = 1, limit: int = 10, **options) -> SearchResponse:
        """DuckDuckGo 웹 검색

        Args:
            query: 검색어
            page: 페이지 번호
            limit: 최대 결과 수
            **options: region (kl 파라미터, 기본 wt-wt)

        Returns:
            SearchResponse

        Raises:
            UpstreamError: 검색 요청 실패 시
        """
        start_time = time.time()

        form = {
            "q": query,
            "b": "",
            "kl": options.get("region") or self._config.region,
        }
        if page > 1:
            form["s"] = str((page - 1) * RESULTS_PER_PAGE)
            form["dc"] = str((page - 1) * RESULTS_PER_PAGE + 1)

        logger.info(f"DuckDuckGo 검색: {query} (page={page}, limit={limit})")

        soup = self._request_soup(
            "POST",
            DDG_BASE_URL,
            operation="search",
            data=form,
            headers=self._get_headers(**{"Content-Type": "application/x-www-form-urlencoded"})
        )

        results: List[SearchResult] = []
        for element in soup.select(".result.results_links"):
            if len(results) >= limit:
                break
            if "result--ad" in (element.get("class") or []):
                continue

            title_el = element.select_one(".result__a")
            if title_el is None:
                continue

            title = element_text(title_el)
            url = self._unwrap_url(title_el.get("href") or "")
            if not title or not url.startswith("http"):
                continue

            icon_el = element.select_one(".result__icon img")
            icon_src = icon_el.get("src") if icon_el is not None else None
            if icon_src and icon_src.startswith("//"):
                icon_src = f"https:{icon_src}"

            results.append(enrich_result(
                position=len(results) + 1,
                title=title,
                url=url,
                raw_snippet=element_text(element.select_one(".result__snippet")),
                engine=self.name,
                display_url=element_text(element.select_one(".result__url")),
                site_icon=icon_src
            ))

        related_searches: List[str] = []
        for element in soup.select(".result--related .link-text, .result__a[href*=\"?q=\"]"):
            text = element_text(element)
            if text and text != query and text not in related_searches:
                related_searches.append(text)
        related_searches = related_searches[:MAX_RELATED_SEARCHES]

        # 관련 검색어 앞 4개를 질문 형태로 변환
        people_also_ask = [
            PeopleAlsoAsk(
                question=q if q.endswith("?") else f"{q}?",
                link=f"https://duckduckgo.com/?q={quote(q, safe='')}"
            )
            for q in related_searches[:4]
        ][:MAX_PEOPLE_ALSO_ASK]

        knowledge_graph = self._get_instant_answer(query)

        logger.info(f"DuckDuckGo 검색 완료: {len(results)}개 결과")

        return SearchResponse(
            engine=self.name,
            query=query,
            page=page,
            results=results,
            knowledge_graph=knowledge_graph,
            related_searches=related_searches,
            people_also_ask=people_also_ask,
            search_metadata=self._metadata(query, start_time),
            execution_time=elapsed_ms(start_time)
        )

    def search_images(
        self,
        query: str,
        limit: int = 20,
        size: Optional[str] = None,
        color: Optional[str] = None
    ) -> ImageSearchResponse:
        """DuckDuckGo 이미지 검색 (vqd 토큰 필요)

        Raises:
            UnexpectedParseError: 토큰을 찾지 못한 경우
            UpstreamError: 요청 실패 시
        """
        start_time = time.time()
        operation = "image search"

        vqd = self._get_vqd_token(query, operation)

        params = {
            "q": query,
            "vqd": vqd,
            "o": "json",
            "p": "1",
            "s": "0",
            "l": self._config.region,
            "f": self._build_image_filters(size, color),
        }
        data = self._request_json(
            "GET",
            f"{DDG_IMAGE_URL}i.js",
            operation=operation,
            params=params,
            headers=self._get_headers(Referer=DDG_IMAGE_URL)
        )

        results: List[ImageResult] = []
        raw_results = data.get("results") if isinstance(data, dict) else None
        for item in raw_results or []:
            if len(results) >= limit:
                break
            if not isinstance(item, dict):
                continue

            source_url = item.get("url") or ""
            source_domain = extract_domain(source_url)
            width = parse_dimension(item.get("width"))
            height = parse_dimension(item.get("height"))
            results.append(ImageResult(
                position=len(results) + 1,
                title=item.get("title") or "",
                image_url=item.get("image") or "",
                thumbnail_url=item.get("thumbnail") or "",
                source_url=source_url,
                width=width,
                height=height,
                source=item.get("source") or source_domain,
                source_domain=source_domain,
                source_favicon=get_favicon_url(source_url, "google"),
                format=detect_image_format(item.get("image")),
                engine=self.name,
                aspect_ratio=compute_aspect_ratio(width, height)
            ))

        logger.info(f"DuckDuckGo 이미지 검색 완료: {len(results)}개 결과")

        return ImageSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, filters={"size": size, "color": color}),
            execution_time=elapsed_ms(start_time)
        )

    def search_news(self, query: str, limit: int = 20, freshness: Optional[str] = None) -> NewsSearchResponse:
        """DuckDuckGo 뉴스 검색 (vqd 토큰 필요)"""
        start_time = time.time()
        operation = "news search"

        vqd = self._get_vqd_token(query, operation, iar="news")

        params = {
            "q": query,
            "vqd": vqd,
            "o": "json",
            "noamp": "1",
            "l": self._config.region,
            "df": NEWS_FRESHNESS.get(freshness, freshness or ""),
        }
        data = self._request_json(
            "GET",
            f"{DDG_IMAGE_URL}news.js",
            operation=operation,
            params=params,
            headers=self._get_headers(Referer=DDG_IMAGE_URL)
        )

        results: List[NewsResult] = []
        raw_results = data.get("results") if isinstance(data, dict) else None
        for article in raw_results or []:
            if len(results) >= limit:
                break
            if not isinstance(article, dict):
                continue

            title = article.get("title") or ""
            url = article.get("url") or ""
            if not title or not url:
                continue

            source_domain = extract_domain(url)
            published = parse_timestamp(article.get("date"))
            results.append(NewsResult(
                position=len(results) + 1,
                title=title,
                url=url,
                snippet=article.get("excerpt") or "",
                source=article.get("source") or source_domain,
                source_domain=source_domain,
                source_favicon=get_favicon_url(url, "google"),
                source_logo=get_favicon_url(url, "clearbit"),
                date=published.isoformat() if published else str(article.get("date") or ""),
                image_url=article.get("image") or "",
                engine=self.name,
                relative_date=article.get("relative_time") or format_relative_date(article.get("date"))
            ))

        logger.info(f"DuckDuckGo 뉴스 검색 완료: {len(results)}개 결과")

        return NewsSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, freshness=freshness),
            execution_time=elapsed_ms(start_time)
        )

    def get_suggestions(self, query: str) -> SuggestionResponse:
        """DuckDuckGo 추천 검색어

        응답 형식은 [{"phrase": ...}, ...] 또는 [query, [..]] 둘 다 처리한다.
        """
        start_time = time.time()

        data = self._request_json(
            "GET",
            DDG_SUGGEST_URL,
            operation="suggestions",
            params={"q": query, "type": "list"},
            timeout=self._config.suggest_timeout
        )

        phrases: List[str] = []
        if isinstance(data, list):
            if len(data) >= 2 and isinstance(data[1], list):
                phrases = [p for p in data[1] if isinstance(p, str) and p]
            else:
                phrases = [
                    item.get("phrase") for item in data
                    if isinstance(item, dict) and item.get("phrase")
                ]

        suggestions = [
            Suggestion(text=phrase, highlighted=highlight_match(phrase, query))
            for phrase in phrases[:MAX_SUGGESTIONS]
        ]

        return SuggestionResponse(
            engine=self.name,
            query=query,
            suggestions_rich=suggestions,
            execution_time=elapsed_ms(start_time)
        )

    def _get_instant_answer(self, query: str) -> Optional[KnowledgeGraph]:
        """즉답 API로 지식 패널 구성 (실패해도 검색은 계속)"""
        try:
            data = self._request_json(
                "GET",
                DDG_INSTANT_URL,
                operation="instant answer",
                params={"q": query, "format": "json", "no_redirect": 1, "skip_disambig": 1},
                timeout=self._config.instant_answer_timeout
            )
        except UpstreamError as e:
            logger.info(f"DuckDuckGo 즉답 없음: {e.message}")
            return None

        if not isinstance(data, dict):
            return None

        description = data.get("Abstract") or data.get("Answer")
        if not description or not isinstance(description, str):
            return None

        image = data.get("Image") or None
        if image and not image.startswith("http"):
            image = f"https://duckduckgo.com{image}"

        attributes: List[Attribute] = []
        infobox = data.get("Infobox")
        if isinstance(infobox, dict):
            for item in infobox.get("content") or []:
                label = item.get("label") if isinstance(item, dict) else None
                value = item.get("value") if isinstance(item, dict) else None
                if isinstance(label, str) and isinstance(value, str) and label and value:
                    attributes.append(Attribute(label=label, value=value))

        related_topics = [
            RelatedTopic(text=topic["Text"], url=topic.get("FirstURL"))
            for topic in (data.get("RelatedTopics") or [])[:5]
            if isinstance(topic, dict) and topic.get("Text")
        ]

        return KnowledgeGraph(
            type=data.get("Type") or "answer",
            title=data.get("Heading") or None,
            description=description,
            image=image,
            source=data.get("AbstractSource") or "DuckDuckGo",
            source_url=data.get("AbstractURL") or None,
            attributes=attributes,
            related_topics=related_topics
        )

    def _get_vqd_token(self, query: str, operation: str, **extra_params: str) -> str:
        """초기 페이지에서 vqd 세션 토큰 추출

        Raises:
            UnexpectedParseError: 페이지에 토큰이 없는 경우
        """
        response = self._request(
            "GET",
            DDG_IMAGE_URL,
            operation=operation,
            params={"q": query, **extra_params}
        )

        for pattern in VQD_PATTERNS:
            match = pattern.search(response.text)
            if match:
                return match.group(1)

        logger.error(f"DuckDuckGo {operation}: vqd 토큰을 찾을 수 없음")
        raise UnexpectedParseError(
            self.name, f"{self.label} {operation} failed: Could not obtain search token"
        )

    @staticmethod
    def _unwrap_url(href: str) -> str:
        """//duckduckgo.com/l/?uddg=... 리다이렉트 URL에서 실제 URL 추출"""
        if "uddg=" in href:
            target = parse_qs(urlparse(href).query).get("uddg")
            if target and target[0]:
                return target[0]
        if href.startswith("//"):
            return f"https:{href}"
        return href

    @staticmethod
    def _build_image_filters(size: Optional[str], color: Optional[str]) -> str:
        filters = []
        if size and size in IMAGE_SIZES:
            filters.append(f"size:{IMAGE_SIZES[size]}")
        if color and color != "any":
            filters.append(f"color:{color}")
        return ",".join(filters)
