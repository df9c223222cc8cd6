"""
BingAdapter - Bing 검색 어댑터

- 웹/이미지/뉴스 검색 결과 HTML 파싱
- 엔티티 사이드바에서 지식 패널 추출
- 추천 검색어: AS/Suggestions HTML 조각
"""

import base64
import binascii
import json
import logging
import re
import time
import uuid
from typing import List, Optional
from urllib.parse import parse_qs, urljoin, urlparse

from metasearch.engines.base import (
    MAX_PEOPLE_ALSO_ASK,
    MAX_RELATED_SEARCHES,
    MAX_SUGGESTIONS,
    SearchAdapter,
    element_text,
    elapsed_ms,
)
from metasearch.models.data_models import (
    Attribute,
    ImageResult,
    ImageSearchResponse,
    KnowledgeGraph,
    NewsResult,
    NewsSearchResponse,
    PeopleAlsoAsk,
    SearchResponse,
    SearchResult,
    SiteLink,
    Suggestion,
    SuggestionResponse,
)
from metasearch.utils.enrichment import (
    compute_aspect_ratio,
    detect_image_format,
    enrich_result,
    extract_domain,
    get_favicon_url,
    highlight_match,
    parse_dimension,
)


logger = logging.getLogger(__name__)


BING_HOME_URL = "https://www.bing.com"
BING_BASE_URL = "https://www.bing.com/search"
BING_IMAGE_URL = "https://www.bing.com/images/search"
BING_NEWS_URL = "https://www.bing.com/news/search"
BING_SUGGEST_URL = "https://www.bing.com/AS/Suggestions"

IMAGE_SIZES = ("small", "medium", "large", "wallpaper")
NEWS_FRESHNESS = {"day": "Day", "week": "Week", "month": "Month"}


class BingAdapter(SearchAdapter):
    """Bing 검색 어댑터"""

    @property
    def name(self) -> str:
        return "bing"

    @property
    def label(self) -> str:
        return "Bing"

    def search_web(self, query: str, page: int = 1, limit: int = 10, **options) -> SearchResponse:
        """Bing 웹 검색

        Args:
            query: 검색어
            page: 페이지 번호 (first = (page - 1) * 10 + 1)
            limit: 최대 결과 수
            **options: market (setmkt), lang (setlang)
        """
        start_time = time.time()

        params = {
            "q": query,
            "first": (page - 1) * 10 + 1,
            "count": limit,
            "setmkt": options.get("market") or self._config.market,
            "setlang": options.get("lang") or self._config.language,
        }

        logger.info(f"Bing 검색: {query} (page={page}, limit={limit})")

        soup = self._request_soup("GET", BING_BASE_URL, operation="search", params=params)

        knowledge_graph = self._parse_knowledge_graph(soup)

        results: List[SearchResult] = []
        for element in soup.select("#b_results .b_algo"):
            if len(results) >= limit:
                break

            title_el = element.select_one("h2 a")
            if title_el is None:
                continue

            title = element_text(title_el)
            url = self._unwrap_url(title_el.get("href") or "")
            if not title or not url:
                continue

            site_links = []
            for link in element.select(".b_deep a, .b_vlist2col a"):
                text = element_text(link)
                href = self._unwrap_url(link.get("href") or "")
                if text and href:
                    site_links.append(SiteLink(title=text, url=href))

            thumbnail_el = element.select_one(".cico img, .rms_img")
            thumbnail = None
            if thumbnail_el is not None:
                thumbnail = thumbnail_el.get("src") or thumbnail_el.get("data-src")

            results.append(enrich_result(
                position=len(results) + 1,
                title=title,
                url=url,
                raw_snippet=element_text(element.select_one(".b_caption p, .b_algoSlug")),
                engine=self.name,
                display_url=element_text(element.select_one("cite")),
                published_date=element_text(element.select_one(".news_dt")),
                site_links=site_links,
                thumbnail=thumbnail
            ))

        related_searches: List[str] = []
        for element in soup.select(".b_rs a"):
            text = element_text(element)
            if text and text not in related_searches:
                related_searches.append(text)

        estimated_total = None
        match = re.search(r"\d[\d,.]*", element_text(soup.select_one(".sb_count")))
        if match:
            digits = re.sub(r"\D", "", match.group(0))
            estimated_total = int(digits) if digits else None

        people_also_ask = []
        for element in soup.select(".df_qas .b_1linetrunc, .qna_header"):
            question = element_text(element)
            if question:
                people_also_ask.append(PeopleAlsoAsk(question=question))

        logger.info(f"Bing 검색 완료: {len(results)}개 결과")

        return SearchResponse(
            engine=self.name,
            query=query,
            page=page,
            results=results,
            estimated_total=estimated_total,
            knowledge_graph=knowledge_graph,
            related_searches=related_searches[:MAX_RELATED_SEARCHES],
            people_also_ask=people_also_ask[:MAX_PEOPLE_ALSO_ASK],
            search_metadata=self._metadata(query, start_time, estimatedTotalResults=estimated_total),
            execution_time=elapsed_ms(start_time)
        )

    def search_images(
        self,
        query: str,
        limit: int = 20,
        size: Optional[str] = None,
        color: Optional[str] = None
    ) -> ImageSearchResponse:
        """Bing 이미지 검색 (.iusc 요소의 m 속성 JSON 파싱)"""
        start_time = time.time()

        filters = []
        if size and size.lower() in IMAGE_SIZES:
            filters.append(f"filterui:imagesize-{size.lower()}")
        if color and color != "any":
            filters.append(f"filterui:color2-{color}")

        soup = self._request_soup(
            "GET",
            BING_IMAGE_URL,
            operation="image search",
            params={"q": query, "qft": "+".join(filters), "form": "HDRSC2"}
        )

        results: List[ImageResult] = []
        for element in soup.select(".iusc"):
            if len(results) >= limit:
                break

            raw = element.get("m")
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Bing 이미지 메타데이터 파싱 실패, 건너뜀")
                continue
            if not isinstance(data, dict):
                continue

            source_url = data.get("purl") or ""
            source_domain = extract_domain(source_url)
            width = parse_dimension(data.get("mw"))
            height = parse_dimension(data.get("mh"))
            results.append(ImageResult(
                position=len(results) + 1,
                title=data.get("t") or "",
                image_url=data.get("murl") or "",
                thumbnail_url=data.get("turl") or "",
                source_url=source_url,
                width=width,
                height=height,
                source=source_domain,
                source_domain=source_domain,
                source_favicon=get_favicon_url(source_url, "google"),
                format=detect_image_format(data.get("murl")),
                engine=self.name,
                aspect_ratio=compute_aspect_ratio(width, height),
                file_size=data.get("fs") or None
            ))

        logger.info(f"Bing 이미지 검색 완료: {len(results)}개 결과")

        return ImageSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, filters={"size": size, "color": color}),
            execution_time=elapsed_ms(start_time)
        )

    def search_news(self, query: str, limit: int = 20, freshness: Optional[str] = None) -> NewsSearchResponse:
        """Bing 뉴스 검색"""
        start_time = time.time()

        params = {"q": query}
        if freshness in NEWS_FRESHNESS:
            params["qft"] = f'sortbydate:1+interval:"{NEWS_FRESHNESS[freshness]}"'

        soup = self._request_soup("GET", BING_NEWS_URL, operation="news search", params=params)

        results: List[NewsResult] = []
        for element in soup.select(".news-card, .newsitem"):
            if len(results) >= limit:
                break

            title_el = element.select_one("a.title, .title a")
            title = element_text(title_el)
            if not title and title_el is not None:
                title = title_el.get("title") or ""
            title = title or element.get("data-title") or ""

            href = (title_el.get("href") if title_el is not None else None) or element.get("url")
            if not title or not href:
                continue

            url = href if href.startswith("http") else urljoin(BING_HOME_URL, href)
            source_domain = extract_domain(url)

            time_el = element.select_one(".source span[aria-label]")
            if time_el is not None:
                date = time_el.get("aria-label") or ""
            else:
                time_el = element.select_one("time")
                if time_el is None:
                    spans = element.select(".source span")
                    time_el = spans[-1] if spans else None
                date = element_text(time_el)

            image_el = element.select_one("img")
            image_url = ""
            if image_el is not None:
                image_url = image_el.get("src") or image_el.get("data-src") or ""

            results.append(NewsResult(
                position=len(results) + 1,
                title=title,
                url=url,
                snippet=element_text(element.select_one(".snippet")),
                source=element_text(element.select_one(".source a, .source span")) or source_domain,
                source_domain=source_domain,
                source_favicon=get_favicon_url(url, "google"),
                source_logo=get_favicon_url(url, "clearbit"),
                date=date,
                image_url=image_url,
                engine=self.name
            ))

        logger.info(f"Bing 뉴스 검색 완료: {len(results)}개 결과")

        return NewsSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, freshness=freshness),
            execution_time=elapsed_ms(start_time)
        )

    def get_suggestions(self, query: str) -> SuggestionResponse:
        """Bing 추천 검색어 (HTML 목록의 li 텍스트)"""
        start_time = time.time()

        soup = self._request_soup(
            "GET",
            BING_SUGGEST_URL,
            operation="suggestions",
            params={
                "qry": query,
                "cvid": uuid.uuid4().hex.upper(),
                "pt": "page.serp",
                "mkt": self._config.market,
            },
            headers=self._get_headers(Accept="application/json"),
            timeout=self._config.suggest_timeout
        )

        suggestions: List[Suggestion] = []
        for element in soup.select("li"):
            text = element_text(element)
            if text and len(suggestions) < MAX_SUGGESTIONS:
                suggestions.append(Suggestion(text=text, highlighted=highlight_match(text, query)))

        return SuggestionResponse(
            engine=self.name,
            query=query,
            suggestions_rich=suggestions,
            execution_time=elapsed_ms(start_time)
        )

    def _parse_knowledge_graph(self, soup) -> Optional[KnowledgeGraph]:
        """엔티티 사이드바에서 지식 패널 추출 (제목이 없으면 None)"""
        sidebar = soup.select_one(".b_entityTP, .lite-entcard-main")
        if sidebar is None:
            return None

        title = element_text(sidebar.select_one(".b_entityTitle, .enttitle"))
        if not title:
            return None

        image_el = sidebar.select_one("img")

        attributes = []
        for row in sidebar.select(".b_vList li, .b_factrow"):
            label = element_text(row.select_one(".b_hide") or row.select_one(".l_ecrd_snptfltr span"))
            value_el = row.select_one("a")
            if value_el is None:
                spans = row.select("span")
                value_el = spans[-1] if spans else None
            value = element_text(value_el)
            if label and value and label != value:
                attributes.append(Attribute(label=label, value=value))

        return KnowledgeGraph(
            title=title,
            description=element_text(sidebar.select_one(".b_paractl, .lite-entcard-text")) or None,
            image=(image_el.get("src") if image_el is not None else None) or None,
            source="Bing",
            attributes=attributes
        )

    @staticmethod
    def _unwrap_url(href: str) -> str:
        """bing.com/ck/a?...&u=a1<base64url> 추적 링크에서 실제 URL 추출"""
        if "bing.com/ck/a" not in href:
            return href

        encoded = parse_qs(urlparse(href).query).get("u")
        if not encoded or not encoded[0].startswith("a1"):
            return href

        payload = encoded[0][2:]
        payload += "=" * (-len(payload) % 4)
        try:
            decoded = base64.urlsafe_b64decode(payload).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return href
        return decoded if decoded.startswith("http") else href
