"""
GoogleAdapter - Google 검색 어댑터

- 웹 검색: 결과 컨테이너 파싱, 지식 패널, 추천 스니펫, 관련 질문
- 이미지 검색: 인라인 script에 포함된 ["url", w, h] 배열 추출
- 뉴스 검색: tbm=nws 결과 파싱
- 추천 검색어: suggestqueries JSON (firefox 클라이언트)
"""

import logging
import re
import time
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

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
    FeaturedSnippet,
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
)
from metasearch.utils.user_agents import get_firefox_user_agent


logger = logging.getLogger(__name__)


GOOGLE_BASE_URL = "https://www.google.com/search"
GOOGLE_SUGGEST_URL = "https://suggestqueries.google.com/complete/search"

RESULT_SELECTORS = "div.g, div[data-sokoban-container], div.SoaBEf, div.MjjYud"
SNIPPET_SELECTORS = "[data-sncf], [data-content-feature], .VwiC3b, .st, .lEBKkf, .ITZIwc, .yXK7lf"
DATE_SELECTORS = ".LEwnzc, .f, .MUxGbd:has(.wHYlTd), .OSrXXb"

# "Jan 5, 2024 — " 형식의 snippet 앞 날짜
LEADING_DATE = re.compile(r"^([A-Za-z]{3} \d+, \d{4}) — ")

IMAGE_PATTERN = re.compile(
    r'\["(https?://[^"]+\.(jpg|jpeg|png|gif|webp)[^"]*)",\s*(\d+),\s*(\d+)\]',
    re.IGNORECASE
)
MIN_IMAGE_DIMENSION = 100

IMAGE_SIZES = {"small": "isz:s", "medium": "isz:m", "large": "isz:l", "xlarge": "isz:lt,islt:4mp"}
IMAGE_COLORS = (
    "black", "white", "red", "orange", "yellow", "green",
    "blue", "purple", "pink", "gray", "brown", "teal"
)
NEWS_FRESHNESS = {"day": "qdr:d", "week": "qdr:w", "month": "qdr:m"}


class GoogleAdapter(SearchAdapter):
    """Google 검색 어댑터"""

    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    @property
    def name(self) -> str:
        return "google"

    @property
    def label(self) -> str:
        return "Google"

    def search_web(self, query: str, page: int = 1, limit: int = 10, **options) -> SearchResponse:
        """Google 웹 검색

        Args:
            query: 검색어
            page: 페이지 번호 (start = (page - 1) * 10)
            limit: 최대 결과 수 (요청은 최대 10개)
            **options: lang (hl), country (gl), safe
        """
        start_time = time.time()

        params = {
            "q": query,
            "start": (page - 1) * 10,
            "num": min(limit, 10),
            "hl": options.get("lang") or self._config.language,
            "gl": options.get("country") or self._config.country,
            "safe": options.get("safe") or "off",
        }

        logger.info(f"Google 검색: {query} (page={page}, limit={limit})")

        soup = self._request_soup("GET", GOOGLE_BASE_URL, operation="search", params=params)

        knowledge_graph = self._parse_knowledge_graph(soup)
        featured_snippet = self._parse_featured_snippet(soup)
        results = self._parse_results(soup, limit)

        related_searches: List[str] = []
        for element in soup.select('a[href*="/search?q="]'):
            text = element_text(element)
            href = element.get("href") or ""
            if not text or "&start=" in href or not 2 < len(text) < 100:
                continue
            if text not in related_searches and len(related_searches) < MAX_RELATED_SEARCHES:
                related_searches.append(text)

        estimated_total = None
        match = re.search(r"\d[\d,]*", element_text(soup.select_one("#result-stats")))
        if match:
            estimated_total = int(match.group(0).replace(",", ""))

        people_also_ask = []
        for element in soup.select(".related-question-pair, .xpc [data-q]"):
            question = element_text(element.select_one('[role="button"], .CSkcDe')) or element.get("data-q")
            if question and len(people_also_ask) < MAX_PEOPLE_ALSO_ASK:
                people_also_ask.append(PeopleAlsoAsk(question=question))

        logger.info(f"Google 검색 완료: {len(results)}개 결과")

        return SearchResponse(
            engine=self.name,
            query=query,
            page=page,
            results=results,
            estimated_total=estimated_total,
            knowledge_graph=knowledge_graph,
            featured_snippet=featured_snippet,
            related_searches=related_searches,
            people_also_ask=people_also_ask,
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
        """Google 이미지 검색"""
        start_time = time.time()

        params = {"q": query, "tbm": "isch", "hl": self._config.language}
        filters = []
        if size in IMAGE_SIZES:
            filters.append(IMAGE_SIZES[size])
        if color in IMAGE_COLORS:
            filters.append(f"ic:specific,isc:{color}")
        if filters:
            params["tbs"] = ",".join(filters)

        soup = self._request_soup("GET", GOOGLE_BASE_URL, operation="image search", params=params)

        results: List[ImageResult] = []
        for script in soup.find_all("script"):
            if len(results) >= limit:
                break
            content = script.string or script.get_text() or ""
            for match in IMAGE_PATTERN.finditer(content):
                if len(results) >= limit:
                    break

                image_url = match.group(1).replace("\\u003d", "=").replace("\\u0026", "&")
                width = int(match.group(3))
                height = int(match.group(4))
                if width <= MIN_IMAGE_DIMENSION or height <= MIN_IMAGE_DIMENSION:
                    continue
                if "gstatic.com" in image_url:
                    continue

                results.append(ImageResult(
                    position=len(results) + 1,
                    title="",
                    image_url=image_url,
                    thumbnail_url=image_url,
                    source_url="",
                    width=width,
                    height=height,
                    source="",
                    source_domain="",
                    source_favicon="",
                    format=detect_image_format(image_url),
                    engine=self.name,
                    aspect_ratio=compute_aspect_ratio(width, height)
                ))

        logger.info(f"Google 이미지 검색 완료: {len(results)}개 결과")

        return ImageSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, filters={"size": size, "color": color}),
            execution_time=elapsed_ms(start_time)
        )

    def search_news(self, query: str, limit: int = 20, freshness: Optional[str] = None) -> NewsSearchResponse:
        """Google 뉴스 검색 (tbm=nws)"""
        start_time = time.time()

        params = {"q": query, "tbm": "nws", "hl": self._config.language}
        if freshness in NEWS_FRESHNESS:
            params["tbs"] = NEWS_FRESHNESS[freshness]

        soup = self._request_soup("GET", GOOGLE_BASE_URL, operation="news search", params=params)

        results: List[NewsResult] = []
        seen_urls = set()
        for element in soup.select("div.g, div[data-hveid], .SoaBEf"):
            if len(results) >= limit:
                break

            title = element_text(element.select_one('a[href^="http"] div[role="heading"], h3, .mCBkyc'))
            link_el = element.select_one('a[href^="http"]')
            url = link_el.get("href") if link_el is not None else None
            if not title or not url or "google.com" in url or url in seen_urls:
                continue
            seen_urls.add(url)

            source_domain = extract_domain(url)
            image_el = element.select_one("img.YQ4gaf, img[src^=\"http\"]")

            results.append(NewsResult(
                position=len(results) + 1,
                title=title,
                url=url,
                snippet=element_text(element.select_one(".GI74Re, .st, .Y3v8qd")),
                source=element_text(element.select_one(".NUnG9d span, .CEMjEf span, cite")) or source_domain,
                source_domain=source_domain,
                source_favicon=get_favicon_url(url, "google"),
                source_logo=get_favicon_url(url, "clearbit"),
                date=element_text(element.select_one(".LfVVr, .WG9SHc span, .OSrXXb")),
                image_url=(image_el.get("src") if image_el is not None else None) or "",
                engine=self.name
            ))

        logger.info(f"Google 뉴스 검색 완료: {len(results)}개 결과")

        return NewsSearchResponse(
            engine=self.name,
            query=query,
            results=results,
            search_metadata=self._metadata(query, start_time, freshness=freshness),
            execution_time=elapsed_ms(start_time)
        )

    def get_suggestions(self, query: str) -> SuggestionResponse:
        """Google 추천 검색어 ([query, [suggestion, ...]] 형식)"""
        start_time = time.time()

        data = self._request_json(
            "GET",
            GOOGLE_SUGGEST_URL,
            operation="suggestions",
            params={"q": query, "client": "firefox", "hl": self._config.language},
            headers=self._get_headers(Accept="application/json", **{"User-Agent": get_firefox_user_agent()}),
            timeout=self._config.suggest_timeout
        )

        suggestions: List[Suggestion] = []
        if isinstance(data, list) and len(data) >= 2 and isinstance(data[1], list):
            suggestions = [
                Suggestion(text=text, highlighted=highlight_match(text, query))
                for text in data[1][:MAX_SUGGESTIONS]
                if isinstance(text, str) and text
            ]

        return SuggestionResponse(
            engine=self.name,
            query=query,
            suggestions_rich=suggestions,
            execution_time=elapsed_ms(start_time)
        )

    def _parse_results(self, soup, limit: int) -> List[SearchResult]:
        """결과 컨테이너 파싱

        광고, 지식 패널 내부, 다른 결과 컨테이너 안에 중첩된 요소는 건너뛴다.
        """
        containers = soup.select(RESULT_SELECTORS)
        container_ids = {id(c) for c in containers}

        results: List[SearchResult] = []
        for element in containers:
            if len(results) >= limit:
                break
            if element.select_one("[data-text-ad]") is not None:
                continue
            if any(id(parent) in container_ids for parent in element.parents):
                continue
            if element.find_parent(class_="kp-wholepage") is not None:
                continue

            title = element_text(element.find("h3"))
            link_el = element.select_one('a[href^="http"], a[href^="/url?"]')
            url = self._unwrap_url(link_el.get("href") or "") if link_el is not None else ""
            if not title or not url.startswith("http") or "google.com/search" in url:
                continue

            raw_snippet = element_text(element.select_one(SNIPPET_SELECTORS))
            published_date = element_text(element.select_one(DATE_SELECTORS))
            match = LEADING_DATE.match(raw_snippet)
            if match:
                published_date = published_date or match.group(1)
                raw_snippet = raw_snippet[match.end():].strip()

            site_links = []
            for link in element.select(".usJj9c a, .HiHjCd a"):
                text = element_text(link)
                href = link.get("href") or ""
                if text and href.startswith("http"):
                    site_links.append(SiteLink(title=text, url=href))

            thumbnail_el = element.select_one('img[src^="http"], g-img img')

            results.append(enrich_result(
                position=len(results) + 1,
                title=title,
                url=url,
                raw_snippet=raw_snippet,
                engine=self.name,
                published_date=published_date,
                site_links=site_links,
                thumbnail=thumbnail_el.get("src") if thumbnail_el is not None else None
            ))

        return results

    def _parse_knowledge_graph(self, soup) -> Optional[KnowledgeGraph]:
        """지식 패널 추출 (제목이 없으면 None)"""
        panel = soup.select_one(".kp-wholepage, .knowledge-panel")
        if panel is None:
            title_el = soup.select_one('[data-attrid="title"]')
            panel = title_el.parent if title_el is not None else None
        if panel is None:
            return None

        title = element_text(panel.select_one('[data-attrid="title"], .kno-ecr-pt'))
        if not title:
            return None

        image_el = panel.select_one('img[src^="http"]')

        attributes = []
        for element in panel.select('[data-attrid]:not([data-attrid="title"]):not([data-attrid="description"])'):
            attrid = element.get("data-attrid") or ""
            value = element_text(element)
            if attrid and value and "action" not in attrid:
                label = attrid.split("/")[-1].replace("_", " ")
                attributes.append(Attribute(label=label[:1].upper() + label[1:], value=value))

        return KnowledgeGraph(
            title=title,
            subtitle=element_text(panel.select_one('[data-attrid="subtitle"], .kno-title-sub')) or None,
            description=element_text(panel.select_one('[data-attrid="description"], .kno-rdesc span')) or None,
            image=image_el.get("src") if image_el is not None else None,
            source="Google Knowledge Graph",
            attributes=attributes
        )

    def _parse_featured_snippet(self, soup) -> Optional[FeaturedSnippet]:
        """추천 스니펫 추출 (내용이 없으면 None)"""
        block = soup.select_one('.xpdopen .LGOjhe, .IZ6rdc, [data-attrid="wa:/description"]')
        if block is None:
            return None

        content = element_text(block.select_one(".LGOjhe, .hgKElc")) or element_text(block)
        if not content:
            return None

        link_el = block.select_one('a[href^="http"]')
        url = link_el.get("href") if link_el is not None else None

        return FeaturedSnippet(
            title=element_text(block.select_one(".LC20lb, .DKV0Md")) or None,
            content=content,
            url=url,
            source=extract_domain(url) if url else None
        )

    @staticmethod
    def _unwrap_url(href: str) -> str:
        """/url?q=<실제 URL>&sa=... 리다이렉트 링크 해제"""
        if href.startswith("/url?"):
            target = parse_qs(urlparse(href).query).get("q")
            if target and target[0]:
                return target[0]
        return href
