"""
검색 결과 보강(enrichment) 유틸리티

엔진 어댑터가 추출한 원시 결과(title, url, snippet)에서 도메인, 파비콘,
사이트 이름, 경로 breadcrumb, 콘텐츠 유형, 게시일, 품질 점수를 계산한다.
모든 함수는 네트워크 호출이 없는 순수 함수이며 예외를 던지지 않는다.
"""

import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from metasearch.models.data_models import Highlight, SearchResult, SiteLink


FAVICON_PROVIDERS = {
    "google": "https://www.google.com/s2/favicons?domain={domain}&sz=128",
    "horse": "https://icon.horse/icon/{domain}",
    "faviconkit": "https://api.faviconkit.com/{domain}/128",
    "clearbit": "https://logo.clearbit.com/{domain}",
    "duckduckgo": "https://icons.duckduckgo.com/ip3/{domain}.ico",
}

TRUSTED_DOMAINS = ("wikipedia.org", "github.com", "stackoverflow.com", "mozilla.org", "w3.org")

# (콘텐츠 유형, URL 부분 문자열, 제목 부분 문자열) - 위에서부터 먼저 일치하는 규칙 사용
CONTENT_TYPE_RULES = [
    ("video", ("youtube.com", "vimeo.com", "dailymotion.com"), ("video",)),
    ("article", ("/blog/", "/article/", "/post/", "/news/"), ()),
    ("documentation", ("/docs/", "/documentation/", "/api/", "/reference/"), ()),
    ("forum", ("stackoverflow.com", "reddit.com", "quora.com", "/forum/"), ()),
    ("product", ("amazon.", "ebay.", "/shop/", "/product/"), ()),
    ("social", ("twitter.com", "facebook.com", "linkedin.com", "instagram.com"), ()),
    ("wiki", ("wikipedia.org", "wiki"), ()),
]

_DATE_SEPARATOR = r"\s*[—–-]\s*"

# snippet 앞부분의 날짜 패턴 (순서대로 시도)
DATE_PATTERNS = [
    re.compile(
        r"^(\d{1,2}\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s+\d{4})"
        + _DATE_SEPARATOR,
        re.IGNORECASE
    ),
    re.compile(r"^(\d{1,2}/\d{1,2}/\d{2,4})" + _DATE_SEPARATOR),
    re.compile(r"^(\d{4}-\d{2}-\d{2})" + _DATE_SEPARATOR),
    re.compile(
        r"^(hace?\s+\d+\s+(?:hora|día|semana|mes|año)(?:e?s)?)" + _DATE_SEPARATOR,
        re.IGNORECASE
    ),
    re.compile(
        r"^(\d+\s+(?:minute|hour|day|week|month|year)s?\s+ago)" + _DATE_SEPARATOR,
        re.IGNORECASE
    ),
]

_BREADCRUMB_EXTENSION = re.compile(r"\.(html|php|aspx?)$", re.IGNORECASE)

DISPLAY_URL_MAX_LENGTH = 60


def extract_domain(url: str) -> str:
    """URL에서 호스트 이름 추출

    Args:
        url: 대상 URL

    Returns:
        호스트 이름. 파싱할 수 없으면 입력 문자열 그대로
    """
    try:
        hostname = urlparse(url).hostname
    except (ValueError, TypeError, AttributeError):
        return url
    return hostname or url


def get_favicon_url(url: str, provider: str = "google") -> str:
    """파비콘 URL 생성 (알 수 없는 provider는 google 사용)"""
    domain = extract_domain(url)
    template = FAVICON_PROVIDERS.get(provider, FAVICON_PROVIDERS["google"])
    return template.format(domain=domain)


def get_site_name(url: str) -> str:
    """표시용 사이트 이름 (예: https://www.github.com/x -> Github)"""
    domain = extract_domain(url)
    clean_domain = re.sub(r"^www\.", "", domain)
    main_part = clean_domain.split(".")[0]
    return main_part[:1].upper() + main_part[1:]


def extract_breadcrumbs(url: str) -> List[str]:
    """URL 경로에서 breadcrumb 목록 생성

    - 첫 항목은 호스트 이름
    - '-', '_'는 공백으로, .html/.php/.asp(x) 확장자는 제거
    - 각 단어 첫 글자를 대문자로 변환
    - 최대 4개

    Args:
        url: 대상 URL

    Returns:
        breadcrumb 목록. URL 파싱 실패 시 빈 목록
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except (ValueError, TypeError, AttributeError):
        return []

    if not parsed.scheme or not hostname:
        return []

    path = parsed.path
    if not path or path == "/":
        return [hostname]

    crumbs = [hostname]
    for part in path.split("/"):
        if not part:
            continue
        text = re.sub(r"[-_]", " ", part)
        text = _BREADCRUMB_EXTENSION.sub("", text)
        crumbs.append(" ".join(word[:1].upper() + word[1:] for word in text.split(" ")))

    return crumbs[:4]


def detect_content_type(url: str, title: str = "") -> str:
    """URL과 제목으로 콘텐츠 유형 판별

    CONTENT_TYPE_RULES를 순서대로 검사하여 처음 일치한 유형을 반환한다.
    """
    url_lower = (url or "").lower()
    title_lower = (title or "").lower()

    for content_type, url_markers, title_markers in CONTENT_TYPE_RULES:
        if any(marker in url_lower for marker in url_markers):
            return content_type
        if any(marker in title_lower for marker in title_markers):
            return content_type

    return "website"


def extract_date(snippet: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """snippet 앞부분의 날짜 추출

    예: "12 Jan 2024 — 본문..." -> ("12 Jan 2024", "본문...")

    Args:
        snippet: 원본 snippet

    Returns:
        (날짜 문자열 또는 None, 날짜가 제거된 snippet)
    """
    if not snippet:
        return None, snippet

    for pattern in DATE_PATTERNS:
        match = pattern.match(snippet)
        if match:
            return match.group(1), snippet[match.end():].strip()

    return None, snippet


def calculate_quality_score(url: str, snippet: str, title: str, position: int) -> int:
    """휴리스틱 품질 점수 (0~100)

    기본 50점에 조건별 가산점:
    https +10, snippet 50자 초과 +10, 제목 20~100자 +10,
    신뢰 도메인 +15, 상위 3위 이내 +5
    """
    score = 50

    if url and url.startswith("https"):
        score += 10
    if snippet and len(snippet) > 50:
        score += 10
    if title and 20 < len(title) < 100:
        score += 10

    domain = extract_domain(url or "").lower()
    if any(domain == d or domain.endswith("." + d) for d in TRUSTED_DOMAINS):
        score += 15

    if position <= 3:
        score += 5

    return min(100, score)


def detect_image_format(url: Optional[str]) -> str:
    """이미지 URL에서 포맷 추정"""
    if not url:
        return "unknown"
    lower = url.lower()
    if ".jpg" in lower or ".jpeg" in lower:
        return "jpeg"
    if ".png" in lower:
        return "png"
    if ".gif" in lower:
        return "gif"
    if ".webp" in lower:
        return "webp"
    if ".svg" in lower:
        return "svg"
    return "unknown"


def parse_dimension(value: Any) -> int:
    """이미지 크기 값을 정수로 변환 (숫자가 아니면 0)"""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def compute_aspect_ratio(width: int, height: int) -> Optional[str]:
    if width and height and width > 0 and height > 0:
        return f"{width / height:.2f}"
    return None


def highlight_match(text: str, query: str) -> Highlight:
    """추천 검색어에서 쿼리 위치 분할

    대소문자 구분 없이 첫 번째 일치 위치를 찾는다.
    일치하지 않으면 전체 텍스트를 match로 둔다.
    """
    found = re.search(re.escape(query), text, re.IGNORECASE) if query else None
    if found is None:
        return Highlight(before="", match=text, after="")

    start, end = found.span()
    return Highlight(before=text[:start], match=text[start:end], after=text[end:])


def parse_timestamp(value) -> Optional[datetime]:
    """epoch 초 또는 ISO 8601 문자열을 UTC datetime으로 변환"""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        text = str(value).strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text), tz=timezone.utc)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_relative_date(value, now: Optional[datetime] = None) -> Optional[str]:
    """게시 시각을 "N hours ago" 형태로 변환

    Args:
        value: epoch 초 또는 ISO 8601 문자열
        now: 기준 시각 (테스트용). None이면 현재 UTC 시각

    Returns:
        상대 시간 문자열. 변환할 수 없으면 None
    """
    published = parse_timestamp(value)
    if published is None:
        return None

    now = now or datetime.now(timezone.utc)
    diff_mins = int((now - published).total_seconds() // 60)
    diff_hours = diff_mins // 60
    diff_days = diff_hours // 24

    if diff_mins < 60:
        return f"{diff_mins} minutes ago"
    if diff_hours < 24:
        return f"{diff_hours} hours ago"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        return f"{diff_days // 7} weeks ago"
    return f"{diff_days // 30} months ago"


def build_display_url(url: str) -> str:
    """표시용 URL (호스트 + 경로, 60자 초과 시 말줄임)"""
    try:
        parsed = urlparse(url)
        display = (parsed.hostname or "") + parsed.path if parsed.hostname else url
    except (ValueError, TypeError, AttributeError):
        display = url

    if len(display) > DISPLAY_URL_MAX_LENGTH:
        return display[:DISPLAY_URL_MAX_LENGTH] + "..."
    return display


def enrich_result(
    position: int,
    title: str,
    url: str,
    raw_snippet: str,
    engine: str,
    display_url: Optional[str] = None,
    published_date: Optional[str] = None,
    site_links: Optional[Sequence[SiteLink]] = None,
    thumbnail: Optional[str] = None,
    site_icon: Optional[str] = None
) -> SearchResult:
    """추출한 원시 필드로 정규화된 SearchResult 생성

    처리 순서: snippet 날짜 추출 -> URL 기반 필드 -> 품질 점수

    Args:
        position: 1부터 시작하는 결과 순위
        title: 결과 제목
        url: 리다이렉트가 해제된 절대 URL
        raw_snippet: 원본 snippet
        engine: 엔진 이름
        display_url: 엔진이 표시한 URL. None이면 URL에서 생성
        published_date: snippet에서 날짜를 찾지 못했을 때 사용할 게시일
        site_links: 하위 사이트 링크 (최대 6개 사용)
        thumbnail: 썸네일 URL
        site_icon: 엔진이 제공한 사이트 아이콘 URL

    Returns:
        SearchResult
    """
    date, snippet = extract_date(raw_snippet)
    snippet = snippet or ""

    links = list(site_links or [])[:6]

    return SearchResult(
        position=position,
        title=title,
        url=url,
        display_url=display_url if display_url else build_display_url(url),
        snippet=snippet,
        domain=extract_domain(url),
        favicon=get_favicon_url(url, "google"),
        favicon_hd=get_favicon_url(url, "clearbit"),
        site_name=get_site_name(url),
        breadcrumbs=extract_breadcrumbs(url),
        content_type=detect_content_type(url, title),
        is_secure=url.startswith("https"),
        engine=engine,
        quality_score=calculate_quality_score(url, snippet, title, position),
        date_published=date or published_date or None,
        site_links=links or None,
        thumbnail=thumbnail or None,
        site_icon=site_icon or None
    )
