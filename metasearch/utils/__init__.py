# Utilities Package
"""유틸리티 함수"""

from metasearch.utils.enrichment import (
    extract_domain,
    get_favicon_url,
    get_site_name,
    extract_breadcrumbs,
    detect_content_type,
    extract_date,
    calculate_quality_score,
    detect_image_format,
    parse_dimension,
    compute_aspect_ratio,
    highlight_match,
    format_relative_date,
    build_display_url,
    enrich_result,
)
from metasearch.utils.url_deduplicator import deduplicate_urls, deduplicate_search_results, normalize_url
from metasearch.utils.user_agents import get_random_user_agent, get_firefox_user_agent, get_all_user_agents

__all__ = [
    "extract_domain",
    "get_favicon_url",
    "get_site_name",
    "extract_breadcrumbs",
    "detect_content_type",
    "extract_date",
    "calculate_quality_score",
    "detect_image_format",
    "parse_dimension",
    "compute_aspect_ratio",
    "highlight_match",
    "format_relative_date",
    "build_display_url",
    "enrich_result",
    "deduplicate_urls",
    "deduplicate_search_results",
    "normalize_url",
    "get_random_user_agent",
    "get_firefox_user_agent",
    "get_all_user_agents",
]
