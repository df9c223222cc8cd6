"""
Search Engine Adapter Unit Tests

- 엔진별 HTML/JSON 응답 파싱 (네트워크 없이 고정 응답 사용)
- 리다이렉트 링크 해제
- 광고 제외, 결과 순위 연속성, limit 적용
- 타임아웃/HTTP 오류/세션 토큰 누락 시 오류 변환
"""

import json

import pytest
import requests
from unittest.mock import Mock
from requests.exceptions import ConnectionError, Timeout

from metasearch.engines import BingAdapter, DuckDuckGoAdapter, GoogleAdapter, create_default_adapters
from metasearch.errors import UnexpectedParseError, UpstreamError
from metasearch.models.data_models import SearchConfig
from metasearch.utils.user_agents import get_all_user_agents, get_random_user_agent


def make_response(body, status_code: int = 200, url: str = "https://example.com/") -> requests.Response:
    """고정 본문을 가진 requests.Response 생성"""
    if not isinstance(body, str):
        body = json.dumps(body)
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    return response


def make_adapter(adapter_class, *responses):
    """Mock 세션을 가진 어댑터 생성 (응답 또는 예외를 순서대로 반환)"""
    session = Mock()
    session.request.side_effect = list(responses)
    return adapter_class(SearchConfig(), session=session), session


DDG_HTML = """
<html><body>
<div class="result results_links results_links_deep web-result">
  <h2 class="result__title">
    <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.python.org%2F&amp;rut=abc">Welcome to Python.org</a>
  </h2>
  <a class="result__url" href="#">www.python.org</a>
  <span class="result__icon"><img src="//external-content.duckduckgo.com/ip3/www.python.org.ico"></span>
  <a class="result__snippet" href="#">The official home of the Python Programming Language.</a>
</div>
<div class="result results_links result--ad">
  <h2 class="result__title"><a class="result__a" href="https://ads.example.com/">Buy Python</a></h2>
  <a class="result__snippet" href="#">Sponsored</a>
</div>
<div class="result results_links results_links_deep web-result">
  <h2 class="result__title"><a class="result__a" href="https://docs.python.org/3/tutorial/">The Python Tutorial</a></h2>
  <a class="result__snippet" href="#">3 days ago - Python is an easy to learn, powerful programming language.</a>
</div>
<div class="result results_links results_links_deep web-result">
  <h2 class="result__title"><a class="result__a" href="https://en.wikipedia.org/wiki/Python">Python - Wikipedia</a></h2>
  <a class="result__snippet" href="#">Python is a high-level programming language.</a>
</div>
<div class="result--related">
  <a class="link-text" href="#">python tutorial</a>
  <a class="link-text" href="#">python download</a>
</div>
</body></html>
"""

DDG_INSTANT = {
    "Heading": "Python (programming language)",
    "Abstract": "Python is a high-level, general-purpose programming language.",
    "AbstractSource": "Wikipedia",
    "AbstractURL": "https://en.wikipedia.org/wiki/Python_(programming_language)",
    "Image": "/i/python.png",
    "Type": "A",
    "Infobox": {"content": [{"label": "Designed by", "value": "Guido van Rossum"}]},
    "RelatedTopics": [{"Text": "CPython", "FirstURL": "https://duckduckgo.com/CPython"}, {"Name": "group"}],
}


class TestDuckDuckGoAdapter:
    """DuckDuckGo 어댑터 테스트"""

    def test_web_search_parses_results_and_skips_ads(self):
        adapter, session = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), make_response(DDG_INSTANT))

        response = adapter.search_web("python", limit=10)

        assert [r.position for r in response.results] == [1, 2, 3]
        assert response.results[0].url == "https://www.python.org/"
        assert response.results[0].site_icon == "https://external-content.duckduckgo.com/ip3/www.python.org.ico"
        assert all("ads.example.com" not in r.url for r in response.results)
        assert response.results[1].date_published == "3 days ago"
        assert response.results[1].snippet.startswith("Python is an easy")
        assert response.results[2].content_type == "wiki"
        assert response.engine == "duckduckgo"
        assert response.page == 1

    def test_web_search_posts_form(self):
        adapter, session = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), make_response({}))

        adapter.search_web("python", page=3)

        method, url = session.request.call_args_list[0][0]
        form = session.request.call_args_list[0][1]["data"]
        assert method == "POST"
        assert url == "https://html.duckduckgo.com/html/"
        assert form["q"] == "python"
        assert form["kl"] == "wt-wt"
        assert form["s"] == "60"

    def test_web_search_related_and_people_also_ask(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), make_response({}))

        response = adapter.search_web("python")

        assert response.related_searches == ["python tutorial", "python download"]
        assert [p.question for p in response.people_also_ask] == ["python tutorial?", "python download?"]
        assert response.people_also_ask[0].link == "https://duckduckgo.com/?q=python%20tutorial"

    def test_web_search_respects_limit(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), make_response({}))

        response = adapter.search_web("python", limit=2)

        assert len(response.results) == 2
        assert response.total_results == 2

    def test_web_search_drops_nodes_without_title_or_url(self):
        """제목이나 URL이 없는 결과는 순위를 차지하지 않음"""
        html = """
        <div class="result results_links web-result">
          <h2 class="result__title"><a class="result__a" href="https://a.example.com/">First</a></h2>
        </div>
        <div class="result results_links web-result">
          <h2 class="result__title"><a class="result__a" href="https://b.example.com/"></a></h2>
        </div>
        <div class="result results_links web-result">
          <h2 class="result__title"><a class="result__a">No link</a></h2>
        </div>
        <div class="result results_links web-result">
          <h2 class="result__title"><a class="result__a" href="https://c.example.com/">Second</a></h2>
        </div>
        """
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(html), make_response({}))

        response = adapter.search_web("python")

        assert [r.position for r in response.results] == [1, 2]
        assert [r.title for r in response.results] == ["First", "Second"]

    def test_instant_answer_knowledge_graph(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), make_response(DDG_INSTANT))

        graph = adapter.search_web("python").knowledge_graph

        assert graph.title == "Python (programming language)"
        assert graph.type == "A"
        assert graph.image == "https://duckduckgo.com/i/python.png"
        assert graph.source == "Wikipedia"
        assert graph.attributes[0].label == "Designed by"
        assert [t.text for t in graph.related_topics] == ["CPython"]

    def test_instant_answer_failure_does_not_fail_search(self):
        """즉답 API 타임아웃은 지식 패널만 생략"""
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(DDG_HTML), Timeout("slow"))

        response = adapter.search_web("python")

        assert response.knowledge_graph is None
        assert len(response.results) == 3

    def test_web_search_timeout_raises_upstream_error(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, Timeout("slow"))

        with pytest.raises(UpstreamError) as exc_info:
            adapter.search_web("python")

        assert exc_info.value.message == "DuckDuckGo search failed: request timed out"
        assert exc_info.value.engine == "duckduckgo"

    def test_http_error_raises_upstream_error(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response("blocked", status_code=503))

        with pytest.raises(UpstreamError):
            adapter.search_web("python")

    def test_images_require_session_token(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response("<html>no token here</html>"))

        with pytest.raises(UnexpectedParseError) as exc_info:
            adapter.search_images("cats")

        assert "Could not obtain search token" in exc_info.value.message
        assert isinstance(exc_info.value, UpstreamError)

    def test_image_search(self):
        images = {"results": [
            {
                "title": "Cat",
                "image": "https://img.example.com/cat.jpg",
                "thumbnail": "https://tse.example.com/cat",
                "url": "https://example.com/cats",
                "width": 800,
                "height": 600,
                "source": "Bing",
            },
            {
                "title": "Dog",
                "image": "https://img.example.com/dog.png",
                "thumbnail": "https://tse.example.com/dog",
                "url": "https://example.com/dogs",
                "width": 0,
                "height": 0,
            },
        ]}
        adapter, session = make_adapter(
            DuckDuckGoAdapter,
            make_response('<script>vqd="4-123456789";</script>'),
            make_response(images)
        )

        response = adapter.search_images("cats", size="large", color="red")

        params = session.request.call_args_list[1][1]["params"]
        assert params["vqd"] == "4-123456789"
        assert params["f"] == "size:Large,color:red"
        assert [r.position for r in response.results] == [1, 2]
        assert response.results[0].format == "jpeg"
        assert response.results[0].aspect_ratio == "1.33"
        assert response.results[0].source_domain == "example.com"
        assert response.results[1].aspect_ratio is None
        assert response.results[1].source == "example.com"

    def test_image_search_tolerates_malformed_items(self):
        """숫자가 아닌 크기는 0으로 처리하고 객체가 아닌 항목은 건너뜀"""
        images = {"results": [
            {
                "title": "Cat",
                "image": "https://img.example.com/cat.jpg",
                "url": "https://example.com/cats",
                "width": "n/a",
                "height": None,
            },
            "not an object",
            {
                "title": "Dog",
                "image": "https://img.example.com/dog.jpg",
                "url": "https://example.com/dogs",
                "width": "1024",
                "height": "512",
            },
        ]}
        adapter, _ = make_adapter(
            DuckDuckGoAdapter,
            make_response('<script>vqd="4-123456789";</script>'),
            make_response(images)
        )

        response = adapter.search_images("cats")

        assert [r.position for r in response.results] == [1, 2]
        assert (response.results[0].width, response.results[0].height) == (0, 0)
        assert response.results[0].aspect_ratio is None
        assert response.results[1].aspect_ratio == "2.00"

    def test_news_search_skips_non_object_items(self):
        news = {"results": [
            ["unexpected"],
            {"title": "Python news", "url": "https://news.example.com/python", "date": "2024-01-01T00:00:00Z"},
        ]}
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response("vqd=4-987654&p=1"), make_response(news))

        response = adapter.search_news("python")

        assert [r.position for r in response.results] == [1]
        assert response.results[0].title == "Python news"

    def test_news_search(self):
        news = {"results": [
            {
                "title": "Python 3.13 released",
                "url": "https://news.example.com/python",
                "excerpt": "A new version",
                "source": "Example News",
                "date": 1704067200,
                "image": "https://news.example.com/img.png",
            },
            {"title": "", "url": "https://news.example.com/untitled"},
        ]}
        adapter, session = make_adapter(
            DuckDuckGoAdapter,
            make_response("vqd=4-987654&p=1"),
            make_response(news)
        )

        response = adapter.search_news("python", freshness="week")

        assert session.request.call_args_list[1][1]["params"]["df"] == "w"
        assert len(response.results) == 1
        article = response.results[0]
        assert article.date == "2024-01-01T00:00:00+00:00"
        assert article.source == "Example News"
        assert article.source_logo == "https://logo.clearbit.com/news.example.com"
        assert article.relative_date.endswith("ago")

    def test_suggestions_phrase_list(self):
        adapter, _ = make_adapter(
            DuckDuckGoAdapter,
            make_response([{"phrase": "python tutorial"}, {"phrase": "learn python"}])
        )

        response = adapter.get_suggestions("python")

        assert response.suggestions == ["python tutorial", "learn python"]
        highlighted = response.suggestions_rich[1].highlighted
        assert (highlighted.before, highlighted.match, highlighted.after) == ("learn ", "python", "")

    def test_suggestions_nested_list(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response(["py", ["python", "pytorch"]]))

        assert adapter.get_suggestions("py").suggestions == ["python", "pytorch"]

    def test_suggestions_invalid_json(self):
        adapter, _ = make_adapter(DuckDuckGoAdapter, make_response("<html>oops</html>"))

        with pytest.raises(UnexpectedParseError):
            adapter.get_suggestions("python")


BING_HTML = """
<html><body>
<span class="sb_count">About 1,230,000 results</span>
<ol id="b_results">
  <li class="b_algo">
    <h2><a href="https://www.bing.com/ck/a?!&amp;&amp;p=abc&amp;u=a1aHR0cHM6Ly9kb2NzLnB5dGhvbi5vcmcvMy8&amp;ntb=1">Python 3 Documentation</a></h2>
    <cite>docs.python.org/3</cite>
    <div class="b_caption"><p>2024-01-05 - Welcome to the Python documentation for every release.</p></div>
  </li>
  <li class="b_algo">
    <h2><a href="https://www.python.org/">Welcome to Python.org</a></h2>
    <div class="b_caption"><p>The official home of the Python Programming Language.</p></div>
    <div class="b_deep"><a href="https://www.python.org/downloads/">Downloads</a></div>
  </li>
  <li class="b_algo"><div class="b_caption"><p>No title here</p></div></li>
</ol>
<div class="b_rs"><a href="/search?q=python+tutorial">python tutorial</a><a href="/search?q=python+tutorial">python tutorial</a></div>
<div class="b_entityTP">
  <div class="b_entityTitle">Python</div>
  <div class="b_paractl">Python is a programming language.</div>
</div>
</body></html>
"""


class TestBingAdapter:
    """Bing 어댑터 테스트"""

    def test_web_search(self):
        adapter, session = make_adapter(BingAdapter, make_response(BING_HTML))

        response = adapter.search_web("python", page=2, limit=10)

        params = session.request.call_args[1]["params"]
        assert params["first"] == 11
        assert params["setmkt"] == "en-US"

        assert [r.position for r in response.results] == [1, 2]
        assert response.results[0].url == "https://docs.python.org/3/"
        assert response.results[0].display_url == "docs.python.org/3"
        assert response.results[0].date_published == "2024-01-05"
        assert response.results[1].site_links[0].title == "Downloads"
        assert response.estimated_total == 1230000
        assert response.related_searches == ["python tutorial"]
        assert response.knowledge_graph.title == "Python"
        assert response.knowledge_graph.description == "Python is a programming language."

    def test_web_search_drops_untitled_node_without_taking_position(self):
        html = """
        <ol id="b_results">
          <li class="b_algo"><h2><a href="https://a.example.com/">First</a></h2></li>
          <li class="b_algo"><h2><a href="https://b.example.com/"> </a></h2></li>
          <li class="b_algo"><h2><a>No link</a></h2></li>
          <li class="b_algo"><h2><a href="https://c.example.com/">Second</a></h2></li>
        </ol>
        """
        adapter, _ = make_adapter(BingAdapter, make_response(html))

        response = adapter.search_web("python")

        assert [r.position for r in response.results] == [1, 2]
        assert [r.url for r in response.results] == ["https://a.example.com/", "https://c.example.com/"]

    def test_unwrap_url_keeps_plain_links(self):
        assert BingAdapter._unwrap_url("https://example.com/") == "https://example.com/"
        broken = "https://www.bing.com/ck/a?u=zzz"
        assert BingAdapter._unwrap_url(broken) == broken

    def test_image_search_skips_bad_metadata(self):
        html = """
        <a class="iusc" m='{"murl":"https://img.example.com/a.png","turl":"https://tse.example.com/a","purl":"https://example.com/page","t":"A","mw":"640","mh":"480"}'></a>
        <a class="iusc" m="{not json"></a>
        <a class="iusc"></a>
        """
        adapter, session = make_adapter(BingAdapter, make_response(html))

        response = adapter.search_images("a", size="large")

        assert session.request.call_args[1]["params"]["qft"] == "filterui:imagesize-large"
        assert len(response.results) == 1
        image = response.results[0]
        assert image.format == "png"
        assert image.aspect_ratio == "1.33"
        assert image.source_domain == "example.com"

    def test_image_search_non_numeric_size(self):
        html = """<a class="iusc" m='{"murl":"https://img.example.com/a.gif","purl":"https://example.com/p","t":"A","mw":"n/a","mh":"480"}'></a>"""
        adapter, _ = make_adapter(BingAdapter, make_response(html))

        response = adapter.search_images("a")

        assert len(response.results) == 1
        assert response.results[0].width == 0
        assert response.results[0].height == 480
        assert response.results[0].aspect_ratio is None

    def test_news_search_resolves_relative_urls(self):
        html = """
        <div class="news-card" data-title="Python news">
          <a class="title" href="/news/python">Python news</a>
          <div class="snippet">Something about Python</div>
          <div class="source"><a>Example Times</a><span aria-label="2h ago">2h</span></div>
        </div>
        <div class="news-card"><div class="snippet">no link</div></div>
        """
        adapter, _ = make_adapter(BingAdapter, make_response(html))

        response = adapter.search_news("python", freshness="day")

        assert len(response.results) == 1
        article = response.results[0]
        assert article.url == "https://www.bing.com/news/python"
        assert article.source == "Example Times"
        assert article.date == "2h ago"

    def test_suggestions(self):
        html = "<ul><li>python tutorial</li><li>python download</li></ul>"
        adapter, _ = make_adapter(BingAdapter, make_response(html))

        response = adapter.get_suggestions("python")

        assert response.suggestions == ["python tutorial", "python download"]

    def test_connection_error(self):
        adapter, _ = make_adapter(BingAdapter, ConnectionError("refused"))

        with pytest.raises(UpstreamError) as exc_info:
            adapter.search_news("python")

        assert exc_info.value.message.startswith("Bing news search failed")


GOOGLE_HTML = """
<html><body>
<div id="result-stats">About 2,340 results</div>
<div id="search">
  <div class="g">
    <a href="/url?q=https://www.python.org/&amp;sa=U"><h3>Welcome to Python.org</h3></a>
    <div class="VwiC3b">Jan 5, 2024 — The official home of the Python Programming Language.</div>
  </div>
  <div class="g">
    <div data-text-ad="1"><a href="https://ads.example.com/"><h3>Sponsored Python</h3></a></div>
  </div>
  <div class="MjjYud">
    <div class="g">
      <a href="https://docs.python.org/3/"><h3>Python 3 Docs</h3></a>
      <div class="VwiC3b">Documentation for Python 3.</div>
    </div>
  </div>
  <div class="g"><a href="https://www.google.com/search/about"><h3>About Google Search</h3></a></div>
</div>
<a href="/search?q=python+tutorial">python tutorial</a>
<a href="/search?q=python&amp;start=10">Next</a>
</body></html>
"""


class TestGoogleAdapter:
    """Google 어댑터 테스트"""

    def test_web_search(self):
        adapter, session = make_adapter(GoogleAdapter, make_response(GOOGLE_HTML))

        response = adapter.search_web("python", limit=20, lang="ko")

        params = session.request.call_args[1]["params"]
        assert params["num"] == 10
        assert params["hl"] == "ko"
        assert params["gl"] == "us"

        assert [r.url for r in response.results] == ["https://www.python.org/", "https://docs.python.org/3/"]
        assert [r.position for r in response.results] == [1, 2]
        assert response.results[0].date_published == "Jan 5, 2024"
        assert response.results[0].snippet == "The official home of the Python Programming Language."
        assert response.estimated_total == 2340
        assert response.related_searches == ["python tutorial"]
        assert response.knowledge_graph is None
        assert response.featured_snippet is None

    def test_nested_containers_counted_once(self):
        adapter, _ = make_adapter(GoogleAdapter, make_response(GOOGLE_HTML))

        response = adapter.search_web("python")

        urls = [r.url for r in response.results]
        assert len(urls) == len(set(urls))

    def test_image_search_filters_small_and_static_images(self):
        html = """
        <script>var data = [["https://example.com/big.jpg",800,600],
        ["https://encrypted-tbn0.gstatic.com/x.jpg",800,600],
        ["https://example.com/tiny.png",50,50]];</script>
        """
        adapter, _ = make_adapter(GoogleAdapter, make_response(html))

        response = adapter.search_images("big")

        assert len(response.results) == 1
        assert response.results[0].image_url == "https://example.com/big.jpg"
        assert response.results[0].aspect_ratio == "1.33"

    def test_suggestions_use_firefox_client(self):
        adapter, session = make_adapter(GoogleAdapter, make_response(["python", ["python tutorial", "python 3"]]))

        response = adapter.get_suggestions("python")

        kwargs = session.request.call_args[1]
        assert kwargs["params"]["client"] == "firefox"
        assert "Firefox" in kwargs["headers"]["User-Agent"]
        assert kwargs["timeout"] == 5.0
        assert response.suggestions == ["python tutorial", "python 3"]

    def test_timeout(self):
        adapter, _ = make_adapter(GoogleAdapter, Timeout("slow"))

        with pytest.raises(UpstreamError) as exc_info:
            adapter.search_web("python")

        assert exc_info.value.message == "Google search failed: request timed out"


class TestAdapterRegistry:

    def test_create_default_adapters_follows_config_order(self):
        adapters = create_default_adapters(SearchConfig(available_engines=["google", "bing"]))

        assert list(adapters.keys()) == ["google", "bing"]
        assert isinstance(adapters["google"], GoogleAdapter)

    def test_user_agent_sent_with_each_request(self):
        adapter, session = make_adapter(BingAdapter, make_response(BING_HTML))

        adapter.search_web("python")

        headers = session.request.call_args[1]["headers"]
        assert headers["User-Agent"]
        assert headers["Accept-Encoding"] == "gzip, deflate"

    def test_user_agent_pool(self):
        agents = get_all_user_agents()
        agents.clear()

        assert get_all_user_agents()
        assert get_random_user_agent() in get_all_user_agents()
