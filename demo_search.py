"""
메타 검색 데모 스크립트

실제 검색 엔진에 요청을 보내 결과를 확인하기 위한 간단한 스크립트.
설정은 .env 파일 또는 METASEARCH_* 환경 변수에서 읽는다.
"""

import json
import logging

from metasearch import SearchConfig, SearchEngineManager, SearchError

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def demo_web_search(manager: SearchEngineManager, query: str):
    """단일 엔진 웹 검색 데모"""
    print("\n" + "="*60)
    print("웹 검색 데모")
    print("="*60)

    engine = input(f"엔진 ({', '.join(manager.get_available_engines()['available'])}): ").strip() or None

    response = manager.search_web(query, engine=engine, limit=5)

    print(f"\n검색 결과 ({response.total_results}개, {response.execution_time}):")
    for result in response.results:
        print(f"\n  [{result.position}] {result.title}")
        print(f"      URL: {result.url}")
        print(f"      유형: {result.content_type}, 품질 점수: {result.quality_score}")
        snippet_preview = result.snippet[:100] + "..." if len(result.snippet) > 100 else result.snippet
        print(f"      스니펫: {snippet_preview}")

    if response.knowledge_graph:
        print(f"\n지식 패널: {response.knowledge_graph.title}")
    if response.related_searches:
        print(f"관련 검색어: {', '.join(response.related_searches)}")


def demo_multi_search(manager: SearchEngineManager, query: str):
    """다중 엔진 검색 데모 (JSON 출력)"""
    print("\n" + "="*60)
    print("다중 엔진 검색 데모")
    print("="*60)

    response = manager.multi_search(query, limit=10)
    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))


def demo_suggestions(manager: SearchEngineManager, query: str):
    """추천 검색어 데모"""
    print("\n" + "="*60)
    print("추천 검색어 데모")
    print("="*60)

    response = manager.get_suggestions(query)
    for suggestion in response.suggestions_rich:
        h = suggestion.highlighted
        print(f"  - {h.before}[{h.match}]{h.after}")


def main():
    """메인 함수"""
    print("="*60)
    print("메타 검색 데모")
    print("="*60)

    manager = SearchEngineManager(SearchConfig.from_env())

    print("\n사용 가능한 데모:")
    print("  1. 웹 검색")
    print("  2. 다중 엔진 검색")
    print("  3. 추천 검색어")

    choice = input("\n선택 (1-3): ").strip()
    query = input("검색어: ").strip()

    try:
        if choice == "1":
            demo_web_search(manager, query)
        elif choice == "2":
            demo_multi_search(manager, query)
        elif choice == "3":
            demo_suggestions(manager, query)
        else:
            print("잘못된 선택입니다.")
    except SearchError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False, indent=2))

    print(f"\n캐시 통계: {manager.get_cache_stats()}")


if __name__ == "__main__":
    main()
