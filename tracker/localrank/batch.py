"""複数地域検索・競合比較モジュール.

どちらも API のレート制限を避けるため 1 件ずつ逐次検索し、
リクエスト間に固定の待機を入れる。1 件の失敗は error として記録し、残りは続行する。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from localrank.config import (
    BATCH_LOCATION_INTERVAL,
    COMPETITOR_INTERVAL,
    MAX_COMPETITORS,
    MIN_COMPETITORS,
)
from localrank.errors import TrackerError, ValidationError
from localrank.models import (
    Business,
    CompetitorKeywordRanking,
    LocationSearchResult,
    LocationSummary,
)
from localrank.places import SearchFunc, find_businesses, lookup_rank, wait_interval

logger = logging.getLogger(__name__)


def _unique_stripped(values: Iterable[str]) -> list[str]:
    """前後空白を除去し、空文字と重複を除いて順序を保つ."""
    seen: list[str] = []
    for v in values:
        v = v.strip()
        if v and v not in seen:
            seen.append(v)
    return seen


def batch_location_search(
    keyword: str,
    locations: Iterable[str],
    search: SearchFunc = find_businesses,
    interval: float = BATCH_LOCATION_INTERVAL,
) -> list[LocationSearchResult]:
    """1 キーワードを複数地域で検索する."""
    keyword = (keyword or "").strip()
    locations = _unique_stripped(locations)
    if not keyword or not locations:
        raise ValidationError("Please enter a keyword and add at least one location")

    results: list[LocationSearchResult] = []
    for i, location in enumerate(locations):
        if i > 0:
            wait_interval(interval)

        logger.info("検索中: keyword=%s, location=%s", keyword, location)
        try:
            businesses = search(keyword, location)
        except TrackerError as e:
            logger.warning("スキップ: location=%s, error=%s", location, e)
            results.append(LocationSearchResult(location=location, error=str(e)))
            continue

        results.append(LocationSearchResult(location=location, businesses=businesses))
        logger.info("検索結果: %d 件", len(businesses))

    return results


def summarize_locations(results: list[LocationSearchResult]) -> LocationSummary | None:
    """成功した地域の中で件数最多・平均評価最高・件数最少の地域を返す.

    エラーの地域があっても、成功した地域だけで集計する（全地域の成功は求めない）。
    同値の場合は先に検索した地域を採用する。成功した地域がなければ None。
    """
    succeeded = [r for r in results if r.error is None]
    if not succeeded:
        return None

    # max / min は同値なら先頭を返す
    return LocationSummary(
        most_results=max(succeeded, key=lambda r: len(r.businesses)).location,
        highest_rated=max(succeeded, key=lambda r: r.average_rating).location,
        fewest_results=min(succeeded, key=lambda r: len(r.businesses)).location,
    )


def compare_competitors(
    businesses: list[Business],
    keywords: Iterable[str],
    location: str,
    search: SearchFunc = find_businesses,
    interval: float = COMPETITOR_INTERVAL,
) -> list[CompetitorKeywordRanking]:
    """選択した競合店舗の順位をキーワードごとに比較する.

    Args:
        businesses: 比較対象の店舗（2〜5 件）
        keywords: 比較するキーワード（1 件以上）
        location: 検索地域

    Returns:
        キーワード順の結果。rankings は business_id -> 順位（圏外は None）。
    """
    keywords = _unique_stripped(keywords)
    location = (location or "").strip()
    if not MIN_COMPETITORS <= len(businesses) <= MAX_COMPETITORS:
        raise ValidationError(
            f"Please select between {MIN_COMPETITORS} and {MAX_COMPETITORS} businesses"
        )
    if not keywords:
        raise ValidationError("Please add at least 1 keyword")
    if not location:
        raise ValidationError("Location is required")

    results: list[CompetitorKeywordRanking] = []
    for i, keyword in enumerate(keywords):
        if i > 0:
            wait_interval(interval)

        try:
            found = search(keyword, location)
        except TrackerError as e:
            logger.warning("キーワード検索失敗: keyword=%s, error=%s", keyword, e)
            results.append(CompetitorKeywordRanking(
                keyword=keyword,
                rankings={b.id: None for b in businesses},
                error=str(e),
            ))
            continue

        rankings = {b.id: lookup_rank(found, b.name) for b in businesses}
        results.append(CompetitorKeywordRanking(keyword=keyword, rankings=rankings))
        logger.info("  %s → %s", keyword, rankings)

    return results
