"""関連キーワード推定モジュール.

店舗のカテゴリ（Places の types と店舗名）から関連キーワードを推定し、
キーワードごとに店舗の順位を照合する。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from localrank.config import KEYWORD_ANALYSIS_INTERVAL
from localrank.errors import TrackerError, ValidationError
from localrank.models import KeywordRank
from localrank.places import SearchFunc, find_businesses, lookup_rank, wait_interval

logger = logging.getLogger(__name__)

MAX_RELATED_KEYWORDS = 10
GENERAL_CATEGORY = "general"
GENERAL_KEYWORDS = ["business", "services", "company", "local business"]

BUSINESS_KEYWORDS: dict[str, list[str]] = {
    "restaurant": [
        "restaurant", "dining", "food", "eatery", "bistro", "cafe",
        "takeout", "delivery", "fast food", "fine dining",
    ],
    "marketing": [
        "marketing agency", "digital marketing", "advertising agency",
        "web design", "seo services", "social media marketing",
        "marketing consultant", "branding agency", "ppc management",
    ],
    "healthcare": [
        "doctor", "physician", "medical clinic", "healthcare",
        "family doctor", "primary care", "medical services",
        "clinic", "health center",
    ],
    "dental": [
        "dentist", "dental clinic", "dental care", "orthodontist",
        "dental services", "teeth cleaning", "oral health",
        "family dentist", "cosmetic dentist",
    ],
    "legal": [
        "lawyer", "attorney", "law firm", "legal services",
        "personal injury lawyer", "divorce attorney", "criminal lawyer",
        "business lawyer", "legal counsel",
    ],
    "automotive": [
        "auto repair", "car service", "mechanic", "automotive",
        "car maintenance", "brake service", "oil change",
        "auto shop", "car repair",
    ],
    "beauty": [
        "hair salon", "beauty salon", "barber shop", "spa",
        "nail salon", "hair stylist", "beauty services",
        "massage therapy", "skincare",
    ],
    "fitness": [
        "gym", "fitness center", "personal trainer", "yoga studio",
        "pilates", "crossfit", "fitness classes", "health club",
        "workout facility",
    ],
    "real_estate": [
        "real estate", "realtor", "real estate agent", "property management",
        "home sales", "real estate broker", "property sales",
        "real estate services", "home buying",
    ],
    "home_services": [
        "plumber", "electrician", "hvac", "contractor",
        "home repair", "handyman", "roofing", "flooring",
        "painting", "landscaping",
    ],
}


def detect_categories(types: Iterable[str], name: str) -> list[str]:
    """店舗の types と店舗名からカテゴリを判定する.

    Returns:
        一致したカテゴリ（テーブル順）。一致なしなら ["general"]。
    """
    lowered_name = name.lower()
    tokens = lowered_name.split()
    first_token = tokens[0] if tokens else ""
    lowered_types = [t.lower() for t in types if t]

    categories: list[str] = []
    for category, keywords in BUSINESS_KEYWORDS.items():
        if _matches_types(keywords, lowered_types) or _matches_name(
            keywords, lowered_name, first_token
        ):
            categories.append(category)

    return categories or [GENERAL_CATEGORY]


def _matches_types(keywords: list[str], types: list[str]) -> bool:
    for keyword in keywords:
        tag = keyword.replace(" ", "_")
        for t in types:
            if tag in t or t in tag:
                return True
    return False


def _matches_name(keywords: list[str], name: str, first_token: str) -> bool:
    for keyword in keywords:
        if keyword in name:
            return True
        # 空トークンは全キーワードに含まれてしまうので照合しない
        if first_token and first_token in keyword:
            return True
    return False


def related_keywords(categories: Iterable[str]) -> list[str]:
    """カテゴリから関連キーワードを最大 10 件返す（重複除去・テーブル順）."""
    wanted = set(categories)
    keywords: list[str] = []
    for category, phrases in BUSINESS_KEYWORDS.items():
        if category in wanted:
            keywords.extend(p for p in phrases if p not in keywords)

    if GENERAL_CATEGORY in wanted:
        keywords.extend(k for k in GENERAL_KEYWORDS if k not in keywords)

    return keywords[:MAX_RELATED_KEYWORDS]


def analyze_business_keywords(
    name: str,
    types: Iterable[str],
    location: str,
    search: SearchFunc = find_businesses,
    interval: float = KEYWORD_ANALYSIS_INTERVAL,
) -> list[KeywordRank]:
    """関連キーワードごとに店舗の順位を調べる.

    API のレート制限を避けるため、キーワードは 1 件ずつ逐次検索し、
    リクエスト間に interval 秒の待機を入れる。
    1 キーワードの失敗は error 付きの圏外として記録し、残りは続行する。

    Returns:
        順位ありを先頭に順位昇順。同順位は元のキーワード順。
    """
    name = (name or "").strip()
    location = (location or "").strip()
    if not name or not location:
        raise ValidationError("Business name and location are required")

    categories = detect_categories(types, name)
    keywords = related_keywords(categories)
    logger.info("カテゴリ: %s, 関連キーワード: %d 件", ",".join(categories), len(keywords))

    results: list[KeywordRank] = []
    for i, keyword in enumerate(keywords):
        if i > 0:
            wait_interval(interval)

        try:
            businesses = search(keyword, location)
        except TrackerError as e:
            logger.warning("キーワード検索失敗: keyword=%s, error=%s", keyword, e)
            results.append(KeywordRank(keyword=keyword, rank=None, found=False, error=str(e)))
            continue

        rank = lookup_rank(businesses, name)
        results.append(KeywordRank(keyword=keyword, rank=rank, found=rank is not None))
        status = f"{rank}位" if rank else "圏外"
        logger.info("  %s → %s", keyword, status)

    # sorted は安定ソートなので同順位は入力順のまま
    return sorted(results, key=lambda r: (not r.found, r.rank or 0))
