"""Google Places テキスト検索モジュール.

検索クエリは "<keyword> <location>"。
Places API の結果順をそのまま順位（1始まり）とする。
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import requests

from localrank.config import (
    GOOGLE_PLACES_API_KEY,
    PLACES_TEXT_SEARCH_URL,
    REQUEST_TIMEOUT,
)
from localrank.errors import (
    ConfigurationError,
    ProviderError,
    TransportError,
    ValidationError,
)
from localrank.models import Business

logger = logging.getLogger(__name__)

# (keyword, location) -> 順位付き店舗リスト
SearchFunc = Callable[[str, str], list[Business]]


def find_businesses(keyword: str, location: str, api_key: str | None = None) -> list[Business]:
    """キーワード×地域で店舗を検索し、順位付きリストを返す.

    Raises:
        ValidationError: keyword / location が空
        ConfigurationError: API キー未設定
        ProviderError: Places API が OK 以外のステータスを返した
        TransportError: 通信失敗
    """
    keyword = (keyword or "").strip()
    location = (location or "").strip()
    if not keyword or not location:
        raise ValidationError("Keyword and location are required")

    api_key = api_key or GOOGLE_PLACES_API_KEY
    if not api_key:
        raise ConfigurationError("Google Places API key not configured")

    return fetch_places(keyword, location, api_key)


def fetch_places(keyword: str, location: str, api_key: str) -> list[Business]:
    """Places API を呼び出してレスポンスを Business のリストに変換する."""
    params = {"query": f"{keyword} {location}", "key": api_key}

    try:
        resp = requests.get(PLACES_TEXT_SEARCH_URL, params=params, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.error("Places API 通信失敗: keyword=%s, location=%s, error=%s", keyword, location, e)
        raise TransportError(str(e)) from e

    if not resp.ok:
        logger.error("Places API HTTP エラー: keyword=%s, status=%s", keyword, resp.status_code)
        raise ProviderError(str(resp.status_code))

    try:
        data = resp.json()
    except ValueError as e:
        logger.error("Places API レスポンスの JSON パースエラー: %s", e)
        raise ProviderError("INVALID_RESPONSE") from e

    status = data.get("status")
    if status != "OK":
        logger.error("Places API エラー: keyword=%s, status=%s", keyword, status)
        raise ProviderError(str(status), detail=data.get("error_message"))

    return parse_places(data.get("results", []))


def parse_places(results: list[dict]) -> list[Business]:
    """Places API の results 配列を Business のリストに変換する."""
    businesses: list[Business] = []
    for i, place in enumerate(results, start=1):
        businesses.append(Business(
            id=place.get("place_id", ""),
            name=place.get("name", ""),
            rank=i,
            address=place.get("formatted_address", ""),
            rating=float(place.get("rating") or 0.0),
            total_ratings=int(place.get("user_ratings_total") or 0),
            price_level=place.get("price_level"),
            types=list(place.get("types") or []),
            is_open=_deep_get(place, "opening_hours", "open_now"),
        ))
    return businesses


def _deep_get(d: dict, *keys: str):
    """ネストされた dict から安全に値を取得する."""
    for key in keys:
        if not isinstance(d, dict):
            return None
        d = d.get(key)
    return d


def lookup_rank(results: list[Business], target_name: str) -> int | None:
    """検索結果リストから店舗名で順位を見つける.

    店舗名の部分一致（双方向・大文字小文字無視）で照合する。
    キーワードをまたいで使える店舗 ID が無いため名前で照合しており、
    名前が重なる別店舗に一致する可能性がある。

    Returns:
        順位（1始まり）。見つからなければ None（圏外）。
    """
    target = target_name.lower()
    for i, r in enumerate(results, start=1):
        candidate = r.name.lower()
        if target in candidate or candidate in target:
            return i
    return None


def wait_interval(seconds: float) -> None:
    """次のリクエストまで固定間隔で待機する."""
    time.sleep(seconds)
