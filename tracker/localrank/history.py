"""順位履歴モジュール.

検索結果をスナップショットとして保存し、直近の検索や順位変動を取り出す。
履歴全体を 1 つの JSON としてストアに保存する:

    {"version": 1, "records": [<RankingSnapshot>, ...]}

単一スレッド前提のためロックは持たない。save の読み込み〜書き込みは
1 回の呼び出しの中で完結させる。
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterable

from localrank import comparator
from localrank.config import (
    HISTORY_FORMAT_VERSION,
    HISTORY_MAX_RECORDS,
    HISTORY_STORAGE_KEY,
)
from localrank.errors import PersistenceError
from localrank.models import (
    Business,
    RankedBusiness,
    RankingComparison,
    RankingSnapshot,
)
from localrank.storage import BlobStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RankingHistory:
    """キーワード×地域ごとの順位スナップショットを管理する."""

    def __init__(
        self,
        store: BlobStore,
        max_records: int = HISTORY_MAX_RECORDS,
        storage_key: str = HISTORY_STORAGE_KEY,
        clock: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._max_records = max_records
        self._key = storage_key
        self._clock = clock

    def save(
        self,
        keyword: str,
        location: str,
        businesses: Iterable[Business | RankedBusiness],
    ) -> RankingSnapshot | None:
        """検索結果をスナップショットとして追記し、履歴全体を保存する.

        結果 0 件の検索は保存しない（None を返す）。
        上限を超えた分は古い順に削除する。

        Raises:
            PersistenceError: ストアへの書き込みに失敗
        """
        ranked = tuple(
            b if isinstance(b, RankedBusiness) else RankedBusiness.from_business(b)
            for b in businesses
        )
        if not ranked:
            logger.info("検索結果 0 件のため履歴に保存しない: keyword=%s", keyword)
            return None

        history = self.load_all()

        # 同一ミリ秒の保存でも新旧が決まるよう、既存の最新より後にずらす
        timestamp = self._clock()
        if history:
            timestamp = max(timestamp, max(s.timestamp for s in history) + 1)

        snapshot = RankingSnapshot(
            id=str(uuid.uuid4()),
            keyword=comparator.normalize(keyword),
            location=comparator.normalize(location),
            timestamp=timestamp,
            businesses=ranked,
        )
        history.append(snapshot)
        if len(history) > self._max_records:
            del history[: len(history) - self._max_records]

        self._store.put(self._key, self._serialize(history))
        logger.info(
            "履歴に保存: keyword=%s, location=%s, %d 件（履歴 %d 件）",
            snapshot.keyword, snapshot.location, len(ranked), len(history),
        )
        return snapshot

    def load_all(self) -> list[RankingSnapshot]:
        """履歴全体を読み込む. 未保存・破損時は空リスト."""
        try:
            raw = self._store.get(self._key)
        except PersistenceError as e:
            logger.warning("履歴の読み込みに失敗。空として扱う: %s", e)
            return []

        if not raw:
            return []

        try:
            return self._deserialize(raw)
        except (ValueError, TypeError, KeyError, RecursionError) as e:
            logger.warning("履歴データが壊れています。空として扱う: %s", e)
            return []

    def comparisons(self, keyword: str, location: str) -> list[RankingComparison]:
        return comparator.compare(self.load_all(), keyword, location)

    def recent_searches(self, limit: int = 10) -> list[RankingSnapshot]:
        """キーワード×地域ごとの最新スナップショットを新しい順に返す."""
        latest: dict[tuple[str, str], RankingSnapshot] = {}
        for s in self.load_all():
            key = (s.keyword, s.location)
            if key not in latest or s.timestamp > latest[key].timestamp:
                latest[key] = s

        searches = sorted(latest.values(), key=lambda s: s.timestamp, reverse=True)
        return searches[:limit]

    @staticmethod
    def _serialize(history: list[RankingSnapshot]) -> str:
        return json.dumps(
            {
                "version": HISTORY_FORMAT_VERSION,
                "records": [s.to_dict() for s in history],
            },
            ensure_ascii=False,
        )

    @staticmethod
    def _deserialize(raw: str) -> list[RankingSnapshot]:
        data = json.loads(raw)
        # バージョンタグ導入前の形式（配列のみ）も読めるようにする
        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            version = data.get("version")
            if version != HISTORY_FORMAT_VERSION:
                raise ValueError(f"unsupported history version: {version}")
            records = data["records"]
        else:
            raise ValueError("history payload must be a list or an object")

        if not isinstance(records, list):
            raise ValueError("records must be a list")
        return [RankingSnapshot.from_dict(r) for r in records]
