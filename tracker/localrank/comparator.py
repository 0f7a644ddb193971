"""順位比較モジュール — 直近 2 回のスナップショットから順位変動を求める."""

from __future__ import annotations

from collections.abc import Iterable

from localrank.models import RankingComparison, RankingSnapshot


def normalize(value: str) -> str:
    return value.lower().strip()


def compare(
    history: Iterable[RankingSnapshot], keyword: str, location: str
) -> list[RankingComparison]:
    """キーワード×地域の最新 2 スナップショットを比較する.

    スナップショットが 2 件未満なら空リスト。3 件目以降は使わない。
    """
    keyword = normalize(keyword)
    location = normalize(location)

    relevant = sorted(
        (s for s in history if s.keyword == keyword and s.location == location),
        key=lambda s: s.timestamp,
        reverse=True,
    )
    if len(relevant) < 2:
        return []

    return compare_snapshots(relevant[0], relevant[1])


def compare_snapshots(
    current: RankingSnapshot, previous: RankingSnapshot
) -> list[RankingComparison]:
    """current の各店舗について previous からの順位変動を求める.

    店舗は id で照合する。previous にしか無い（圏外に落ちた）店舗は含めない。
    """
    previous_ranks = {}
    for b in previous.businesses:
        previous_ranks.setdefault(b.id, b.rank)

    comparisons: list[RankingComparison] = []
    for b in current.businesses:
        previous_rank = previous_ranks.get(b.id)
        if previous_rank is None:
            trend, rank_change = "new", 0
        else:
            rank_change = previous_rank - b.rank
            if rank_change > 0:
                trend = "up"
            elif rank_change < 0:
                trend = "down"
            else:
                trend = "same"

        comparisons.append(RankingComparison(
            business_id=b.id,
            business_name=b.name,
            previous_rank=previous_rank,
            current_rank=b.rank,
            rank_change=rank_change,
            trend=trend,
        ))

    return sorted(comparisons, key=lambda c: c.current_rank)
