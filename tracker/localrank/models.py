"""データモデル定義."""

from dataclasses import dataclass, field


@dataclass
class Business:
    """検索結果の1店舗を表す."""

    id: str  # place_id
    name: str
    rank: int  # 検索結果内の順位（1始まり）
    address: str = ""
    rating: float = 0.0
    total_ratings: int = 0
    price_level: int | None = None
    types: list[str] = field(default_factory=list)
    is_open: bool | None = None  # None = 営業時間情報なし


@dataclass(frozen=True)
class RankedBusiness:
    """履歴に保存する店舗の順位情報."""

    id: str
    name: str
    rank: int  # 呼び出し元が設定した順位。配列位置とは独立
    rating: float
    total_ratings: int

    @classmethod
    def from_business(cls, b: Business) -> "RankedBusiness":
        return cls(
            id=b.id,
            name=b.name,
            rank=b.rank,
            rating=b.rating,
            total_ratings=b.total_ratings,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rank": self.rank,
            "rating": self.rating,
            "total_ratings": self.total_ratings,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RankedBusiness":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            rank=int(d["rank"]),
            rating=float(d.get("rating") or 0.0),
            # 配列のみの旧形式はキャメルケース
            total_ratings=int(d.get("total_ratings", d.get("totalRatings")) or 0),
        )


@dataclass(frozen=True)
class RankingSnapshot:
    """1 回の検索結果のスナップショット."""

    id: str  # uuid
    keyword: str  # 小文字・前後空白除去済み
    location: str  # 同上
    timestamp: int  # epoch ミリ秒
    businesses: tuple[RankedBusiness, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "location": self.location,
            "timestamp": self.timestamp,
            "businesses": [b.to_dict() for b in self.businesses],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RankingSnapshot":
        return cls(
            id=str(d["id"]),
            keyword=str(d["keyword"]),
            location=str(d["location"]),
            timestamp=int(d["timestamp"]),
            businesses=tuple(RankedBusiness.from_dict(b) for b in d["businesses"]),
        )


@dataclass
class RankingComparison:
    """前回スナップショットとの順位比較."""

    business_id: str
    business_name: str
    previous_rank: int | None  # None = 今回初登場
    current_rank: int
    rank_change: int  # 正 = 順位上昇
    trend: str  # "up" / "down" / "same" / "new"


@dataclass
class KeywordRank:
    """関連キーワード1件あたりの順位."""

    keyword: str
    rank: int | None  # None = 圏外
    found: bool
    error: str | None = None


@dataclass
class LocationSearchResult:
    """複数地域検索の1地域分の結果."""

    location: str
    businesses: list[Business] = field(default_factory=list)
    error: str | None = None

    @property
    def top_business(self) -> Business | None:
        return self.businesses[0] if self.businesses else None

    @property
    def average_rating(self) -> float:
        """平均評価（評価なしは 0 として扱う）."""
        if not self.businesses:
            return 0.0
        total = sum(b.rating or 0.0 for b in self.businesses)
        return round(total / len(self.businesses), 1)

    @property
    def open_count(self) -> int:
        return sum(1 for b in self.businesses if b.is_open)


@dataclass
class LocationSummary:
    """複数地域検索の横断サマリ."""

    most_results: str
    highest_rated: str
    fewest_results: str


@dataclass
class CompetitorKeywordRanking:
    """競合比較の1キーワード分の結果."""

    keyword: str
    rankings: dict[str, int | None]  # business_id -> 順位（None = 圏外）
    error: str | None = None
