"""ローカル店舗検索順位トラッカー — メインエントリーポイント.

サブコマンド:
  search   キーワード×地域で検索し、履歴に保存して前回との順位変動を表示
  batch    1 キーワードを複数地域で検索
  compete  検索上位の店舗同士を複数キーワードで比較
  keywords 店舗の関連キーワードごとの順位を調べる
  history  最近の検索を表示
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime

from localrank.batch import batch_location_search, compare_competitors, summarize_locations
from localrank.config import LOG_DIR, MAX_COMPETITORS
from localrank.errors import TrackerError
from localrank.history import RankingHistory
from localrank.keywords import analyze_business_keywords
from localrank.places import find_businesses
from localrank.storage import create_blob_store

logger = logging.getLogger(__name__)

_TREND_MARKS = {"up": "↑", "down": "↓", "same": "→", "new": "NEW"}


def setup_logging() -> None:
    """ロギングの初期設定."""
    log_file = LOG_DIR / f"tracker_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def cmd_search(args: argparse.Namespace) -> None:
    businesses = find_businesses(args.keyword, args.location)
    logger.info("検索結果: %d 件", len(businesses))

    history = RankingHistory(create_blob_store())
    snapshot = history.save(args.keyword, args.location, businesses)
    trends = {}
    if snapshot is not None:
        trends = {c.business_id: c for c in history.comparisons(args.keyword, args.location)}

    for b in businesses:
        c = trends.get(b.id)
        if c is None:
            mark = ""
        elif c.trend == "new":
            mark = _TREND_MARKS["new"]
        else:
            mark = f"{_TREND_MARKS[c.trend]}{abs(c.rank_change) or ''}"
        logger.info(
            "  #%d %s ★%.1f (%d 件) %s",
            b.rank, b.name, b.rating, b.total_ratings, mark,
        )


def cmd_batch(args: argparse.Namespace) -> None:
    results = batch_location_search(args.keyword, args.locations)
    for r in results:
        if r.error:
            logger.info("[%s] エラー: %s", r.location, r.error)
            continue
        top = r.top_business
        logger.info(
            "[%s] %d 件, 平均 ★%.1f, 営業中 %d 件, 1位: %s",
            r.location, len(r.businesses), r.average_rating, r.open_count,
            top.name if top else "-",
        )

    summary = summarize_locations(results)
    if summary:
        logger.info("件数最多: %s", summary.most_results)
        logger.info("平均評価最高: %s", summary.highest_rated)
        logger.info("件数最少: %s", summary.fewest_results)


def cmd_compete(args: argparse.Namespace) -> None:
    businesses = find_businesses(args.keyword, args.location)
    if args.select:
        selected = [b for b in businesses if b.id in args.select or b.name in args.select]
    else:
        selected = businesses[: args.top]

    results = compare_competitors(selected, args.compare, args.location)
    for r in results:
        if r.error:
            logger.info("[%s] エラー: %s", r.keyword, r.error)
            continue
        for b in selected:
            rank = r.rankings.get(b.id)
            logger.info("[%s] %s → %s", r.keyword, b.name, f"{rank}位" if rank else "圏外")


def cmd_keywords(args: argparse.Namespace) -> None:
    results = analyze_business_keywords(args.name, args.types, args.location)
    for r in results:
        if r.error:
            status = f"エラー ({r.error})"
        else:
            status = f"{r.rank}位" if r.found else "圏外"
        logger.info("  %s → %s", r.keyword, status)


def cmd_history(args: argparse.Namespace) -> None:
    history = RankingHistory(create_blob_store())
    searches = history.recent_searches(args.limit)
    if not searches:
        logger.info("検索履歴がありません")
        return
    for s in searches:
        searched_at = datetime.fromtimestamp(s.timestamp / 1000).isoformat(timespec="seconds")
        logger.info("%s  %s / %s  (%d 件)", searched_at, s.keyword, s.location, len(s.businesses))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="localrank", description="ローカル店舗の検索順位トラッカー")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="キーワード×地域で検索")
    p.add_argument("keyword")
    p.add_argument("location")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("batch", help="1 キーワードを複数地域で検索")
    p.add_argument("keyword")
    p.add_argument("locations", nargs="+")
    p.set_defaults(func=cmd_batch)

    p = sub.add_parser("compete", help="競合店舗の順位をキーワードごとに比較")
    p.add_argument("keyword", help="競合を選ぶための検索キーワード")
    p.add_argument("location")
    p.add_argument("-c", "--compare", action="append", required=True, help="比較キーワード（複数可）")
    p.add_argument("-s", "--select", action="append", help="比較する店舗の ID または店舗名（複数可）")
    p.add_argument("--top", type=int, default=3, choices=range(2, MAX_COMPETITORS + 1),
                   help="--select 未指定時に上位何件を比較するか")
    p.set_defaults(func=cmd_compete)

    p = sub.add_parser("keywords", help="店舗の関連キーワードごとの順位")
    p.add_argument("name")
    p.add_argument("location")
    p.add_argument("-t", "--type", dest="types", action="append", default=[],
                   help="Places の types（複数可）")
    p.set_defaults(func=cmd_keywords)

    p = sub.add_parser("history", help="最近の検索を表示")
    p.add_argument("--limit", type=int, default=10)
    p.set_defaults(func=cmd_history)

    return parser


def run(argv: list[str] | None = None) -> int:
    """メイン処理."""
    args = build_parser().parse_args(argv)
    setup_logging()
    start_time = time.time()

    try:
        args.func(args)
    except TrackerError as e:
        logger.error("%s", e)
        return 1

    logger.info("所要時間: %.1f 秒", time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(run())
