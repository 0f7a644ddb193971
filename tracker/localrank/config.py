"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Google Places ---
# 未設定でも import は通す。検索時に ConfigurationError を送出する
GOOGLE_PLACES_API_KEY: str | None = os.getenv("GOOGLE_PLACES_API_KEY")
PLACES_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PROVIDER_NAME = "Google Places API"

# --- リクエスト設定 ---
REQUEST_TIMEOUT = 15  # 秒

# リクエスト間隔（秒）。バッチ処理は必ず逐次実行し、この間隔を空ける
BATCH_LOCATION_INTERVAL = float(os.getenv("BATCH_LOCATION_INTERVAL", "0.5"))
COMPETITOR_INTERVAL = float(os.getenv("COMPETITOR_INTERVAL", "0.3"))
KEYWORD_ANALYSIS_INTERVAL = float(os.getenv("KEYWORD_ANALYSIS_INTERVAL", "0.2"))

# --- 競合比較 ---
MIN_COMPETITORS = 2
MAX_COMPETITORS = 5

# --- 順位履歴 ---
HISTORY_MAX_RECORDS = 100
HISTORY_STORAGE_KEY = "business-ranking-history"
HISTORY_FORMAT_VERSION = 1
HISTORY_BACKEND = os.getenv("HISTORY_BACKEND", "file")  # "file" or "supabase"
HISTORY_DIR = Path(os.getenv("HISTORY_DIR", str(_PROJECT_ROOT / "data")))

# --- Supabase（HISTORY_BACKEND=supabase の場合のみ使用） ---
SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
SUPABASE_SECRET_KEY: str | None = os.getenv("SUPABASE_SECRET_KEY")
SUPABASE_SCHEMA = os.getenv("SUPABASE_SCHEMA", "public")
SUPABASE_KV_TABLE = os.getenv("SUPABASE_KV_TABLE", "kv_store")

# --- ログ ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)
