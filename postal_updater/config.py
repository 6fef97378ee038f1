"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
# 接続情報はクライアント生成時に検証する（import 時には落とさない）
SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
SUPABASE_SECRET_KEY: str = os.environ.get("SUPABASE_SECRET_KEY", "")
SUPABASE_SCHEMA: str = os.environ.get("SUPABASE_SCHEMA", "public")

# --- テーブル ---
POSTAL_CODE_TABLE: str = os.environ.get("POSTAL_CODE_TABLE", "postal_codes")
HASH_TABLE: str = os.environ.get("HASH_TABLE", "hash_table")

# --- 日本郵便 郵便番号データ ---
KEN_ALL_URL: str = os.environ.get(
    "KEN_ALL_URL",
    "https://www.post.japanpost.jp/zipcode/dl/kogaki/zip/ken_all.zip",
)
SOURCE_ENCODING = "cp932"
MIN_COLUMNS = 15  # 変更理由（14列目）まで

# --- リクエスト設定 ---
REQUEST_TIMEOUT = 60  # 秒

# --- 書き込み ---
BATCH_SIZE = 25  # 1 リクエストあたりの上限件数
# データ全体のハッシュ値を保存するキー（数字のみの団体コードとは衝突しない）
HASH_ITEM_KEY = "#hash#"

# --- ログ ---
LOG_DIR = _PROJECT_ROOT / "logs"
