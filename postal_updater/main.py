"""郵便番号データ更新 — メインエントリーポイント.

処理フロー:
  1. ken_all.zip を取得・パース・正規化し、団体コードごとのハッシュ値を計算
  2. 同じ郵便番号を持つレコードを統合
  3. データ全体のハッシュ値を比較し、変更がなければ終了
  4. 変更のあった団体コードの住所を書き込み
  5. ハッシュ値を書き込み
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime

from postal_updater.config import LOG_DIR
from postal_updater.ken_all import load_ken_all
from postal_updater.merger import merge_by_postal_code
from postal_updater.sync import HashCache, sync_changes


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(exist_ok=True)
    log_file = LOG_DIR / f"update_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def run() -> dict:
    """メイン処理.

    Returns:
        {"code": 0, "count": 書き込んだ住所の件数, "message": str}
    """
    logger = logging.getLogger(__name__)
    logger.info("=== 郵便番号データ更新 開始 ===")
    start_time = time.time()

    data = load_ken_all()
    records = merge_by_postal_code(data.grouped_records)

    cache = HashCache()
    count = sync_changes(data, records, cache)

    elapsed = time.time() - start_time
    logger.info("=== 郵便番号データ更新 完了 ===")
    logger.info("書き込み: %d 件, ハッシュ取得: %d 件, 所要時間: %.1f 秒",
                count, len(cache), elapsed)
    return {"code": 0, "count": count, "message": "updated" if count else "no changes"}


def main() -> None:
    setup_logging()
    try:
        result = run()
    except Exception:
        logging.getLogger(__name__).exception("郵便番号データ更新に失敗しました")
        raise
    print(json.dumps(result, ensure_ascii=False))


if __name__ == "__main__":
    main()
