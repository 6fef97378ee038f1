"""変更検知とバッチ書き込み.

前回保存したハッシュ値と比較し、変更のあった団体コードに属する住所だけを
書き込む. 書き込みは BATCH_SIZE 件ずつで、途中で失敗しても書き込み済みの
バッチは戻さない（次回実行時にハッシュ値の再計算で差分として再検出される）。
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from postal_updater.config import BATCH_SIZE, HASH_ITEM_KEY
from postal_updater.db import get_stored_hash, put_addresses, put_hashes
from postal_updater.models import KenAllData, MergedRecord

logger = logging.getLogger(__name__)


class HashCache:
    """1 回の実行の間だけ使う、保存済みハッシュ値のキャッシュ."""

    def __init__(self, fetch: Callable[[str], str | None] | None = None) -> None:
        self._fetch = fetch or get_stored_hash
        self._cache: dict[str, str] = {}

    def is_changed(self, item_id: str, hash_value: str) -> bool:
        """計算したハッシュ値が保存済みの値と異なるか.

        未登録の場合は変更ありとし、空文字をキャッシュして再取得しない.
        """
        if item_id not in self._cache:
            stored = self._fetch(item_id)
            self._cache[item_id] = stored if stored is not None else ""
        return self._cache[item_id] != hash_value

    def __len__(self) -> int:
        return len(self._cache)


class BatchWriter:
    """書き込みを貯めて batch_size 件ごとに flush する."""

    def __init__(self, flush_func: Callable[[list[dict]], None], batch_size: int = BATCH_SIZE) -> None:
        self._flush_func = flush_func
        self.batch_size = batch_size
        self._pending: list[dict] = []
        self.written = 0

    def add(self, item: dict) -> None:
        self._pending.append(item)
        if len(self._pending) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """残っている分を書き込む. 失敗時の例外はそのまま送出する."""
        if not self._pending:
            return
        self._flush_func(list(self._pending))
        self.written += len(self._pending)
        self._pending.clear()


def detect_changed_codes(data: KenAllData, cache: HashCache) -> set[str]:
    """ハッシュ値が変わった団体コードを返す."""
    return {
        code
        for code, hash_value in sorted(data.code_to_hash.items())
        if cache.is_changed(code, hash_value)
    }


def write_addresses(records: Iterable[MergedRecord], changed_codes: set[str]) -> int:
    """変更のあった団体コードに属する住所を書き込み、件数を返す."""
    writer = BatchWriter(put_addresses)
    for record in records:
        if any(code in changed_codes for code in record.national_local_government_codes):
            writer.add(record.to_item())
    writer.flush()
    return writer.written


def write_hashes(data: KenAllData, changed_codes: set[str]) -> None:
    """変更のあった団体コードのハッシュ値と、全体のハッシュ値を書き込む.

    全体のハッシュ値は最後に書く. 途中で失敗した場合は次回も全体の比較で
    変更ありとなり、団体コードごとの比較がやり直される.
    """
    writer = BatchWriter(put_hashes)
    for code in sorted(changed_codes):
        writer.add({"id": code, "hash": data.code_to_hash[code]})
    writer.add({"id": HASH_ITEM_KEY, "hash": data.all_contents_hash})
    writer.flush()


def sync_changes(
    data: KenAllData,
    records: list[MergedRecord],
    cache: HashCache | None = None,
) -> int:
    """変更のあった住所とハッシュ値をストアに反映し、書き込んだ住所の件数を返す."""
    if cache is None:
        cache = HashCache()

    if not cache.is_changed(HASH_ITEM_KEY, data.all_contents_hash):
        logger.info("データ全体に変更がないため書き込みをスキップします")
        return 0

    changed_codes = detect_changed_codes(data, cache)
    logger.info("変更のあった団体コード: %d / %d 件", len(changed_codes), len(data.code_to_hash))

    count = write_addresses(records, changed_codes)
    logger.info("住所 書き込み完了: %d 件", count)

    write_hashes(data, changed_codes)
    logger.info("ハッシュ値 書き込み完了: %d 件", len(changed_codes) + 1)
    return count
