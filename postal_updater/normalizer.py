"""町域名の正規化と分割行の統合.

KEN_ALL は町域名が長い場合に括弧書きの途中で行を分割する:

    "大通西（１～１９丁目" / "２０～２８丁目" / "２９丁目）"

先頭行だけを残し、括弧より後ろを落として "大通西" とする。
行の出現順に依存するため、ソート前のファイル順で処理すること。
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from postal_updater.models import PostalCodeRecord

logger = logging.getLogger(__name__)

# 同じ行の最初の括弧書き（最短一致）
_ZENKAKU_BRACKET = re.compile(r"（.*?）")
_HANKAKU_BRACKET = re.compile(r"\(.*?\)")

_NO_LISTING = "以下に掲載がない場合"
_FOLLOWED_BY_BANCHI = re.compile(r"の次に番地が(?:くる|来る)場合")
_ICHIEN = "一円"


class MergeState(Enum):
    """分割行の統合状態."""

    NORMAL = "normal"
    MERGING = "merging"


def is_placeholder_town(town: str) -> bool:
    """住所として意味を持たない町域名か判定する.

    「一円」は単独なら地名（例: 滋賀県犬上郡多賀町一円）なので残す。
    """
    if town == _NO_LISTING:
        return True
    if _FOLLOWED_BY_BANCHI.search(town):
        return True
    return town != _ICHIEN and _ICHIEN in town


def _strip_annotation(record: PostalCodeRecord) -> None:
    if is_placeholder_town(record.town):
        record.town = ""
        record.town_kana = ""
        return
    record.town = _ZENKAKU_BRACKET.sub("", record.town, count=1)
    record.town_kana = _HANKAKU_BRACKET.sub("", record.town_kana, count=1)


def step(state: MergeState, record: PostalCodeRecord) -> MergeState:
    """1 行分の遷移. record を書き換え、次の状態を返す."""
    if state is MergeState.MERGING:
        # 継続行は代表行に含まれるので削除対象
        record.integrated = True
        if "）" in record.town:
            return MergeState.NORMAL
        return MergeState.MERGING

    _strip_annotation(record)

    start = record.town.find("（")
    if start < 0:
        return MergeState.NORMAL

    # 閉じカッコがこの行にない場合は、次の行以降に続いている
    unclosed = "）" not in record.town[start:]
    record.town = record.town[:start]
    kana_start = record.town_kana.find("(")
    if kana_start >= 0:
        record.town_kana = record.town_kana[:kana_start]

    return MergeState.MERGING if unclosed else MergeState.NORMAL


def normalize_records(records: list[PostalCodeRecord]) -> list[PostalCodeRecord]:
    """ファイル順のレコードを正規化し、統合された継続行を除いたリストを返す."""
    state = MergeState.NORMAL
    for record in records:
        state = step(state, record)

    if state is MergeState.MERGING:
        logger.warning("閉じカッコが見つからないままデータが終了しました")

    result = [r for r in records if not r.integrated]
    logger.info("正規化: %d 行 → %d 行", len(records), len(result))
    return result
