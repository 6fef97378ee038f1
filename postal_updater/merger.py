"""複数の団体コードにまたがる郵便番号の統合."""

from __future__ import annotations

import logging
from collections import defaultdict

from postal_updater.models import MergedRecord, PostalCodeRecord

logger = logging.getLogger(__name__)

# 値が食い違ったらまとめて空にするフィールドの組
_FIELD_PAIRS = (
    ("town", "town_kana"),
    ("city", "city_kana"),
    ("prefecture", "prefecture_kana"),
)


def merge_records(records: list[PostalCodeRecord]) -> MergedRecord:
    """同じ郵便番号を持つレコードを 1 件にまとめる.

    先頭を代表とし、他のどれか 1 件とでも値が異なるフィールドは
    カナと一緒に空にする. 一度空にしたフィールドは戻さない.
    """
    base = MergedRecord.from_record(records[0])
    for other in records[1:]:
        for name, kana_name in _FIELD_PAIRS:
            value = getattr(base, name)
            if value and value != getattr(other, name):
                setattr(base, name, "")
                setattr(base, kana_name, "")

    codes = dict.fromkeys(r.national_local_government_code for r in records)
    base.national_local_government_codes = tuple(codes)
    return base


def merge_by_postal_code(
    grouped: dict[str, list[PostalCodeRecord]],
) -> list[MergedRecord]:
    """団体コード別のグループを郵便番号単位に組み替えて統合する."""
    by_postal_code: dict[str, list[PostalCodeRecord]] = defaultdict(list)
    for code in sorted(grouped):
        for record in grouped[code]:
            by_postal_code[record.postal_code].append(record)

    result = [merge_records(records) for records in by_postal_code.values()]
    shared = sum(1 for records in by_postal_code.values() if len(records) > 1)
    logger.info("郵便番号で統合: %d 件（複数レコードの統合 %d 件）", len(result), shared)
    return result
