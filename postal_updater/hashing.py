"""ソート・グルーピングとハッシュ計算."""

from __future__ import annotations

import base64
import hashlib
from collections import defaultdict

from postal_updater.models import PostalCodeRecord


def sort_records(records: list[PostalCodeRecord]) -> list[PostalCodeRecord]:
    """団体コード、郵便番号の順にソートする（ハッシュ値を安定させるため）.

    同じ郵便番号に複数の町域がある場合は、残りのフィールドで順序を決める.
    """
    return sorted(records, key=lambda r: r.hash_fields())


def group_by_code(records: list[PostalCodeRecord]) -> dict[str, list[PostalCodeRecord]]:
    """ソート済みレコードを団体コードでグルーピングする. グループ内の順序は保つ."""
    grouped: dict[str, list[PostalCodeRecord]] = defaultdict(list)
    for record in records:
        grouped[record.national_local_government_code].append(record)
    return dict(grouped)


def encode_digest(digest: bytes) -> str:
    """ダイジェストをパディングなしの base64 文字列にする."""
    return base64.b64encode(digest).decode("ascii").rstrip("=")


def _update(hasher, record: PostalCodeRecord) -> None:
    for value in record.hash_fields():
        hasher.update(value.encode("utf-8"))


def compute_hashes(
    grouped: dict[str, list[PostalCodeRecord]],
) -> tuple[str, dict[str, str]]:
    """団体コードごとのハッシュ値と、データ全体のハッシュ値を計算する.

    Returns:
        (データ全体のハッシュ値, {団体コード: ハッシュ値})
    """
    all_contents = hashlib.sha256()
    code_to_hash: dict[str, str] = {}

    # 全体ハッシュはグループの並びにも依存するので、団体コード順に固定する
    for code in sorted(grouped):
        group_hasher = hashlib.sha256()
        for record in grouped[code]:
            _update(group_hasher, record)
            _update(all_contents, record)
        code_to_hash[code] = encode_digest(group_hasher.digest())

    return encode_digest(all_contents.digest()), code_to_hash
