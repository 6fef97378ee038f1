"""日本郵便 KEN_ALL.ZIP の取得・解凍・パース.

処理フロー:
  1. ken_all.zip をダウンロード
  2. Zip 内の唯一のファイルを取り出し、Shift_JIS (cp932) から変換
  3. CSV をパースして PostalCodeRecord のリストにする
  4. 町域名の正規化と分割行の統合（ファイル順）
  5. ソート・グルーピングしてハッシュ値を計算
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile

import requests

from postal_updater.config import KEN_ALL_URL, MIN_COLUMNS, REQUEST_TIMEOUT, SOURCE_ENCODING
from postal_updater.errors import ArchiveError, NetworkError, SchemaError
from postal_updater.hashing import compute_hashes, group_by_code, sort_records
from postal_updater.models import Changed, KenAllData, PostalCodeRecord
from postal_updater.normalizer import normalize_records

logger = logging.getLogger(__name__)


def download_ken_all_zip(url: str = KEN_ALL_URL) -> bytes:
    """Zip ファイルをダウンロードする.

    Raises:
        NetworkError: 通信エラーまたは 200 以外のレスポンス
    """
    try:
        resp = requests.get(url, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error("ken_all.zip 取得失敗: url=%s, error=%s", url, e)
        raise NetworkError(f"ken_all.zip の取得に失敗しました: {e}") from e

    logger.info("ken_all.zip 取得: %d bytes", len(resp.content))
    return resp.content


def extract_text(raw: bytes, encoding: str = SOURCE_ENCODING) -> str:
    """Zip に 1 つだけ含まれるファイルを取り出して文字列にする.

    変換できないバイト列は置換文字にする（エラーにしない）。
    """
    try:
        with zipfile.ZipFile(io.BytesIO(raw)) as zf:
            names = zf.namelist()
            if len(names) != 1:
                raise ArchiveError(f"Zip 内のファイル数が不正です: {len(names)}")
            contents = zf.read(names[0])
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Zip ファイルを開けません: {e}") from e

    return contents.decode(encoding, errors="replace")


def _parse_changed(value: str, line_number: int) -> Changed:
    try:
        return Changed(int(value))
    except ValueError as e:
        raise SchemaError(value, line_number) from e


def parse_row(row: list[str], line_number: int) -> PostalCodeRecord | None:
    """CSV の 1 行を PostalCodeRecord にする. 列数が足りなければ None."""
    if len(row) < MIN_COLUMNS:
        return None

    return PostalCodeRecord(
        national_local_government_code=row[0],
        postal_code=row[2],
        prefecture_kana=row[3],
        city_kana=row[4],
        town_kana=row[5],
        prefecture=row[6],
        city=row[7],
        town=row[8],
        has_multiple_postal_codes=row[9] == "1",
        numbered_by_koaza=row[10] == "1",
        has_chome=row[11] == "1",
        has_multiple_towns=row[12] == "1",
        changed=_parse_changed(row[13], line_number),
        # row[14] 変更理由は使用しない
    )


def parse_records(text: str) -> list[PostalCodeRecord]:
    """CSV 全体をパースする. ファイルの行順を保つ.

    Raises:
        SchemaError: 更新の表示が 0/1/2 以外
    """
    records: list[PostalCodeRecord] = []
    skipped = 0
    for line_number, row in enumerate(csv.reader(io.StringIO(text)), start=1):
        record = parse_row(row, line_number)
        if record is None:
            skipped += 1
            logger.debug("列数不足のためスキップ: 行 %d (%d 列)", line_number, len(row))
            continue
        records.append(record)

    if skipped:
        logger.warning("列数不足でスキップした行: %d 件", skipped)
    logger.info("パース: %d 件", len(records))
    return records


def build_ken_all_data(records: list[PostalCodeRecord]) -> KenAllData:
    """ファイル順のレコードから、正規化済みグループとハッシュ値を作る."""
    normalized = normalize_records(records)
    grouped = group_by_code(sort_records(normalized))
    all_contents_hash, code_to_hash = compute_hashes(grouped)
    logger.info("ハッシュ計算: 団体コード %d 件", len(code_to_hash))
    return KenAllData(
        all_contents_hash=all_contents_hash,
        grouped_records=grouped,
        code_to_hash=code_to_hash,
    )


def load_ken_all(url: str = KEN_ALL_URL) -> KenAllData:
    """ダウンロードからハッシュ計算までをまとめて行う."""
    raw = download_ken_all_zip(url)
    text = extract_text(raw)
    return build_ken_all_data(parse_records(text))
