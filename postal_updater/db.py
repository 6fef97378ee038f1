"""Supabase データベース操作モジュール.

住所テーブル（キー: postal_code）とハッシュテーブル（キー: id）を
キーバリューストアとして扱う. 書き込みはすべて upsert.
"""

from __future__ import annotations

import logging

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from postal_updater import config
from postal_updater.errors import ConfigError, NetworkError, StoreWriteError

logger = logging.getLogger(__name__)

_client: Client | None = None


def _get_client() -> Client:
    """Supabase クライアントを初回利用時に生成する."""
    global _client
    if _client is None:
        if not config.SUPABASE_URL or not config.SUPABASE_SECRET_KEY:
            raise ConfigError("SUPABASE_URL / SUPABASE_SECRET_KEY が設定されていません")
        _client = create_client(config.SUPABASE_URL, config.SUPABASE_SECRET_KEY)
    return _client


def _table(name: str):
    """設定されたスキーマのテーブルを参照する."""
    return _get_client().schema(config.SUPABASE_SCHEMA).table(name)


def get_stored_hash(item_id: str) -> str | None:
    """ハッシュテーブルから保存済みのハッシュ値を取得する. 未登録なら None."""
    try:
        resp = (
            _table(config.HASH_TABLE)
            .select("hash")
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        logger.error("ハッシュ値取得失敗: id=%s, error=%s", item_id, e)
        raise NetworkError(f"ハッシュ値の取得に失敗しました: id={item_id}") from e

    if not resp.data:
        return None
    return resp.data[0]["hash"]


def get_address(postal_code: str) -> dict | None:
    """住所テーブルから郵便番号で 1 件取得する."""
    try:
        resp = (
            _table(config.POSTAL_CODE_TABLE)
            .select("prefecture, city, town, prefecture_kana, city_kana, town_kana")
            .eq("postal_code", postal_code)
            .limit(1)
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        logger.error("住所取得失敗: postal_code=%s, error=%s", postal_code, e)
        raise NetworkError(f"住所の取得に失敗しました: postal_code={postal_code}") from e

    if not resp.data:
        return None
    return resp.data[0]


def _upsert(table_name: str, items: list[dict]) -> None:
    if not items:
        return
    try:
        _table(table_name).upsert(items).execute()
    except (APIError, httpx.HTTPError) as e:
        logger.error("バッチ書き込み失敗: table=%s, 件数=%d, error=%s", table_name, len(items), e)
        raise StoreWriteError(f"{table_name} への書き込みに失敗しました") from e
    logger.info("%s に %d 件書き込み", table_name, len(items))


def put_addresses(items: list[dict]) -> None:
    """住所レコードを一括 upsert する.

    Args:
        items: [{"postal_code", "prefecture", "prefecture_kana", "city",
                 "city_kana", "town", "town_kana"}, ...]
    """
    _upsert(config.POSTAL_CODE_TABLE, items)


def put_hashes(items: list[dict]) -> None:
    """ハッシュ値を一括 upsert する.

    Args:
        items: [{"id", "hash"}, ...]
    """
    _upsert(config.HASH_TABLE, items)
