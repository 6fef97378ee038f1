"""郵便番号による住所検索（読み取り専用）."""

from __future__ import annotations

import logging

from postal_updater.db import get_address

logger = logging.getLogger(__name__)

# 全角英数記号 (！〜～) を半角に、各種空白を半角スペースにする
_TO_HANKAKU = {code: code - 0xFF01 + 0x21 for code in range(0xFF01, 0xFF5F)}
_TO_HANKAKU.update({code: " " for code in range(0x2002, 0x200C)})
_TO_HANKAKU.update({0x3000: " ", 0xFEFF: " "})


def normalize_postal_code(value: str) -> str:
    """入力された郵便番号を正規化する. 例: "１２３－４５６７" → "1234567"."""
    return value.translate(_TO_HANKAKU).replace("-", "")


def find_address(value: str) -> dict:
    """郵便番号で住所を検索する.

    Returns:
        {"code": 正規化した郵便番号, "data": [住所] または []}
    """
    postal_code = normalize_postal_code(value)
    logger.info("住所検索: postal_code=%s", postal_code)

    address = get_address(postal_code)
    return {
        "code": postal_code,
        "data": [address] if address else [],
    }
