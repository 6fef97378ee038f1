"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Changed(Enum):
    """更新の表示."""

    NO_CHANGE = 0
    CHANGED = 1
    DELETED = 2


@dataclass
class PostalCodeRecord:
    """KEN_ALL の 1 行を表す. 正規化の前後で同じ型を使う."""

    national_local_government_code: str  # 全国地方公共団体コード
    postal_code: str  # 郵便番号 7 桁
    prefecture_kana: str  # 都道府県名カナ（半角）
    city_kana: str  # 市区町村名カナ（半角）
    town_kana: str  # 町域名カナ（半角）
    prefecture: str
    city: str
    town: str
    has_multiple_postal_codes: bool = False  # 一町域が二以上の郵便番号で表される
    numbered_by_koaza: bool = False  # 小字毎に番地が起番されている
    has_chome: bool = False  # 丁目を有する町域
    has_multiple_towns: bool = False  # 一つの郵便番号で二以上の町域を表す
    changed: Changed = Changed.NO_CHANGE
    # 分割行の統合で削除される行. 正規化後には残らない
    integrated: bool = False

    def hash_fields(self) -> tuple[str, ...]:
        """ハッシュ計算に使うフィールドを固定順で返す."""
        return (
            self.national_local_government_code,
            self.postal_code,
            self.prefecture_kana,
            self.city_kana,
            self.town_kana,
            self.prefecture,
            self.city,
            self.town,
        )


@dataclass
class MergedRecord:
    """郵便番号ごとに 1 件にまとめた、住所テーブルに書き込むレコード."""

    postal_code: str
    prefecture: str
    prefecture_kana: str
    city: str
    city_kana: str
    town: str
    town_kana: str
    # このレコードに寄与した団体コード（先頭が代表行）
    national_local_government_codes: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: PostalCodeRecord) -> MergedRecord:
        return cls(
            postal_code=record.postal_code,
            prefecture=record.prefecture,
            prefecture_kana=record.prefecture_kana,
            city=record.city,
            city_kana=record.city_kana,
            town=record.town,
            town_kana=record.town_kana,
            national_local_government_codes=(record.national_local_government_code,),
        )

    def to_item(self) -> dict[str, str]:
        """住所テーブルの 1 行に変換する."""
        return {
            "postal_code": self.postal_code,
            "prefecture": self.prefecture,
            "prefecture_kana": self.prefecture_kana,
            "city": self.city,
            "city_kana": self.city_kana,
            "town": self.town,
            "town_kana": self.town_kana,
        }


@dataclass
class KenAllData:
    """取り込み結果. 団体コード単位のグループとハッシュ値を持つ."""

    all_contents_hash: str
    grouped_records: dict[str, list[PostalCodeRecord]] = field(default_factory=dict)
    code_to_hash: dict[str, str] = field(default_factory=dict)
