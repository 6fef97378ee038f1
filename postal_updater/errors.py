"""例外定義.

致命的なエラーはすべて UpdateError のサブクラスとして送出し、実行を中断する。
文字コードの不正（置換で復旧）と列数不足の行（スキップ）は例外にしない。
"""


class UpdateError(Exception):
    """郵便番号更新処理の基底例外."""


class ConfigError(UpdateError):
    """必須の設定値が不足している."""


class NetworkError(UpdateError):
    """ダウンロードまたはストア読み込みの失敗."""


class ArchiveError(UpdateError):
    """Zip が壊れている、またはファイル数が 1 でない."""


class SchemaError(UpdateError):
    """更新の表示に未知の値が入っている（元データの形式変更を示す）."""

    def __init__(self, value: str, line_number: int) -> None:
        super().__init__(f"未知の更新の表示: {value!r} (行 {line_number})")
        self.value = value
        self.line_number = line_number


class StoreWriteError(UpdateError):
    """バッチ書き込みの失敗."""
