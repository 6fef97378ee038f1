"""sync モジュールのユニットテスト."""

from unittest.mock import MagicMock, patch

import pytest

from postal_updater.config import HASH_ITEM_KEY
from postal_updater.errors import StoreWriteError
from postal_updater.models import KenAllData, MergedRecord
from postal_updater.sync import BatchWriter, HashCache, sync_changes


def _merged(postal_code: str, *codes: str) -> MergedRecord:
    return MergedRecord(
        postal_code=postal_code,
        prefecture="東京都",
        prefecture_kana="ﾄｳｷｮｳﾄ",
        city="千代田区",
        city_kana="ﾁﾖﾀﾞｸ",
        town="千代田",
        town_kana="ﾁﾖﾀﾞ",
        national_local_government_codes=codes,
    )


def _data(code_to_hash: dict[str, str], all_hash: str = "ALL") -> KenAllData:
    return KenAllData(all_contents_hash=all_hash, code_to_hash=code_to_hash)


class FakeStore:
    """住所テーブルとハッシュテーブルの代わり."""

    def __init__(self, hashes: dict[str, str] | None = None) -> None:
        self.hashes = dict(hashes or {})
        self.addresses: dict[str, dict] = {}
        self.address_batches: list[int] = []
        self.hash_batches: list[list[dict]] = []

    def get_hash(self, item_id: str) -> str | None:
        return self.hashes.get(item_id)

    def put_addresses(self, items: list[dict]) -> None:
        self.address_batches.append(len(items))
        for item in items:
            self.addresses[item["postal_code"]] = item

    def put_hashes(self, items: list[dict]) -> None:
        self.hash_batches.append(items)
        for item in items:
            self.hashes[item["id"]] = item["hash"]


class TestHashCache:
    """HashCache のテスト."""

    def test_fetch_once(self):
        fetch = MagicMock(return_value="abc")
        cache = HashCache(fetch)

        assert cache.is_changed("13101", "abc") is False
        assert cache.is_changed("13101", "xyz") is True
        fetch.assert_called_once_with("13101")

    def test_missing_is_changed(self):
        fetch = MagicMock(return_value=None)
        cache = HashCache(fetch)

        assert cache.is_changed("13101", "abc") is True
        assert cache.is_changed("13101", "abc") is True
        fetch.assert_called_once_with("13101")
        assert len(cache) == 1

    def test_separate_runs_are_isolated(self):
        fetch = MagicMock(return_value="abc")
        HashCache(fetch).is_changed("13101", "abc")
        HashCache(fetch).is_changed("13101", "abc")

        assert fetch.call_count == 2


class TestBatchWriter:
    """BatchWriter のテスト."""

    def test_exactly_one_batch(self):
        flush = MagicMock()
        writer = BatchWriter(flush)
        for i in range(25):
            writer.add({"i": i})
        writer.flush()

        assert flush.call_count == 1
        assert len(flush.call_args.args[0]) == 25
        assert writer.written == 25

    def test_remainder_flushed(self):
        flush = MagicMock()
        writer = BatchWriter(flush)
        for i in range(26):
            writer.add({"i": i})
        writer.flush()

        sizes = [len(call.args[0]) for call in flush.call_args_list]
        assert sizes == [25, 1]
        assert writer.written == 26

    def test_empty_flush(self):
        flush = MagicMock()
        BatchWriter(flush).flush()

        flush.assert_not_called()

    def test_failure_propagates(self):
        flush = MagicMock(side_effect=StoreWriteError("boom"))
        writer = BatchWriter(flush, batch_size=2)
        writer.add({"i": 0})

        with pytest.raises(StoreWriteError):
            writer.add({"i": 1})
        assert writer.written == 0


class TestSyncChanges:
    """sync_changes のテスト."""

    def _run(self, store: FakeStore, data: KenAllData, records: list[MergedRecord]) -> int:
        with patch("postal_updater.sync.put_addresses", store.put_addresses), \
                patch("postal_updater.sync.put_hashes", store.put_hashes):
            return sync_changes(data, records, HashCache(store.get_hash))

    def test_first_run_writes_everything(self):
        store = FakeStore()
        data = _data({"13101": "h1", "13102": "h2"})
        records = [_merged("1000001", "13101"), _merged("1030001", "13102")]

        count = self._run(store, data, records)

        assert count == 2
        assert set(store.addresses) == {"1000001", "1030001"}
        assert store.hashes == {HASH_ITEM_KEY: "ALL", "13101": "h1", "13102": "h2"}

    def test_sentinel_written_last(self):
        store = FakeStore()
        self._run(store, _data({"13101": "h1"}), [_merged("1000001", "13101")])

        assert store.hash_batches[-1][-1] == {"id": HASH_ITEM_KEY, "hash": "ALL"}

    def test_second_run_writes_nothing(self):
        store = FakeStore()
        data = _data({"13101": "h1"})
        records = [_merged("1000001", "13101")]

        self._run(store, data, records)
        count = self._run(store, data, records)

        assert count == 0
        assert store.address_batches == [1]

    def test_skip_when_all_unchanged(self):
        store = FakeStore({HASH_ITEM_KEY: "ALL"})
        store.get_hash = MagicMock(side_effect=store.get_hash)

        count = self._run(store, _data({"13101": "h1"}), [_merged("1000001", "13101")])

        assert count == 0
        store.get_hash.assert_called_once_with(HASH_ITEM_KEY)
        assert store.address_batches == []
        assert store.hash_batches == []

    def test_only_changed_groups_written(self):
        store = FakeStore({HASH_ITEM_KEY: "OLD", "13101": "h1", "13102": "old"})
        data = _data({"13101": "h1", "13102": "h2"})
        records = [_merged("1000001", "13101"), _merged("1030001", "13102")]

        count = self._run(store, data, records)

        assert count == 1
        assert set(store.addresses) == {"1030001"}
        written_ids = [item["id"] for batch in store.hash_batches for item in batch]
        assert written_ids == ["13102", HASH_ITEM_KEY]

    def test_shared_postal_code_follows_any_group(self):
        """複数の団体コードにまたがる郵便番号は、どれか 1 つが変われば書き込むこと."""
        store = FakeStore({HASH_ITEM_KEY: "OLD", "13101": "h1", "13102": "old"})
        data = _data({"13101": "h1", "13102": "h2"})

        count = self._run(store, data, [_merged("1000001", "13101", "13102")])

        assert count == 1

    def test_batches_of_25(self):
        store = FakeStore()
        records = [_merged(f"{i:07d}", "13101") for i in range(26)]

        count = self._run(store, _data({"13101": "h1"}), records)

        assert count == 26
        assert store.address_batches == [25, 1]

    def test_address_failure_skips_hashes(self):
        """住所の書き込みに失敗したらハッシュ値は書き込まないこと."""
        store = FakeStore()
        calls = []

        def fail_second(items):
            calls.append(len(items))
            if len(calls) == 2:
                raise StoreWriteError("boom")

        records = [_merged(f"{i:07d}", "13101") for i in range(30)]
        with patch("postal_updater.sync.put_addresses", fail_second), \
                patch("postal_updater.sync.put_hashes", store.put_hashes):
            with pytest.raises(StoreWriteError):
                sync_changes(_data({"13101": "h1"}), records, HashCache(store.get_hash))

        assert calls == [25, 5]
        assert store.hashes == {}
