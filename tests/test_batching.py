import pytest

from i18n_translator.core.batching import BatchSplitter


class TestBatchSplitter:

    def test_split_preserves_order(self):
        chunks = BatchSplitter(100).split(list(range(175)))

        assert [len(chunk) for chunk in chunks] == [100, 75]
        assert BatchSplitter.merge(chunks) == list(range(175))

    def test_exact_multiple(self):
        assert BatchSplitter(2).split(["a", "b", "c", "d"]) == [["a", "b"], ["c", "d"]]

    def test_smaller_than_limit(self):
        assert BatchSplitter(50).split(["a"]) == [["a"]]

    def test_empty_input(self):
        assert BatchSplitter(10).split([]) == []
        assert BatchSplitter.merge([]) == []

    @pytest.mark.parametrize("limit", [0, -5])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValueError):
            BatchSplitter(limit)
