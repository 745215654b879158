import math

import pytest

from cartotaco.sites.ranking import filter_by_substring, percentage_of_max, top_n

SIX_PAIRS = [
    ("a_perc", 0.1),
    ("b_perc", 0.9),
    ("c_perc", 0.5),
    ("d_perc", 0.3),
    ("e_perc", 0.7),
    ("f_perc", 0.2),
]


class TestFilterBySubstring:
    def test_returns_matching_pairs_in_key_order(self):
        record = {"chicken_perc": 0.5, "beef_perc": 0.3, "name": "Test"}
        assert filter_by_substring(record, "perc") == [("chicken_perc", 0.5), ("beef_perc", 0.3)]

    def test_no_matches(self):
        assert filter_by_substring({"name": "Test", "type": "Truck"}, "perc") == []

    def test_empty_and_none(self):
        assert filter_by_substring({}, "perc") == []
        assert filter_by_substring(None, "perc") == []


class TestTopN:
    def test_top_five_by_value(self):
        result = top_n(SIX_PAIRS, 5)
        assert len(result) == 5
        assert result[0] == ("b", 0.9)
        assert result[1] == ("e", 0.7)
        assert all(not key.endswith("_perc") for key, _ in result)

    def test_default_n_is_five(self):
        assert len(top_n(SIX_PAIRS)) == 5

    def test_strips_suffix(self):
        assert top_n([("chicken_perc", 0.8)]) == [("chicken", 0.8)]

    def test_fewer_than_n(self):
        assert len(top_n([("a_perc", 0.5), ("b_perc", 0.3)])) == 2

    def test_ties_keep_input_order(self):
        result = top_n([("x_perc", 0.5), ("y_perc", 0.5), ("z_perc", 0.5)], 2)
        assert result == [("x", 0.5), ("y", 0.5)]

    def test_missing_and_nan_rank_last(self):
        result = top_n([("a", None), ("b", float("nan")), ("c", "oops"), ("d", 0.1)], 5)
        assert result[0] == ("d", 0.1)
        assert [key for key, _ in result[1:]] == ["a", "b", "c"]

    def test_caller_list_untouched(self):
        pairs = list(SIX_PAIRS)
        top_n(pairs, 3)
        assert pairs == SIX_PAIRS

    def test_empty_input(self):
        assert top_n([]) == []


class TestPercentageOfMax:
    def test_scales_against_max(self):
        assert percentage_of_max([50, 100, 25]) == [50, 100, 25]

    def test_all_equal(self):
        assert percentage_of_max([10, 10, 10]) == [100, 100, 100]

    def test_single_element(self):
        assert percentage_of_max([42]) == [100]

    def test_empty_input_raises(self):
        with pytest.raises(ValueError):
            percentage_of_max([])

    def test_zero_max_gives_nan(self):
        assert all(math.isnan(v) for v in percentage_of_max([0, 0]))
