"""Tests for the columnar result tables."""

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from kinscan import (
    MismatchRecord,
    MismatchResult,
    PairwiseRecord,
    PairwiseResult,
    ScanStats,
)


@pytest.mark.tier0
class TestPairwiseResult:
    def test_from_zero_based_shifts_indices(self):
        result = PairwiseResult.from_zero_based(
            np.arange(3), [0.5, 1.5, 2.5], [1, 2, 3], target_row=4
        )
        assert_array_equal(result.ind, [1, 2, 3])
        assert result.target == 5
        assert result.value.dtype == np.float64
        assert result.num_loc.dtype == np.int64

    def test_columns_read_only(self):
        result = PairwiseResult.from_zero_based(np.arange(2), [0.0, 1.0], [1, 1], 0)
        with pytest.raises(ValueError):
            result.value[0] = 9.0

    def test_iteration_yields_records(self):
        result = PairwiseResult.from_zero_based(np.arange(2), [0.5, 1.5], [2, 1], 0)
        records = result.records()
        assert records == [PairwiseRecord(1, 0.5, 2), PairwiseRecord(2, 1.5, 1)]
        assert records[1].value == 1.5
        assert len(result) == 2

    def test_empty(self):
        result = PairwiseResult.from_zero_based(np.arange(0), [], [], 0)
        assert len(result) == 0
        assert result.records() == []


@pytest.mark.tier0
class TestMismatchResult:
    def _result(self):
        return MismatchResult.from_zero_based(
            [0, 0, 1],
            [1, 2, 2],
            [1, 0, 2],
            [10, 9, 10],
            max_mismatch=2,
            stats=ScanStats(n_pairs=3, locus_visits=29, cells_evaluated=29),
        )

    def test_from_zero_based_shifts_indices(self):
        result = self._result()
        assert_array_equal(result.ind1, [1, 1, 2])
        assert_array_equal(result.ind2, [2, 3, 3])
        assert result.max_mismatch == 2

    def test_records_and_pairs(self):
        result = self._result()
        assert result.records()[0] == MismatchRecord(1, 2, 1, 10)
        assert result.pairs() == {(1, 2), (1, 3), (2, 3)}

    def test_to_dict_columns(self):
        columns = self._result().to_dict()
        assert list(columns) == ["ind1", "ind2", "num_mismatch", "num_loc"]
        assert_array_equal(columns["num_loc"], [10, 9, 10])

    def test_stats_default(self):
        result = MismatchResult.from_zero_based([], [], [], [], max_mismatch=0)
        assert result.stats == ScanStats()
        assert len(result) == 0

    def test_frozen(self):
        result = self._result()
        with pytest.raises(AttributeError):
            result.max_mismatch = 5
