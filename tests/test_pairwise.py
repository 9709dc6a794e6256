"""Tests for the single-target pairwise likelihood accumulator."""

import tracemalloc

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from kinscan import (
    FlatLookupTable,
    GenotypeMatrix,
    PairwiseLikelihoodScanner,
    ScanConfig,
    comp_ind_pairwise,
)
from kinscan.core.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidArgumentError,
)
from kinscan.scan.pairwise import auto_tune_block_loci
from kinscan.validation import compare_pairwise_results, reference_pairwise


@pytest.mark.tier0
class TestConcreteScenario:
    """Two source individuals against target row (1, 0)."""

    def test_values_and_counts(self, two_locus_table):
        source = GenotypeMatrix([[0, 1], [1, -1]])
        target = GenotypeMatrix([[1, 0]])

        result = comp_ind_pairwise(source, target, 1, two_locus_table)

        assert_array_equal(result.ind, [1, 2])
        assert_array_equal(result.num_loc, [2, 1])
        # row 0: locus0[0, 1] + locus1[1, 0]
        assert result.value[0] == 0.0 + 0.2 + 3.0
        # row 1: locus0[1, 1], locus 1 missing in source
        assert result.value[1] == 0.0 + 0.4
        assert result.target == 1

    def test_records(self, two_locus_table):
        source = GenotypeMatrix([[0, 1], [1, -1]])
        target = GenotypeMatrix([[1, 0]])

        records = comp_ind_pairwise(source, target, 1, two_locus_table).records()

        assert [r.ind for r in records] == [1, 2]
        assert [r.num_loc for r in records] == [2, 1]

    def test_columnar_output(self, two_locus_table):
        result = comp_ind_pairwise(
            GenotypeMatrix([[0, 1]]), GenotypeMatrix([[1, 0]]), 1, two_locus_table
        )
        columns = result.to_dict()
        assert set(columns) == {"ind", "value", "num_loc"}
        assert all(len(col) == len(result) for col in columns.values())

    def test_target_index_selects_row(self, two_locus_table):
        source = GenotypeMatrix([[0, 0]])
        target = GenotypeMatrix([[0, 0], [1, 1]])

        first = comp_ind_pairwise(source, target, 1, two_locus_table)
        second = comp_ind_pairwise(source, target, 2, two_locus_table)

        assert first.value[0] == 0.1 + 1.0
        assert second.value[0] == 0.2 + 2.0
        assert second.target == 2


@pytest.mark.tier0
class TestMissingData:
    def test_target_missing_everywhere(self, two_locus_table):
        source = GenotypeMatrix([[0, 1], [1, 1]])
        target = GenotypeMatrix([[-1, -1]])

        result = comp_ind_pairwise(source, target, 1, two_locus_table)

        assert_array_equal(result.value, [0.0, 0.0])
        assert_array_equal(result.num_loc, [0, 0])

    def test_zero_overlap(self, two_locus_table):
        source = GenotypeMatrix([[0, -1]])
        target = GenotypeMatrix([[-1, 1]])

        result = comp_ind_pairwise(source, target, 1, two_locus_table)

        assert result.value[0] == 0.0
        assert result.num_loc[0] == 0

    def test_missing_loci_do_not_change_value(self, pairwise_inputs):
        source, target, table = pairwise_inputs(20, 3, 30, missing_rate=0.0)
        base = comp_ind_pairwise(source, target, 2, table)

        # Blank out loci in the target only; values equal the sum over the rest
        codes = target.codes.copy()
        codes[1, ::3] = -1
        masked = comp_ind_pairwise(source, GenotypeMatrix(codes), 2, table)

        keep = np.ones(30, dtype=bool)
        keep[::3] = False
        expected = reference_pairwise(
            source.select_loci(keep),
            target.select_loci(keep),
            2,
            FlatLookupTable.from_blocks([table.block(j) for j in np.flatnonzero(keep)]),
        )
        assert_array_equal(masked.value, expected.value)
        assert_array_equal(masked.num_loc, base.num_loc - 10)

    def test_any_negative_code_is_missing(self, two_locus_table):
        source = GenotypeMatrix([[-5, 1]])
        target = GenotypeMatrix([[1, 0]])

        result = comp_ind_pairwise(source, target, 1, two_locus_table)

        assert result.num_loc[0] == 1
        assert result.value[0] == 3.0

    @pytest.mark.parametrize(
        "sentinel, dtype",
        [(np.iinfo(np.int32).min, np.int32), (-(10**10), np.int64)],
    )
    def test_extreme_negative_codes_are_missing(self, two_locus_table, sentinel, dtype):
        source = np.array([[0, sentinel]], dtype=dtype)
        target = np.array([[1, 0]], dtype=dtype)

        result = comp_ind_pairwise(source, target, 1, two_locus_table)

        assert result.num_loc[0] == 1
        assert result.value[0] == 0.0 + 0.2


@pytest.mark.tier0
class TestDirectionality:
    def test_swapping_roles_changes_result(self, two_locus_table):
        a = GenotypeMatrix([[0, 1]])
        b = GenotypeMatrix([[1, 0]])

        forward = comp_ind_pairwise(a, b, 1, two_locus_table)
        backward = comp_ind_pairwise(b, a, 1, two_locus_table)

        # forward: locus0[0, 1] + locus1[1, 0] = 0.2 + 3.0
        # backward: locus0[1, 0] + locus1[0, 1] = 0.3 + 2.0
        assert forward.value[0] == 0.0 + 0.2 + 3.0
        assert backward.value[0] == 0.0 + 0.3 + 2.0
        assert forward.value[0] != backward.value[0]

    def test_symmetric_table_gives_same_result(self):
        table = FlatLookupTable.from_blocks([np.array([[1.0, 5.0], [5.0, 2.0]])])
        a = GenotypeMatrix([[0]])
        b = GenotypeMatrix([[1]])

        assert (
            comp_ind_pairwise(a, b, 1, table).value[0]
            == comp_ind_pairwise(b, a, 1, table).value[0]
        )


@pytest.mark.tier0
class TestErrors:
    def test_locus_count_mismatch(self, two_locus_table):
        with pytest.raises(DimensionMismatchError):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 1]]),
                GenotypeMatrix([[0, 1, 0]]),
                1,
                two_locus_table,
            )

    def test_table_locus_mismatch(self, two_locus_table):
        with pytest.raises(DimensionMismatchError):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 1, 0]]),
                GenotypeMatrix([[0, 1, 0]]),
                1,
                two_locus_table,
            )

    @pytest.mark.parametrize("t", [0, 3, -1])
    def test_target_index_out_of_range(self, two_locus_table, t):
        target = GenotypeMatrix([[0, 0], [1, 1]])
        with pytest.raises(IndexOutOfRangeError):
            comp_ind_pairwise(GenotypeMatrix([[0, 0]]), target, t, two_locus_table)

    def test_target_index_not_integer(self, two_locus_table):
        with pytest.raises(InvalidArgumentError):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 0]]), GenotypeMatrix([[0, 0]]), 1.0, two_locus_table
            )

    def test_genotype_outside_block(self, two_locus_table):
        with pytest.raises(IndexOutOfRangeError, match="locus 1"):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 0], [0, 2]]),
                GenotypeMatrix([[0, 0]]),
                1,
                two_locus_table,
            )

    def test_error_is_builtin_subclass(self, two_locus_table):
        with pytest.raises(IndexError):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 0]]), GenotypeMatrix([[0, 0]]), 2, two_locus_table
            )

    def test_unknown_backend(self):
        with pytest.raises(InvalidArgumentError, match="Unknown backend"):
            PairwiseLikelihoodScanner(backend="cuda")


@pytest.mark.tier0
class TestAgainstReference:
    @pytest.mark.parametrize("chunk", [1, 7, 4096])
    def test_matches_naive_scan_bit_for_bit(self, pairwise_inputs, chunk):
        source, target, table = pairwise_inputs(40, 5, 60, missing_rate=0.2)
        scanner = PairwiseLikelihoodScanner(
            ScanConfig(row_chunk_size=chunk), backend="numpy"
        )

        for t in range(1, 6):
            result = scanner.scan(source, target, t, table)
            expected = reference_pairwise(source, target, t, table)
            comparison = compare_pairwise_results(result, expected)
            assert comparison.passed, comparison.message
            assert result.value.tobytes() == expected.value.tobytes()

    def test_deterministic(self, pairwise_inputs):
        source, target, table = pairwise_inputs(30, 2, 50)
        first = comp_ind_pairwise(source, target, 2, table)
        second = comp_ind_pairwise(source, target, 2, table)
        assert first.value.tobytes() == second.value.tobytes()
        assert_array_equal(first.num_loc, second.num_loc)

    def test_inputs_not_modified(self, pairwise_inputs):
        source, target, table = pairwise_inputs(10, 2, 12)
        before = (source.codes.copy(), target.codes.copy(), table.values.copy())
        comp_ind_pairwise(source, target, 1, table)
        assert_array_equal(source.codes, before[0])
        assert_array_equal(target.codes, before[1])
        assert_array_equal(table.values, before[2])

    def test_accepts_plain_arrays(self, two_locus_table):
        result = comp_ind_pairwise(
            np.array([[0, 1]]), np.array([[1.0, np.nan]]), 1, two_locus_table
        )
        assert result.num_loc[0] == 1

    def test_no_loci(self):
        table = FlatLookupTable.from_blocks([])
        source = GenotypeMatrix(np.zeros((3, 0), dtype=int))
        target = GenotypeMatrix(np.zeros((1, 0), dtype=int))

        result = comp_ind_pairwise(source, target, 1, table)

        assert_array_equal(result.value, [0.0, 0.0, 0.0])
        assert_array_equal(result.num_loc, [0, 0, 0])

    def test_no_source_individuals(self, two_locus_table):
        source = GenotypeMatrix(np.zeros((0, 2), dtype=int))
        result = comp_ind_pairwise(source, GenotypeMatrix([[0, 0]]), 1, two_locus_table)
        assert len(result) == 0


@pytest.mark.tier0
class TestLocusBlocks:
    def test_block_width_from_budget(self):
        # 100 rows x 18 bytes per cell = 1800 bytes per locus
        assert auto_tune_block_loci(100, 1000, 0.018) == 10
        assert auto_tune_block_loci(100, 1000, 1e-9) == 1
        assert auto_tune_block_loci(100, 1000, 256.0) == 1000

    @pytest.mark.parametrize("budget", [1e-4, 0.005, 256.0])
    @pytest.mark.parametrize("chunk", [1, 7, 40])
    def test_blocked_sum_matches_naive_scan_bit_for_bit(
        self, pairwise_inputs, budget, chunk
    ):
        source, target, table = pairwise_inputs(40, 3, 75, missing_rate=0.2, seed=3)
        scanner = PairwiseLikelihoodScanner(
            ScanConfig(row_chunk_size=chunk, mem_budget_mb=budget), backend="numpy"
        )

        for t in (1, 2, 3):
            result = scanner.scan(source, target, t, table)
            expected = reference_pairwise(source, target, t, table)
            assert result.value.tobytes() == expected.value.tobytes()
            assert_array_equal(result.num_loc, expected.num_loc)

    def test_order_sensitive_sum_across_blocks(self):
        # (1e16 + 1.0) + -1e16 is 0.0 in locus order, 1.0 in other orders
        table = FlatLookupTable.from_blocks(
            [np.array([[1e16]]), np.array([[1.0]]), np.array([[-1e16]])]
        )
        source = GenotypeMatrix([[0, 0, 0]])
        target = GenotypeMatrix([[0, 0, 0]])

        result = comp_ind_pairwise(
            source, target, 1, table, config=ScanConfig(mem_budget_mb=1e-9)
        )

        assert result.value[0] == ((0.0 + 1e16) + 1.0) + -1e16

    @pytest.mark.parametrize("budget", [1e-9, 256.0])
    def test_negative_zero_values_sum_to_positive_zero(self, budget):
        table = FlatLookupTable.from_blocks([np.full((2, 2), -0.0)] * 4)
        source = GenotypeMatrix([[0, 1, 1, 0], [-1, 0, 1, -1], [-1, -1, -1, -1]])
        target = GenotypeMatrix([[1, 1, 0, 0]])

        result = comp_ind_pairwise(
            source, target, 1, table, config=ScanConfig(mem_budget_mb=budget)
        )
        expected = reference_pairwise(source, target, 1, table)

        assert result.value.tobytes() == expected.value.tobytes()
        assert not np.any(np.signbit(result.value))

    def test_negative_infinity_only_where_observed(self):
        table = FlatLookupTable.from_blocks(
            [np.array([[-np.inf, 1.0], [1.0, 2.0]]), np.full((2, 2), 0.5)]
        )
        source = GenotypeMatrix([[0, 1], [-1, 1]])
        target = GenotypeMatrix([[0, 0]])

        result = comp_ind_pairwise(
            source, target, 1, table, config=ScanConfig(mem_budget_mb=1e-9)
        )

        assert result.value[0] == -np.inf
        assert result.value[1] == 0.0 + 0.5

    def test_peak_memory_bounded_by_budget(self, pairwise_inputs):
        source, target, table = pairwise_inputs(
            200, 1, 5000, max_genos=2, missing_rate=0.1, seed=5
        )
        scanner = PairwiseLikelihoodScanner(
            ScanConfig(mem_budget_mb=2.0), backend="numpy"
        )

        tracemalloc.start()
        try:
            scanner.scan(source, target, 1, table)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        # A single 200 x 5000 block would need about 18 MB of temporaries
        assert peak < 3.0e6

    def test_out_of_block_error_names_absolute_locus(self, two_locus_table):
        with pytest.raises(IndexOutOfRangeError, match="locus 1"):
            comp_ind_pairwise(
                GenotypeMatrix([[0, 0], [0, 2]]),
                GenotypeMatrix([[0, 0]]),
                1,
                two_locus_table,
                config=ScanConfig(mem_budget_mb=1e-9),
            )

    def test_block_width_logged(self, pairwise_inputs, caplog_loguru):
        source, target, table = pairwise_inputs(10, 1, 20)
        comp_ind_pairwise(
            source, target, 1, table, config=ScanConfig(mem_budget_mb=0.001)
        )
        # 1000 bytes // (10 rows x 18 bytes) = 5 loci per block
        assert any("10 rows x 5 loci" in m for m in caplog_loguru)


@pytest.mark.tier0
class TestLogging:
    def test_debug_summary_logged(self, two_locus_table, caplog_loguru):
        comp_ind_pairwise(
            GenotypeMatrix([[0, 1]]), GenotypeMatrix([[1, 0]]), 1, two_locus_table
        )
        assert any("Pairwise scan" in m for m in caplog_loguru)
