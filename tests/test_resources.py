import pytest

from phylorun.options import Options
from phylorun.partition import PartitionInfo
from phylorun.partitioned_msa import PartitionedMSA
from phylorun.resources import (
    ResourceEstimator,
    StaticResourceEstimator,
    estimate_cores,
)


def make_msa():
    pmsa = PartitionedMSA()
    pmsa.set_full_msa(["t1", "t2", "t3"], ["ACGTAC", "AGGTTC", "ACCTAA"])
    pmsa.add_partition(PartitionInfo("all", "GTR"))
    pmsa.split_msa()
    return pmsa


def test_estimate_cores_minimum_is_one():
    assert estimate_cores(0, 4000) == 1
    assert estimate_cores(10, 80000) == 1


def test_estimate_cores_small_value():
    assert estimate_cores(4000, 4000) == 4


@pytest.mark.parametrize("size", [1000, 50000, 500000, 5000000])
def test_estimate_cores_positive(size):
    assert estimate_cores(size, 4000) >= 1
    assert estimate_cores(size, 4000) >= estimate_cores(size, 80000)


def test_estimate_cores_rejects_zero():
    with pytest.raises(ValueError):
        estimate_cores(100, 0)


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        ResourceEstimator(make_msa(), Options())


def test_memory_without_tip_inner():
    opts = Options(use_tip_inner=False, use_pattern_compression=False)
    res = StaticResourceEstimator(make_msa(), opts).estimate()
    assert res.total_mem_size == 768


def test_memory_with_tip_inner():
    opts = Options(use_tip_inner=True, use_pattern_compression=False)
    res = StaticResourceEstimator(make_msa(), opts).estimate()
    assert res.total_mem_size == 210


def test_estimates_consistent():
    pmsa = make_msa()
    res = StaticResourceEstimator(pmsa, Options()).estimate()
    assert res.taxon_clv_size == pmsa.taxon_clv_size()
    assert res.num_threads_response == estimate_cores(res.taxon_clv_size, 4000)
    assert res.num_threads_throughput == estimate_cores(res.taxon_clv_size, 80000)
    assert res.num_threads_balanced == estimate_cores(res.taxon_clv_size, 16000)


def test_pattern_compression_selects_count():
    pmsa = make_msa()
    compressed = StaticResourceEstimator(pmsa, Options(use_pattern_compression=True))
    plain = StaticResourceEstimator(pmsa, Options(use_pattern_compression=False))
    assert compressed.num_patterns == pmsa.total_patterns()
    assert plain.num_patterns == pmsa.total_sites()