import pytest

from phylorun.partition import (
    InvalidPartitionRangeError,
    MissingPartitionForSiteError,
    MultiplePartitionForSiteError,
    PartitionInfo,
    PartitionStats,
)


def test_contiguous_range():
    pinfo = PartitionInfo("p1", range_string="1-5")
    site_part = [0] * 10
    assert pinfo.mark_partition_sites(1, site_part) == 5
    assert site_part[:5] == [1] * 5
    assert site_part[5:] == [0] * 5


@pytest.mark.parametrize("sep", ["/", "\\"])
def test_strided_range(sep):
    pinfo = PartitionInfo("codon", range_string=f"1-10{sep}3")
    site_part = [0] * 10
    count = pinfo.mark_partition_sites(2, site_part)
    marked = [i for i, v in enumerate(site_part) if v == 2]
    assert marked == list(range(0, 10, 3))
    assert count == len(marked)


def test_multiple_segments_and_single_column():
    pinfo = PartitionInfo("p", range_string="1-3,7")
    site_part = [0] * 8
    assert pinfo.mark_partition_sites(1, site_part) == 4
    assert site_part == [1, 1, 1, 0, 0, 0, 1, 0]


def test_overlap_raises():
    pinfo = PartitionInfo("p", range_string="1-3,3-4")
    site_part = [0] * 5
    with pytest.raises(MultiplePartitionForSiteError) as info:
        pinfo.mark_partition_sites(1, site_part)
    assert info.value.site == 3
    assert info.value.part1_name == "p"


@pytest.mark.parametrize("rng", ["0-3", "5-3", "1-20", "abc", "", "1-4/0"])
def test_invalid_ranges(rng):
    pinfo = PartitionInfo("bad", range_string=rng)
    with pytest.raises(InvalidPartitionRangeError) as info:
        pinfo.mark_partition_sites(1, [0] * 10)
    assert "bad" in str(info.value)


def test_multiple_error_message_names_both():
    err = MultiplePartitionForSiteError(PartitionInfo("first"), 7)
    err.set_second(PartitionInfo("second"))
    text = str(err)
    assert '"first"' in text and '"second"' in text and "7" in text


def test_missing_error():
    err = MissingPartitionForSiteError([2, 5])
    assert err.count == 2
    assert err.sites == [2, 5]
    assert "Please fix your data!" in str(err)


def test_partition_stats_helpers():
    st = PartitionStats()
    assert st.empty()
    st = PartitionStats(site_count=10, inv_prop=0.5, gap_seqs=[1, 3])
    assert not st.empty()
    assert st.inv_count() == 5
    assert st.gap_seq_count() == 2


def test_computed_stats():
    pinfo = PartitionInfo("p", sequences=["AAC", "AGC", "A-C"])
    st = pinfo.stats
    assert st.site_count == 3
    assert st.pattern_count == 0
    assert st.inv_count() == 2
    assert 0.0 < st.gap_prop < 1.0
    assert st.gap_seqs == []


def test_gap_sequence_detected():
    pinfo = PartitionInfo("p", sequences=["ACGT", "----", "AC?T"])
    assert pinfo.stats.gap_seqs == [1]


def test_length_with_weights():
    pinfo = PartitionInfo("p", sequences=["ACG", "ACT"], weights=[2, 3, 1])
    assert pinfo.num_sites() == 6
    assert pinfo.length() == 3
    assert pinfo.stats.site_count == pinfo.num_sites()


def test_length_without_weights():
    pinfo = PartitionInfo("p", sequences=["ACGTA", "ACGTT"])
    assert pinfo.length() == pinfo.num_sites() == 5


def test_taxon_clv_size_scales_with_rate_cats():
    one = PartitionInfo("p", sequences=["ACGT", "ACGA"], num_rate_cats=1)
    four = PartitionInfo("p", sequences=["ACGT", "ACGA"], num_rate_cats=4)
    assert four.taxon_clv_size() == 4 * one.taxon_clv_size()
    assert one.taxon_clv_size(partial=True) == one.taxon_clv_size()


def test_set_msa_resets_stats():
    pinfo = PartitionInfo("p", sequences=["AA", "AA"])
    assert pinfo.stats.site_count == 2
    pinfo.set_msa(["AAAA", "AAAA"])
    assert pinfo.stats.site_count == 4


def test_unequal_sequences_rejected():
    with pytest.raises(ValueError):
        PartitionInfo("p", sequences=["AAA", "AA"])