"""Alignment layout used for parsimony starting trees: one partition per data type."""

from __future__ import annotations

from phylorun.partition import PartitionInfo
from phylorun.partitioned_msa import PartitionedMSA

_DATA_TYPE_NAMES = {2: "BIN", 4: "DNA", 20: "AA"}

# nodes per taxon (1 tip + inner nodes) used for the memory estimate
_NODES_PER_TAXON = 4


def _data_type_name(pinfo: PartitionInfo) -> str:
    return _DATA_TYPE_NAMES.get(pinfo.num_states, f"MULTI{pinfo.num_states}")


def _expanded_sequence(pinfo: PartitionInfo, taxon_id: int) -> str:
    seq = pinfo.sequences[taxon_id]
    if not pinfo.weights:
        return seq
    return "".join(c * w for c, w in zip(seq, pinfo.weights))


class ParsimonyMSA:
    """Partitions of an alignment merged by data type, with weights expanded."""

    def __init__(self, parted_msa: PartitionedMSA) -> None:
        if parted_msa.part_count() == 1:
            self._pars_msa = parted_msa
        else:
            self._pars_msa = self._merge_by_data_type(parted_msa)

    @staticmethod
    def _merge_by_data_type(orig: PartitionedMSA) -> PartitionedMSA:
        groups: dict[str, list[PartitionInfo]] = {}
        for pinfo in orig.part_list:
            groups.setdefault(_data_type_name(pinfo), []).append(pinfo)

        pars = PartitionedMSA(orig.taxon_names)
        for name, parts in groups.items():
            first = parts[0]
            sequences = [
                "".join(_expanded_sequence(p, j) for p in parts)
                for j in range(orig.taxon_count())
            ]
            pars.add_partition(
                PartitionInfo(
                    name,
                    first.model,
                    num_states=first.num_states,
                    num_rate_cats=first.num_rate_cats,
                    sequences=sequences,
                    gap_chars=first.gap_chars,
                )
            )
        return pars

    @property
    def parted_msa(self) -> PartitionedMSA:
        return self._pars_msa

    @property
    def partitions(self) -> list[PartitionInfo]:
        return list(self._pars_msa.part_list)

    def taxon_names(self) -> list[str]:
        return list(self._pars_msa.taxon_names)

    def memsize_estimate(self) -> int:
        """Estimated memory footprint of the parsimony structures, in bytes."""
        vec_size = sum(p.length() * p.num_states for p in self._pars_msa.part_list)
        return vec_size * self._pars_msa.taxon_count() * _NODES_PER_TAXON // 8