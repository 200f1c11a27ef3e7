"""A multiple sequence alignment divided into partitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from phylorun.partition import (
    MissingPartitionForSiteError,
    MultiplePartitionForSiteError,
    PartitionInfo,
)


@dataclass
class _Alignment:
    labels: list[str] = field(default_factory=list)
    sequences: list[str] = field(default_factory=list)
    weights: list[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.sequences[0]) if self.sequences else 0


class PartitionedMSA:
    """Full alignment plus the list of partitions it is split into."""

    def __init__(self, taxon_names: Iterable[str] = ()) -> None:
        self.part_list: list[PartitionInfo] = []
        self._full = _Alignment()
        self.taxon_names: list[str] = []
        self.taxon_id_map: dict[str, int] = {}
        self._site_part_map: list[int] = []
        self._set_taxon_names(taxon_names)

    def _set_taxon_names(self, taxon_names: Iterable[str]) -> None:
        names = list(taxon_names)
        id_map = {name: i for i, name in enumerate(names)}
        if len(id_map) != len(names):
            raise ValueError("Duplicate taxon names")
        self.taxon_names = names
        self.taxon_id_map = id_map

    def part_count(self) -> int:
        return len(self.part_list)

    def taxon_count(self) -> int:
        return len(self.taxon_names)

    def part_info(self, index: int) -> PartitionInfo:
        return self.part_list[index]

    @property
    def full_length(self) -> int:
        """Number of columns of the full alignment."""
        return self._full.length

    def add_partition(self, part_info: PartitionInfo) -> None:
        self.part_list.append(part_info)
        self._site_part_map = []

    def set_full_msa(
        self,
        labels: Sequence[str],
        sequences: Sequence[str],
        weights: Sequence[int] | None = None,
    ) -> None:
        """Set the unpartitioned alignment; its labels become the taxon names."""
        labels = list(labels)
        sequences = list(sequences)
        if len(labels) != len(sequences):
            raise ValueError("Number of labels and sequences differ")
        if sequences and len({len(s) for s in sequences}) != 1:
            raise ValueError("All sequences must have the same length")
        weights = list(weights or [])
        if weights and sequences and len(weights) != len(sequences[0]):
            raise ValueError("Weight vector length does not match alignment length")
        self._full = _Alignment(labels, sequences, weights)
        self._site_part_map = []
        self._set_taxon_names(labels)

    def _site_part_assignment(self) -> list[int]:
        spa = [0] * self._full.length
        for p, pinfo in enumerate(self.part_list, start=1):
            try:
                pinfo.mark_partition_sites(p, spa)
            except MultiplePartitionForSiteError as err:
                err.set_second(self.part_list[spa[err.site - 1] - 1])
                raise
        missing = [i + 1 for i, v in enumerate(spa) if not v]
        if missing:
            raise MissingPartitionForSiteError(missing)
        return spa

    def site_part_map(self) -> list[int]:
        """1-based partition number of every full-alignment site (empty for one partition)."""
        if not self._site_part_map and self.part_count() > 1:
            self._site_part_map = self._site_part_assignment()
        return list(self._site_part_map)

    def full_msa_site(self, index: int, site: int) -> int:
        """Full-alignment column of the 0-based ``site`` in partition ``index``."""
        if self.part_count() == 1:
            return site
        remaining = site
        for i, part in enumerate(self.site_part_map()):
            if part == index + 1:
                if not remaining:
                    return i
                remaining -= 1
        raise IndexError(f"Site {site + 1} not found in partition {index + 1}")

    def full_to_parted_sitemap(self) -> list[tuple[int, int]]:
        """(partition id, local site id) for every site of the full alignment."""
        total = self.total_sites()
        spm = self.site_part_map()
        if spm and len(spm) != total:
            raise ValueError("Site-partition map does not match the number of sites")
        counters = [0] * self.part_count()
        sitemap = []
        for i in range(total):
            pid = spm[i] - 1 if spm else 0
            sid = counters[pid]
            counters[pid] += 1
            pattern_map = self.part_list[pid].site_pattern_map
            sitemap.append((pid, pattern_map[sid] if pattern_map else sid))
        return sitemap

    def split_msa(self) -> None:
        """Distribute the full alignment's columns and weights among the partitions."""
        if not self.part_list:
            return
        full_range = f"1-{self._full.length}"
        if self.part_count() == 1:
            first = self.part_list[0].range_string
            need_split = bool(first) and first not in (full_range, "all")
        else:
            need_split = True

        if not need_split:
            pinfo = self.part_list[0]
            if not pinfo.range_string:
                pinfo.range_string = full_range
            pinfo.set_msa(self._full.sequences, self._full.weights)
            return

        spm = self.site_part_map() if self.part_count() > 1 else self._site_part_assignment()
        for p, pinfo in enumerate(self.part_list, start=1):
            cols = [i for i, part in enumerate(spm) if part == p]
            seqs = ["".join(s[i] for i in cols) for s in self._full.sequences]
            weights = [self._full.weights[i] for i in cols] if self._full.weights else []
            pinfo.set_msa(seqs, weights)

    def total_sites(self) -> int:
        return sum(p.stats.site_count for p in self.part_list)

    def total_patterns(self) -> int:
        return sum(p.stats.pattern_count for p in self.part_list)

    def total_length(self) -> int:
        return sum(p.length() for p in self.part_list)

    def taxon_clv_size(self) -> int:
        """Total CLV size of one taxon over all partitions, in elements."""
        return sum(p.taxon_clv_size() for p in self.part_list)

    def describe(self) -> str:
        """Human-readable per-partition summary."""
        lines = []
        for p, pinfo in enumerate(self.part_list):
            st = pinfo.stats
            lines.append(f"Partition {p}: {pinfo.name}")
            lines.append(f"Model: {pinfo.model}")
            if pinfo.num_patterns():
                lines.append(f"Alignment sites / patterns: {st.site_count} / {st.pattern_count}")
            else:
                lines.append(f"Alignment sites: {pinfo.num_sites()}")
            lines.append(f"Gaps: {st.gap_prop * 100:.2g} %")
            lines.append(f"Invariant sites: {st.inv_prop * 100:.2g} %")
            lines.append("")
        return "".join(line + "\n" for line in lines)