"""Alignment partitions: column ranges, per-partition alignment data and statistics."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, MutableSequence, Sequence

_RANGE_RE = re.compile(r"\s*(\d+)(?:-\s*(\d+)(?:[\\/]\s*(\d+))?)?")


class InvalidPartitionRangeError(ValueError):
    """A partition's range string cannot be parsed or lies outside the alignment."""

    def __init__(self, pinfo: "PartitionInfo") -> None:
        self.part_name = pinfo.name
        self.range_string = pinfo.range_string
        super().__init__(f"Invalid range in partition {pinfo.name}: {pinfo.range_string}")


class MultiplePartitionForSiteError(ValueError):
    """An alignment site was assigned to more than one partition."""

    def __init__(self, pinfo1: "PartitionInfo", site: int) -> None:
        super().__init__()
        self.site = site
        self.part1_name = pinfo1.name
        self.part2_name = ""

    def set_second(self, pinfo2: "PartitionInfo") -> None:
        """Record the other partition the site was already assigned to."""
        self.part2_name = pinfo2.name

    def __str__(self) -> str:
        return (
            f"Alignment site {self.site} assigned to multiple partitions: "
            f'"{self.part1_name}" and "{self.part2_name}"!'
        )


class MissingPartitionForSiteError(ValueError):
    """Some alignment sites are not covered by any partition."""

    def __init__(self, sites: Iterable[int] = ()) -> None:
        super().__init__()
        self.sites: list[int] = list(sites)

    @property
    def count(self) -> int:
        return len(self.sites)

    def __str__(self) -> str:
        listed = "".join(f"{s} " for s in self.sites)
        return (
            f"Found {len(self.sites)} alignment site(s) which are not assigned to any "
            f"partition:\n{listed}\nPlease fix your data!"
        )


@dataclass
class PartitionStats:
    """Summary statistics of one partition's alignment."""

    site_count: int = 0
    pattern_count: int = 0
    inv_prop: float = 0.0
    gap_prop: float = 0.0
    gap_seqs: list[int] = field(default_factory=list)
    emp_base_freqs: list[float] = field(default_factory=list)
    emp_subst_rates: list[float] = field(default_factory=list)

    def empty(self) -> bool:
        return self.site_count == 0

    def gap_seq_count(self) -> int:
        return len(self.gap_seqs)

    def inv_count(self) -> int:
        return int(self.site_count * self.inv_prop)


class PartitionInfo:
    """One partition: its name, model, column range and alignment data."""

    def __init__(
        self,
        name: str = "",
        model: str = "",
        range_string: str = "",
        *,
        num_states: int = 4,
        num_rate_cats: int = 1,
        sequences: Sequence[str] = (),
        weights: Sequence[int] = (),
        stats: PartitionStats | None = None,
        gap_chars: str = "-?",
    ) -> None:
        self.name = name
        self.model = model
        self.range_string = range_string
        self.num_states = num_states
        self.num_rate_cats = num_rate_cats
        self.gap_chars = gap_chars
        self.site_pattern_map: list[int] = []
        self.sequences: list[str] = []
        self.weights: list[int] = []
        self._stats = PartitionStats()
        self.set_msa(sequences, weights)
        if stats is not None:
            self._stats = stats

    def set_msa(self, sequences: Sequence[str], weights: Sequence[int] = ()) -> None:
        """Replace the alignment data; statistics are recomputed on demand."""
        sequences = list(sequences)
        if sequences and len({len(s) for s in sequences}) != 1:
            raise ValueError("All sequences must have the same length")
        weights = list(weights)
        if weights and sequences and len(weights) != len(sequences[0]):
            raise ValueError("Weight vector length does not match alignment length")
        self.sequences = sequences
        self.weights = weights
        self._stats = PartitionStats()

    @property
    def msa_length(self) -> int:
        """Number of alignment columns stored."""
        return len(self.sequences[0]) if self.sequences else 0

    @property
    def clv_entry_size(self) -> int:
        return self.num_states * self.num_rate_cats

    def num_sites(self) -> int:
        """Number of sites, counting column weights."""
        return sum(self.weights) if self.weights else self.msa_length

    def num_patterns(self) -> int:
        return len(self.weights)

    @property
    def stats(self) -> PartitionStats:
        if self._stats.empty() and self.sequences:
            self._stats = self._compute_stats()
        return self._stats

    @stats.setter
    def stats(self, value: PartitionStats) -> None:
        self._stats = value

    def _compute_stats(self) -> PartitionStats:
        seqs = self.sequences
        weights = self.weights or [1] * self.msa_length
        gaps = set(self.gap_chars)
        total = sum(weights)
        gap_count = 0
        inv_count = 0
        for column, w in zip(zip(*seqs), weights):
            gap_count += w * sum(1 for c in column if c in gaps)
            if len({c.upper() for c in column if c not in gaps}) == 1:
                inv_count += w
        cells = total * len(seqs)
        return PartitionStats(
            site_count=self.num_sites(),
            pattern_count=self.num_patterns(),
            inv_prop=inv_count / total if total else 0.0,
            gap_prop=gap_count / cells if cells else 0.0,
            gap_seqs=[i for i, s in enumerate(seqs) if s and all(c in gaps for c in s)],
        )

    def length(self) -> int:
        """Number of patterns if compressed, otherwise number of sites."""
        st = self.stats
        return st.pattern_count or st.site_count

    def taxon_clv_size(self, partial: bool = False) -> int:
        """Size of one taxon's conditional likelihood vector, in elements."""
        if partial:
            sites = self.num_patterns() or self.num_sites()
        else:
            sites = self.length()
        return self.clv_entry_size * sites

    def mark_partition_sites(self, part_num: int, site_part: MutableSequence[int]) -> int:
        """Write ``part_num`` into ``site_part`` for every site in the range string.

        Sites are 1-based in the range string. Returns the number of sites assigned.
        """
        assigned = 0
        for segment in self.range_string.split(","):
            if not segment and "," in self.range_string and assigned and segment == "":
                continue
            m = _RANGE_RE.match(segment)
            if not m:
                raise InvalidPartitionRangeError(self)
            start = int(m.group(1))
            end = int(m.group(2)) if m.group(2) is not None else start
            stride = int(m.group(3)) if m.group(3) is not None else 1
            if not (start >= 1 and end <= len(site_part) and start <= end and stride > 0):
                raise InvalidPartitionRangeError(self)
            for i in range(start - 1, end):
                if (i - start + 1) % stride:
                    continue
                if site_part[i]:
                    raise MultiplePartitionForSiteError(self, i + 1)
                site_part[i] = part_num
                assigned += 1
        return assigned