"""A filtered, renamed and reweighted view of a partitioned alignment."""

from __future__ import annotations

from typing import Iterable, Sequence

from phylorun.partition import PartitionInfo
from phylorun.partitioned_msa import PartitionedMSA


class PartitionedMSAView:
    """Read-only view of a :class:`PartitionedMSA`.

    Taxa and alignment columns can be hidden, taxa renamed and per-partition
    column weights replaced without touching the underlying alignment.
    """

    def __init__(self, parted_msa: PartitionedMSA) -> None:
        self._parted_msa = parted_msa
        self._taxon_name_map: dict[str, str] = {}
        self._excluded_taxa: set[int] = set()
        self._excluded_sites: list[set[int]] = []
        self._site_weights: list[list[int]] = []
        self._orig_taxon_ids: list[int] | None = None

    @property
    def parted_msa(self) -> PartitionedMSA:
        return self._parted_msa

    @property
    def taxon_name_map(self) -> dict[str, str]:
        return dict(self._taxon_name_map)

    # ---- helpers ------------------------------------------------------------

    def _part(self, part_id: int) -> PartitionInfo:
        if not 0 <= part_id < self.part_count():
            raise IndexError(f"Partition ID out of range: {part_id}")
        return self._parted_msa.part_info(part_id)

    def _excluded(self, part_id: int) -> set[int]:
        return self._excluded_sites[part_id] if self._excluded_sites else set()

    def _weights(self, part_id: int) -> list[int]:
        custom = self._site_weights[part_id] if self._site_weights else []
        return custom or self._part(part_id).weights

    def _orig_taxon_id(self, taxon_id: int) -> int:
        if taxon_id < 0:
            raise IndexError(f"Taxon ID out of range: {taxon_id}")
        if not self._excluded_taxa:
            return taxon_id
        if self._orig_taxon_ids is None:
            self._orig_taxon_ids = [
                i for i in range(self._parted_msa.taxon_count()) if i not in self._excluded_taxa
            ]
        return self._orig_taxon_ids[taxon_id]

    # ---- queries --------------------------------------------------------------

    def identity(self) -> bool:
        """True if the view shows the alignment unchanged."""
        return (
            self.excluded_site_count() == 0
            and not self._excluded_taxa
            and not self._taxon_name_map
            and not self._site_weights
        )

    def unweighted(self, part_id: int) -> bool:
        pinfo = self._part(part_id)
        custom = self._site_weights[part_id] if self._site_weights else []
        return not custom and pinfo.num_sites() == pinfo.msa_length

    def taxon_count(self) -> int:
        return self._parted_msa.taxon_count() - len(self._excluded_taxa)

    def part_count(self) -> int:
        return self._parted_msa.part_count()

    def excluded_site_count(self) -> int:
        return sum(len(s) for s in self._excluded_sites)

    def total_length(self) -> int:
        return self._parted_msa.total_length() - self.excluded_site_count()

    def total_sites(self) -> int:
        return sum(self.part_sites(p) for p in range(self.part_count()))

    def taxon_name(self, taxon_id: int) -> str:
        orig_name = self.orig_taxon_name(taxon_id)
        return self._taxon_name_map.get(orig_name, orig_name)

    def orig_taxon_name(self, taxon_id: int) -> str:
        return self._parted_msa.taxon_names[self._orig_taxon_id(taxon_id)]

    def part_model(self, part_id: int) -> str:
        return self._part(part_id).model

    def part_name(self, part_id: int) -> str:
        return self._part(part_id).name

    def part_length(self, part_id: int) -> int:
        """Number of stored columns of a partition that are not excluded."""
        return self._part(part_id).msa_length - len(self._excluded(part_id))

    def part_sites(self, part_id: int) -> int:
        """Number of sites of a partition, counting weights of non-excluded columns."""
        if self.unweighted(part_id):
            return self.part_length(part_id)
        excluded = self._excluded(part_id)
        return sum(w for s, w in enumerate(self._weights(part_id)) if s not in excluded)

    def part_sequence(self, taxon_id: int, part_id: int, uncompress: bool = False) -> str:
        """Sequence of a taxon in a partition, without excluded columns.

        With ``uncompress`` every column is repeated as often as its weight.
        """
        pinfo = self._part(part_id)
        orig_seq = pinfo.sequences[self._orig_taxon_id(taxon_id)]
        excluded = self._excluded(part_id)

        if self.unweighted(part_id) or not uncompress:
            if not excluded:
                return orig_seq
            return "".join(c for s, c in enumerate(orig_seq) if s not in excluded)

        weights = self._weights(part_id)
        return "".join(
            c * w for s, (c, w) in enumerate(zip(orig_seq, weights)) if s not in excluded and w > 0
        )

    def excluded_sites(self, part_id: int) -> list[int]:
        """Sorted list of excluded columns of a partition."""
        self._part(part_id)
        return sorted(self._excluded(part_id))

    # ---- modifications ---------------------------------------------------------

    def map_taxon_name(self, orig_name: str, new_name: str) -> None:
        self._taxon_name_map[orig_name] = new_name

    def exclude_taxon(self, taxon_id: int) -> None:
        if not 0 <= taxon_id < self._parted_msa.taxon_count():
            raise IndexError(f"Taxon ID out of range: {taxon_id}")
        self._excluded_taxa.add(taxon_id)
        self._orig_taxon_ids = None

    def exclude_site(self, part_id: int, site_id: int) -> None:
        self.exclude_sites(part_id, [site_id])

    def exclude_sites(self, part_id: int, site_ids: Iterable[int]) -> None:
        length = self._part(part_id).msa_length
        site_ids = list(site_ids)
        for site in site_ids:
            if not 0 <= site < length:
                raise IndexError(f"Site ID out of range: {site}")
        if not self._excluded_sites:
            self._excluded_sites = [set() for _ in range(self.part_count())]
        self._excluded_sites[part_id].update(site_ids)

    def set_site_weights(self, weights: Sequence[Sequence[int]]) -> None:
        """Replace the column weights of all partitions."""
        weights = list(weights)
        if len(weights) != self.part_count():
            raise ValueError("Invalid weight vector size")
        self._site_weights = [[] for _ in range(self.part_count())]
        for part_id, w in enumerate(weights):
            self.set_part_site_weights(part_id, w)

    def set_part_site_weights(self, part_id: int, weights: Sequence[int]) -> None:
        """Replace the column weights of one partition."""
        pinfo = self._part(part_id)
        weights = list(weights)
        if len(weights) != pinfo.msa_length:
            raise ValueError("Invalid partition weight vector size")
        if len(self._site_weights) != self.part_count():
            self._site_weights = [[] for _ in range(self.part_count())]
        self._site_weights[part_id] = weights