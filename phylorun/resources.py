"""Estimates of memory use and useful thread counts for a likelihood analysis."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from phylorun.options import Options
from phylorun.partitioned_msa import PartitionedMSA

_DOUBLE_SIZE = 8
_CHAR_SIZE = 1


@dataclass(frozen=True)
class ResEstimates:
    """Resource estimates for one analysis."""

    taxon_clv_size: int
    total_mem_size: int
    num_threads_response: int
    num_threads_throughput: int
    num_threads_balanced: int


def _round(x: float) -> int:
    """Round half away from zero (inputs are non-negative)."""
    return math.floor(x + 0.5)


def estimate_cores(taxon_clv_size: int, elems_per_core: int) -> int:
    """Number of cores worth using for a CLV of the given size (at least 1)."""
    if elems_per_core <= 0:
        raise ValueError("elems_per_core must be positive")
    naive_cores = max(_round(taxon_clv_size / elems_per_core), 1)

    # correct for edge cases: too few / too many cores
    if naive_cores <= 8:
        elems_per_core = int(elems_per_core / (4.0 - math.log2(naive_cores)))
    else:
        elems_per_core = int(elems_per_core * (math.log2(naive_cores) - 2.0))
    elems_per_core = max(elems_per_core, 1)

    return max(_round(taxon_clv_size / elems_per_core), 1)


class ResourceEstimator(ABC):
    """Base class of resource estimators for a partitioned alignment."""

    def __init__(self, parted_msa: PartitionedMSA, opts: Options) -> None:
        self.taxon_clv_size = parted_msa.taxon_clv_size()
        self.num_patterns = (
            parted_msa.total_patterns() if opts.use_pattern_compression else parted_msa.total_sites()
        )
        self.num_taxa = parted_msa.taxon_count()
        self.num_partitions = parted_msa.part_count()

    def estimate(self) -> ResEstimates:
        return self._compute_estimates()

    @abstractmethod
    def _compute_estimates(self) -> ResEstimates:
        """Compute the estimates from the collected alignment figures."""


class StaticResourceEstimator(ResourceEstimator):
    """Estimates from alignment dimensions alone, without benchmarking."""

    def __init__(self, parted_msa: PartitionedMSA, opts: Options) -> None:
        super().__init__(parted_msa, opts)
        if opts.use_tip_inner:
            self.num_tipvecs = self.num_taxa
            self.num_clvs = max(self.num_taxa - 2, 0)
        else:
            self.num_tipvecs = 0
            self.num_clvs = max(2 * self.num_taxa - 2, 0)

    def _compute_estimates(self) -> ResEstimates:
        mem_size = self.num_clvs * self.taxon_clv_size * _DOUBLE_SIZE
        mem_size += self.num_tipvecs * self.num_patterns * _CHAR_SIZE
        return ResEstimates(
            taxon_clv_size=self.taxon_clv_size,
            total_mem_size=mem_size,
            num_threads_response=estimate_cores(self.taxon_clv_size, 4000),
            num_threads_throughput=estimate_cores(self.taxon_clv_size, 80000),
            num_threads_balanced=estimate_cores(self.taxon_clv_size, 16000),
        )