"""Run options, partitioned alignments, tree bookkeeping, resource estimates and thread groups for phylogenetic analyses."""

__version__ = "0.1.0"

__all__ = [
    "msa_view",
    "options",
    "parallel",
    "parsimony",
    "partition",
    "partitioned_msa",
    "resources",
    "tree",
]