# phylorun

Building blocks for setting up a maximum-likelihood phylogenetic analysis:
run options and output file naming, partitioned alignments and views on them,
tree size arithmetic, scored topologies, resource estimates and a small
thread-group helper.

## Modules

- `phylorun.options` – the run configuration `Options` (a dataclass) with the
  enums `Command`, `BranchSupportMetric`, `StartingTree`, `BootstopCriterion`,
  `SimdArch`, `BrlenLinkage` and `BrlenOptMethod`.
  `set_default_outfiles()` fills every empty entry of `outfile_names`
  (`OutputFileNames`) with `<prefix>.raxml.<suffix>`, where the prefix is
  `outfile_prefix` or, if that is empty, `msa_file`; in `nofiles_mode` the names
  stay empty. Further helpers: `support_tree_file()`, `bootstrap_msa_file()`,
  `bootstrap_partition_file()`, `cons_tree_file()`, `checkp_file()`,
  `result_files_exist()`, `remove_result_files()`, `remove_tmp_files()`, and
  `describe(start_time)`, which returns a multi-line summary of the settings.
- `phylorun.partition` – one alignment partition, `PartitionInfo`, holding its
  name, model string, range string, sequences and optional column weights, with
  lazily computed `PartitionStats` (site and pattern counts, gap and invariant
  proportions, all-gap sequences). `mark_partition_sites()` parses range strings
  such as `1-100`, `1-100/3`, `1-100\3` or `5,7,9-20` (1-based) and raises
  `InvalidPartitionRangeError` or `MultiplePartitionForSiteError`.
- `phylorun.partitioned_msa` – `PartitionedMSA`: a full alignment
  (`set_full_msa`) plus its partitions (`add_partition`). It builds the
  site-to-partition map (raising `MissingPartitionForSiteError` for uncovered
  sites), splits the columns and weights among the partitions (`split_msa`),
  maps sites between full and partitioned alignment, sums sites, patterns and
  CLV sizes, and prints a per-partition summary (`describe`).
- `phylorun.msa_view` – `PartitionedMSAView`: a view of a `PartitionedMSA` with
  excluded taxa and columns, renamed taxa and replacement column weights;
  `part_sequence(..., uncompress=True)` repeats each column by its weight.
- `phylorun.parsimony` – `ParsimonyMSA`: merges partitions of the same data type
  (judged by number of states) into one, with weighted columns expanded, and
  gives a memory estimate in bytes (`memsize_estimate`).
- `phylorun.resources` – `StaticResourceEstimator` and `estimate_cores()`:
  memory use and suggested thread counts (`ResEstimates`) from the alignment
  dimensions and `Options`.
- `phylorun.tree` – `BasicTree` (branch, node and split counts of an unrooted
  binary tree), `TreeBranch`, `TreeTopology` and `ScoredTopologyMap`, which keeps
  scored topologies by index and returns the best one.
- `phylorun.parallel` – `ParallelContext` with `ThreadGroup` and `ReduceOp`:
  starts worker threads in groups and offers barriers, element-wise reductions
  (sum, max, min) within a group and broadcasts between threads.

## Installation

```
pip install .
```

Install the test extra and run the test suite with:

```
pip install .[test]
pytest
```

## Example

```python
from phylorun.options import Options, Command

opts = Options(command=Command.SEARCH, msa_file="data.fasta")
opts.set_default_outfiles()
print(opts.outfile_names.best_tree)   # data.fasta.raxml.bestTree
```

```python
from phylorun.partition import PartitionInfo
from phylorun.partitioned_msa import PartitionedMSA

msa = PartitionedMSA()
msa.set_full_msa(["a", "b", "c"], ["ACGTAC", "ACGTTC", "AC-TAC"])
msa.add_partition(PartitionInfo("p1", "GTR", "1-3"))
msa.add_partition(PartitionInfo("p2", "GTR", "4-6"))
msa.split_msa()
print(msa.site_part_map())            # [1, 1, 1, 2, 2, 2]
print(msa.part_info(1).sequences)     # ['TAC', 'TTC', 'TAC']
```

```python
from phylorun.tree import BasicTree, ScoredTopologyMap, TreeTopology

tree = BasicTree(10)
print(tree.num_branches())            # 17

scores = ScoredTopologyMap()
scores.insert(0, -1200.5, TreeTopology())
scores.insert(1, -1100.2, TreeTopology())
print(scores.best_score())            # -1100.2
```

## What this package does not do

- It has no command-line program; everything is used from Python.
- It does not read or write alignment or tree files; sequences are passed in
  as strings.
- It computes no likelihoods, optimises no model parameters or branch lengths,
  and builds no trees (random, parsimony or otherwise).
- `ParallelContext` coordinates threads within one process only; the rank
  number and rank count are plain values, and nothing is communicated between
  processes or machines.