"""Run options: analysis settings, output file naming and a human-readable summary."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path

from phylorun.parallel import ParallelContext

OPT_VERSION = 2

DEF_LH_EPSILON = 0.1
DEF_LH_EPSILON_BRLEN_TRIPLET = 1000.0
BRLEN_MIN = 1.0e-6
BRLEN_MAX = 100.0
BOOTSTOP_INTERVAL = 50
BOOTSTOP_PERMUTES = 1000
UINT_MAX = 2**32 - 1

TIME_FORMAT = "%d-%b-%Y %H:%M:%S"


class Command(Enum):
    """Analysis mode."""

    NONE = "none"
    SEARCH = "search"
    EVALUATE = "evaluate"
    BOOTSTRAP = "bootstrap"
    ALL = "all"
    SUPPORT = "support"
    BSCONVERGE = "bsconverge"
    BSMSA = "bsmsa"
    TERRACE = "terrace"
    CHECK = "check"
    PARSE = "parse"
    START = "start"
    RFDIST = "rfdist"
    CONSENSE = "consense"
    ANCESTRAL = "ancestral"
    SITELH = "sitelh"


class BranchSupportMetric(Enum):
    """Branch support measure."""

    FBP = "fbp"
    TBE = "tbe"


class StartingTree(Enum):
    """Kind of starting tree; member order is the reporting order."""

    RANDOM = "random"
    PARSIMONY = "parsimony"
    USER = "user"


class BootstopCriterion(Enum):
    """Bootstrap convergence criterion."""

    NONE = "none"
    AUTO_FC = "autoFC"
    AUTO_MR = "autoMR"
    AUTO_MRE = "autoMRE"


class SimdArch(IntEnum):
    """Vector instruction set used by the likelihood kernels."""

    CPU = 0
    SSE = 1 << 0
    AVX = 1 << 1
    AVX2 = 1 << 2
    AVX512 = 1 << 3


_SIMD_NAMES = {
    SimdArch.CPU: "NONE",
    SimdArch.SSE: "SSE3",
    SimdArch.AVX: "AVX",
    SimdArch.AVX2: "AVX2",
    SimdArch.AVX512: "AVX512",
}


class BrlenLinkage(Enum):
    """How branch lengths are shared among partitions."""

    LINKED = "linked"
    SCALED = "proportional"
    UNLINKED = "unlinked"


class BrlenOptMethod(Enum):
    """Branch length optimisation algorithm; the value is its display name."""

    NEWTON_FAST = "NR-FAST"
    NEWTON_SAFE = "NR-SAFE"
    NEWTON_GLOBAL = "NR-GLOBAL"
    NEWTON_OLDFAST = "legacy NR-FAST"
    NEWTON_OLDSAFE = "legacy NR-SAFE"


@dataclass
class OutputFileNames:
    """Paths of all output files; an empty string means 'not written'."""

    log: str = ""
    checkpoint: str = ""
    start_tree: str = ""
    best_tree: str = ""
    best_tree_collapsed: str = ""
    best_model: str = ""
    partition_trees: str = ""
    ml_trees: str = ""
    bootstrap_trees: str = ""
    support_tree: str = ""
    tbe_support_tree: str = ""
    fbp_support_tree: str = ""
    terrace: str = ""
    binary_msa: str = ""
    bootstrap_msa: str = ""
    rfdist: str = ""
    cons_tree: str = ""
    site_loglh: str = ""
    asr_tree: str = ""
    asr_probs: str = ""
    asr_states: str = ""
    tmp_best_tree: str = ""
    tmp_ml_trees: str = ""
    tmp_bs_trees: str = ""


_DEFAULT_SUFFIXES = {
    "log": "log",
    "checkpoint": "ckp",
    "start_tree": "startTree",
    "best_tree": "bestTree",
    "best_tree_collapsed": "bestTreeCollapsed",
    "best_model": "bestModel",
    "partition_trees": "bestPartitionTrees",
    "ml_trees": "mlTrees",
    "bootstrap_trees": "bootstraps",
    "support_tree": "support",
    "fbp_support_tree": "supportFBP",
    "tbe_support_tree": "supportTBE",
    "terrace": "terrace",
    "binary_msa": "rba",
    "bootstrap_msa": "bootstrapMSA",
    "rfdist": "rfDistances",
    "cons_tree": "consensusTree",
    "asr_tree": "ancestralTree",
    "asr_probs": "ancestralProbs",
    "asr_states": "ancestralStates",
    "site_loglh": "siteLH",
    "tmp_best_tree": "lastTree.TMP",
    "tmp_ml_trees": "mlTrees.TMP",
    "tmp_bs_trees": "bootstraps.TMP",
}

_RUN_MODES = {
    Command.SEARCH: "ML tree search",
    Command.EVALUATE: "Evaluate tree likelihood",
    Command.BOOTSTRAP: "Bootstrapping",
    Command.ALL: "ML tree search + bootstrapping",
    Command.SUPPORT: "Compute bipartition support",
    Command.BSCONVERGE: "A posteriori bootstrap convergence test",
    Command.BSMSA: "Generate bootstrap replicate MSAs",
    Command.TERRACE: "Count/enumerate trees on a phylogenetic terrace",
    Command.CHECK: "Alignment validation",
    Command.PARSE: "Alignment parsing and compression",
    Command.START: "Starting tree generation",
    Command.RFDIST: "RF distance computation",
    Command.CONSENSE: "Build consensus tree",
    Command.ANCESTRAL: "Ancestral state reconstruction",
    Command.SITELH: "Per-site likelihood computation",
}

_METRIC_NAMES = {
    BranchSupportMetric.FBP: "Felsenstein Bootstrap",
    BranchSupportMetric.TBE: "Transfer Bootstrap",
}


def _exists(path: str) -> bool:
    return bool(path) and os.path.exists(path)


def _remove(path: str) -> None:
    if path:
        Path(path).unlink(missing_ok=True)


@dataclass
class Options:
    """All settings of one analysis run."""

    opt_version: int = OPT_VERSION
    cmdline: str = ""
    command: Command = Command.NONE

    use_tip_inner: bool = True
    use_pattern_compression: bool = True
    use_prob_msa: bool = False
    use_rate_scalers: bool = False
    use_repeats: bool = True
    use_rba_partload: bool = True
    use_energy_monitor: bool = True
    use_old_constraint: bool = False
    use_spr_fastclv: bool = True
    use_bs_pars: bool = True
    use_par_pars: bool = True

    optimize_model: bool = True
    optimize_brlen: bool = True

    force_mode: bool = False
    redo_mode: bool = False
    nofiles_mode: bool = False
    write_interim_results: bool = True
    write_bs_msa: bool = False

    random_seed: int = 0
    start_trees: dict = field(default_factory=dict)
    lh_epsilon: float = DEF_LH_EPSILON
    lh_epsilon_brlen_triplet: float = DEF_LH_EPSILON_BRLEN_TRIPLET
    spr_radius: int = -1
    spr_cutoff: float = 1.0
    brlen_linkage: BrlenLinkage = BrlenLinkage.SCALED
    brlen_opt_method: BrlenOptMethod = BrlenOptMethod.NEWTON_FAST
    brlen_min: float = BRLEN_MIN
    brlen_max: float = BRLEN_MAX

    num_searches: int = 1
    terrace_maxsize: int = 100

    num_bootstraps: int = 1000
    bs_metrics: list = field(default_factory=list)
    bootstop_criterion: BootstopCriterion = BootstopCriterion.NONE
    bootstop_cutoff: float = 0.03
    bootstop_interval: int = BOOTSTOP_INTERVAL
    bootstop_permutations: int = BOOTSTOP_PERMUTES

    outgroup_taxa: list = field(default_factory=list)

    tbe_naive: bool = False
    consense_cutoff: int = 50

    tree_file: str = ""
    constraint_tree_file: str = ""
    msa_file: str = ""
    model_file: str = ""
    weights_file: str = ""
    outfile_prefix: str = ""
    outfile_names: OutputFileNames = field(default_factory=OutputFileNames)

    num_threads: int = 1
    num_threads_max: int = 1
    num_ranks: int = 1
    num_workers: int = 1
    num_workers_max: int = UINT_MAX
    simd_arch: int = SimdArch.CPU
    thread_pinning: bool = False

    def coarse(self) -> bool:
        """True if several tree searches run in parallel."""
        return self.num_workers > 1

    def simd_arch_name(self) -> str:
        try:
            return _SIMD_NAMES[SimdArch(self.simd_arch)]
        except ValueError:
            return "UNKNOWN"

    def consense_type_name(self) -> str:
        if self.consense_cutoff == 0:
            return "MRE"
        if self.consense_cutoff == 50:
            return "MR"
        if self.consense_cutoff == 100:
            return "STRICT"
        return f"MR{self.consense_cutoff}"

    def output_fname(self, suffix: str) -> str:
        """Default name of an output file with the given suffix."""
        if self.nofiles_mode:
            return ""
        base = self.outfile_prefix or self.msa_file
        return f"{base}.raxml.{suffix}"

    def set_default_outfiles(self) -> None:
        """Give every output file that has no name yet its default name."""
        for f in fields(OutputFileNames):
            if not getattr(self.outfile_names, f.name):
                setattr(self.outfile_names, f.name, self.output_fname(_DEFAULT_SUFFIXES[f.name]))

    def checkp_file(self, context: ParallelContext | None = None) -> str:
        """Checkpoint file name; per-rank in coarse-grained multi-rank runs."""
        ckp = self.outfile_names.checkpoint
        if context is not None and self.coarse() and context.num_ranks > 1:
            return f"{ckp}.{context.rank_id}"
        return ckp

    def support_tree_file(self, metric: BranchSupportMetric = BranchSupportMetric.FBP) -> str:
        names = self.outfile_names
        if len(self.bs_metrics) < 2:
            return names.support_tree
        if metric is BranchSupportMetric.FBP:
            return names.fbp_support_tree
        if metric is BranchSupportMetric.TBE:
            return names.tbe_support_tree
        return names.support_tree

    def bootstrap_msa_file(self, bsnum: int) -> str:
        base = self.outfile_names.bootstrap_msa
        return f"{base}.{bsnum}.phy" if base else ""

    def bootstrap_partition_file(self) -> str:
        base = self.outfile_names.bootstrap_msa
        return f"{base}.partition" if base else ""

    def cons_tree_file(self) -> str:
        return self.outfile_names.cons_tree + self.consense_type_name()

    def result_files_exist(self) -> bool:
        """True if any result file of the current command is already present."""
        if self.nofiles_mode:
            return False
        n = self.outfile_names
        cmd = self.command
        if cmd in (Command.EVALUATE, Command.SEARCH):
            paths = [n.best_tree, n.best_tree_collapsed, n.best_model, n.partition_trees]
        elif cmd is Command.BOOTSTRAP:
            paths = [n.bootstrap_trees]
        elif cmd is Command.ALL:
            paths = [n.best_tree, n.bootstrap_trees, self.support_tree_file(),
                     n.best_model, n.partition_trees, n.best_tree_collapsed]
        elif cmd is Command.SUPPORT:
            paths = [self.support_tree_file()]
        elif cmd is Command.TERRACE:
            paths = [n.terrace]
        elif cmd is Command.START:
            paths = [n.start_tree]
        elif cmd is Command.BSMSA:
            paths = [self.bootstrap_msa_file(1), self.bootstrap_partition_file()]
        elif cmd is Command.RFDIST:
            paths = [n.rfdist]
        elif cmd is Command.CONSENSE:
            paths = [self.cons_tree_file()]
        elif cmd is Command.ANCESTRAL:
            paths = [n.asr_tree, n.asr_probs, n.asr_states]
        elif cmd is Command.SITELH:
            paths = [n.site_loglh]
        else:
            paths = []
        return any(_exists(p) for p in paths)

    def remove_result_files(self) -> None:
        """Delete the result files of the current command."""
        n = self.outfile_names
        cmd = self.command
        to_remove: list[str] = []
        if cmd in (Command.SEARCH, Command.ALL, Command.EVALUATE):
            to_remove += [n.best_tree, n.best_tree_collapsed, n.best_model,
                          n.partition_trees, n.ml_trees]
        if cmd in (Command.BOOTSTRAP, Command.ALL):
            to_remove.append(n.bootstrap_trees)
        if cmd in (Command.SUPPORT, Command.ALL):
            to_remove.append(self.support_tree_file())
        if cmd is Command.TERRACE:
            to_remove.append(n.terrace)
        if cmd is Command.START:
            to_remove.append(n.start_tree)
        if cmd is Command.BSMSA:
            bsnum = 1
            while _exists(self.bootstrap_msa_file(bsnum)):
                _remove(self.bootstrap_msa_file(bsnum))
                bsnum += 1
            to_remove.append(self.bootstrap_partition_file())
        if cmd is Command.RFDIST:
            to_remove.append(n.rfdist)
        if cmd is Command.CONSENSE:
            to_remove.append(self.cons_tree_file())
        if cmd is Command.SITELH:
            to_remove.append(n.site_loglh)
        if cmd is Command.ANCESTRAL:
            to_remove += [n.asr_tree, n.asr_probs, n.asr_states]
        for path in to_remove:
            _remove(path)

    def remove_tmp_files(self) -> None:
        n = self.outfile_names
        for path in (n.tmp_best_tree, n.tmp_ml_trees, n.tmp_bs_trees):
            _remove(path)

    def describe(self, start_time: datetime | str) -> str:
        """Multi-line summary of the analysis settings."""
        when = start_time.strftime(TIME_FORMAT) if isinstance(start_time, datetime) else start_time
        cmd = self.command
        lines = [f"Called at {when} as follows:", "", self.cmdline, "", "Analysis options:"]

        run_mode = "  run mode: " + _RUN_MODES.get(cmd, "")
        if cmd in (Command.ALL, Command.SUPPORT):
            run_mode += " (" + " + ".join(_METRIC_NAMES[m] for m in self.bs_metrics) + ")"
        if cmd is Command.CONSENSE:
            run_mode += f" ({self.consense_type_name()})"
        lines.append(run_mode)

        starts = []
        for kind in StartingTree:
            if kind not in self.start_trees:
                continue
            if kind is StartingTree.USER:
                starts.append("user")
            else:
                starts.append(f"{kind.value} ({self.start_trees[kind]})")
        lines.append("  start tree(s): " + " + ".join(starts))

        if cmd in (Command.BOOTSTRAP, Command.ALL, Command.BSMSA):
            bs = "  bootstrap replicates: " + ("parsimony (" if self.use_bs_pars else "random (")
            if self.bootstop_criterion is BootstopCriterion.NONE:
                bs += f"{self.num_bootstraps})"
            else:
                bs += (f"max: {self.num_bootstraps}) + bootstopping "
                       f"({self.bootstop_criterion.value}, cutoff: {self.bootstop_cutoff:g})")
            lines.append(bs)

        if self.constraint_tree_file:
            algo = "OLD" if self.use_old_constraint else "NEW"
            lines.append(f"  topological constraint: {self.constraint_tree_file} (algorithm: {algo})")

        if self.weights_file:
            lines.append(f"  site weights: {self.weights_file}")

        if self.outgroup_taxa:
            lines.append("  outgroup taxa: " + ",".join(self.outgroup_taxa))

        lines.append(f"  random seed: {self.random_seed}")

        if cmd in (Command.BOOTSTRAP, Command.ALL, Command.SEARCH, Command.EVALUATE,
                   Command.PARSE, Command.ANCESTRAL):
            switches = (
                ("tip-inner", self.use_tip_inner),
                ("pattern compression", self.use_pattern_compression),
                ("per-rate scalers", self.use_rate_scalers),
                ("site repeats", self.use_repeats),
            )
            for label, flag in switches:
                lines.append(f"  {label}: {'ON' if flag else 'OFF'}")
            lines.append(f"  logLH epsilon: general: {self.lh_epsilon:g}, "
                         f"brlen-triplet: {self.lh_epsilon_brlen_triplet:g}")

            if cmd in (Command.SEARCH, Command.ALL, Command.BOOTSTRAP):
                radius = str(self.spr_radius) if self.spr_radius > 0 else "AUTO"
                lines.append(f"  fast spr radius: {radius}")
                cutoff = f"{self.spr_cutoff:g}" if self.spr_cutoff > 0.0 else "OFF"
                lines.append(f"  spr subtree cutoff: {cutoff}")
                fastclv = "ON" if self.use_spr_fastclv else "OFF"
                lines.append(f"  fast CLV updates: {fastclv}")

            if self.optimize_brlen:
                how = f"ML estimate, algorithm: {self.brlen_opt_method.value}"
            else:
                how = "user-specified"
            lines.append(f"  branch lengths: {self.brlen_linkage.value} ({how})")

        lines.append(f"  SIMD kernels: {self.simd_arch_name()}")

        par = "  parallelization: "
        if self.coarse():
            par += f"coarse-grained ({self.num_workers} workers), "
        elif self.num_workers_max > 1 and self.num_workers == 0:
            par += "coarse-grained (auto), "

        if self.num_ranks > 1 and self.num_threads > 1:
            par += f"hybrid MPI+PTHREADS ({self.num_ranks} ranks x {self.num_threads} threads)"
        elif self.num_ranks > 1 and self.num_threads_max > 1 and self.num_threads == 0:
            par += f"hybrid MPI ({self.num_ranks} ranks) + PTHREADS (auto)"
        elif self.num_ranks > 1:
            par += f"MPI ({self.num_ranks} ranks)"
        elif self.num_threads > 1:
            par += f"PTHREADS ({self.num_threads} threads)"
        elif self.num_threads == 0 and self.num_threads_max > 1:
            par += "PTHREADS (auto)"
        else:
            par += "NONE/sequential"

        if self.num_threads > 1:
            pinning = "ON" if self.thread_pinning else "OFF"
            par += f", thread pinning: {pinning}"
        lines.append(par)
        lines.append("")

        return "\n".join(lines) + "\n"