"""Thread-group parallel context: barriers, reductions and broadcasts."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Sequence


class ReduceOp(Enum):
    """Element-wise reduction operator."""

    SUM = "sum"
    MAX = "max"
    MIN = "min"

    def combine(self, values: Iterable[float]) -> float:
        values = list(values)
        if self is ReduceOp.SUM:
            return float(sum(values, 0.0))
        if self is ReduceOp.MAX:
            return max(values)
        return min(values)


@dataclass(eq=False)
class ThreadGroup:
    """A group of threads that share a barrier and a reduction buffer."""

    group_id: int
    local_group_id: int
    num_threads: int
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    reduction_buf: list = field(default_factory=list, repr=False)
    barrier: threading.Barrier = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.barrier = threading.Barrier(max(self.num_threads, 1))
        self.reduction_buf = [None] * self.num_threads


class ParallelContext:
    """Coordinates the threads of one process (rank) of a parallel run.

    The calling thread of :meth:`init_threads` becomes thread 0 and is expected
    to run its share of the work itself; the other threads run ``thread_main``.
    """

    def __init__(self, num_ranks: int = 1, rank_id: int = 0) -> None:
        if num_ranks < 1:
            raise ValueError("Number of ranks must be positive")
        if not 0 <= rank_id < num_ranks:
            raise ValueError(f"Invalid rank id: {rank_id}")
        self.num_ranks = num_ranks
        self.rank_id = rank_id
        self.num_threads = 1
        self.num_groups = 1
        self.local_rank_id = 0
        self._groups: list[ThreadGroup] = []
        self._threads: list[threading.Thread] = []
        self._local = threading.local()
        self._global_barrier = threading.Barrier(1)
        self._parallel_buf: Any = None
        self._errors: list[BaseException] = []
        self._errors_lock = threading.Lock()

    # ---- set-up and tear-down -------------------------------------------

    def init_threads(
        self,
        num_threads: int,
        num_workers: int,
        thread_main: Callable[[], None],
    ) -> None:
        """Create the thread groups and start all threads but the calling one."""
        if num_threads < 1:
            raise ValueError("Number of threads must be positive")
        self.num_threads = num_threads
        self.num_groups = max(num_workers, 1)
        self.local_rank_id = self.rank_id if self.num_ranks > self.num_groups else 0

        groups_per_rank = self.num_groups // self.num_ranks if self.num_groups > 1 else 1
        groups_per_rank = max(groups_per_rank, 1)
        group_size = num_threads // groups_per_rank
        if group_size < 1 or group_size * groups_per_rank != num_threads:
            raise ValueError(
                f"Cannot split {num_threads} threads into {groups_per_rank} equal groups"
            )
        start_grp_id = self.rank_id * groups_per_rank if self.num_groups > 1 else 0
        self._groups = [
            ThreadGroup(start_grp_id + i, i, group_size) for i in range(groups_per_rank)
        ]
        self._global_barrier = threading.Barrier(num_threads)
        self._errors.clear()

        for i in range(num_threads):
            grp = self._groups[i // group_size]
            local_id = i % group_size
            if i == 0:
                self._bind(0, local_id, grp)
            else:
                thread = threading.Thread(
                    target=self._start_thread,
                    args=(i, local_id, grp, thread_main),
                    daemon=True,
                )
                self._threads.append(thread)
        for thread in self._threads:
            thread.start()

    def _bind(self, thread_id: int, local_thread_id: int, grp: ThreadGroup) -> None:
        self._local.thread_id = thread_id
        self._local.local_thread_id = local_thread_id
        self._local.group = grp

    def _start_thread(
        self,
        thread_id: int,
        local_thread_id: int,
        grp: ThreadGroup,
        thread_main: Callable[[], None],
    ) -> None:
        self._bind(thread_id, local_thread_id, grp)
        try:
            thread_main()
        except BaseException as exc:  # reported by finalize()
            with self._errors_lock:
                self._errors.append(exc)
            self._abort_barriers()

    def _abort_barriers(self) -> None:
        self._global_barrier.abort()
        for grp in self._groups:
            grp.barrier.abort()

    def finalize(self) -> None:
        """Wait for all worker threads and release the thread groups."""
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        self._groups.clear()
        errors = list(self._errors)
        self._errors.clear()
        if errors:
            raise RuntimeError("A worker thread failed") from errors[0]

    # ---- identity ---------------------------------------------------------

    def thread_group(self, group_id: int) -> ThreadGroup:
        if 0 <= group_id < len(self._groups):
            return self._groups[group_id]
        raise IndexError(f"Invalid thread group id: {group_id}")

    def num_procs(self) -> int:
        return self.num_ranks * self.num_threads

    def num_local_groups(self) -> int:
        return len(self._groups)

    def threads_per_group(self) -> int:
        return self.num_procs() // self.num_groups

    def ranks_per_group(self) -> int:
        return self.num_ranks // self.num_groups

    def coarse(self) -> bool:
        return self.num_ranks > 1 and self.num_groups > 1

    def thread_id(self) -> int:
        return getattr(self._local, "thread_id", 0)

    def local_thread_id(self) -> int:
        return getattr(self._local, "local_thread_id", 0)

    def _group(self) -> ThreadGroup | None:
        return getattr(self._local, "group", None)

    def group_id(self) -> int:
        grp = self._group()
        return grp.group_id if grp else 0

    def local_group_id(self) -> int:
        grp = self._group()
        return grp.local_group_id if grp else 0

    def proc_id(self) -> int:
        return self.rank_id * self.num_threads + self.thread_id()

    def local_proc_id(self) -> int:
        return self.local_rank_id * self.num_threads + self.local_thread_id()

    def master(self) -> bool:
        return self.proc_id() == 0

    def master_rank(self) -> bool:
        return self.rank_id == 0

    def master_thread(self) -> bool:
        return self.thread_id() == 0

    def group_master(self) -> bool:
        return self.local_proc_id() == 0

    def group_master_thread(self) -> bool:
        return self.local_thread_id() == 0

    # ---- synchronisation ----------------------------------------------------

    def barrier(self) -> None:
        """Wait for all threads of the calling thread's group."""
        grp = self._group()
        if grp is None or grp.num_threads == 1:
            return
        grp.barrier.wait()

    def global_barrier(self) -> None:
        """Wait for all threads of this context."""
        if self.num_threads > 1:
            self._global_barrier.wait()

    def reduce(self, data: Sequence[float], op: ReduceOp) -> list[float]:
        """Reduce ``data`` element-wise over the threads of the calling thread's group."""
        op = ReduceOp(op)
        grp = self._group()
        if grp is None or grp.num_threads == 1:
            return list(data)

        self.barrier()
        grp.reduction_buf[self.local_thread_id()] = list(data)
        self.barrier()
        contributions = list(grp.reduction_buf)
        return [op.combine(column) for column in zip(*contributions)]

    def broadcast(self, source_id: int, data: Any = None) -> Any:
        """Return the value passed by thread ``source_id`` in every thread."""
        if not 0 <= source_id < self.num_threads:
            raise ValueError(f"Invalid source thread id: {source_id}")
        if self.thread_id() == source_id:
            self._parallel_buf = data
        self.global_barrier()
        result = self._parallel_buf
        self.global_barrier()
        return result