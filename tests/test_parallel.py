import threading

import pytest

from phylorun.parallel import ParallelContext, ReduceOp, ThreadGroup


def run_all(ctx, num_threads, num_workers, body):
    """Run ``body(ctx)`` on every thread and collect results by thread id."""
    results = {}
    lock = threading.Lock()

    def thread_main():
        value = body(ctx)
        with lock:
            results[ctx.thread_id()] = value

    ctx.init_threads(num_threads, num_workers, thread_main)
    thread_main()
    ctx.finalize()
    return results


def test_thread_ids_are_distinct():
    ctx = ParallelContext()
    results = run_all(ctx, 4, 1, lambda c: (c.thread_id(), c.local_thread_id()))
    assert sorted(results) == [0, 1, 2, 3]
    assert all(tid == lid for tid, lid in results.values())


def test_reduce_sum_max_min_single_group():
    ctx = ParallelContext()

    def body(c):
        tid = float(c.thread_id())
        return (
            c.reduce([tid, 1.0], ReduceOp.SUM),
            c.reduce([tid], ReduceOp.MAX),
            c.reduce([tid], ReduceOp.MIN),
        )

    results = run_all(ctx, 4, 1, body)
    expected_sum = [float(sum(range(4))), 4.0]
    for s, mx, mn in results.values():
        assert s == expected_sum
        assert mx == [3.0]
        assert mn == [0.0]


def test_reduce_per_group():
    ctx = ParallelContext()
    results = run_all(
        ctx,
        4,
        2,
        lambda c: (c.group_id(), c.reduce([float(c.thread_id())], ReduceOp.SUM)),
    )
    by_group = {}
    for tid, (gid, _) in results.items():
        by_group.setdefault(gid, []).append(tid)
    assert sorted(by_group) == [0, 1]
    for gid, tids in by_group.items():
        for tid in tids:
            assert results[tid][1] == [float(sum(tids))]


def test_broadcast_from_source():
    ctx = ParallelContext()
    results = run_all(
        ctx, 3, 1, lambda c: c.broadcast(2, "payload" if c.thread_id() == 2 else None)
    )
    assert set(results.values()) == {"payload"}
    assert len(results) == 3


def test_single_thread_reduce_returns_copy():
    ctx = ParallelContext()
    ctx.init_threads(1, 1, lambda: None)
    data = [1.5, 2.5]
    out = ctx.reduce(data, ReduceOp.SUM)
    assert out == data
    assert out is not data
    ctx.finalize()


def test_counts_and_groups():
    ctx = ParallelContext()
    ctx.init_threads(1, 1, lambda: None)
    assert ctx.num_procs() == 1
    assert ctx.threads_per_group() == 1
    grp = ctx.thread_group(0)
    assert isinstance(grp, ThreadGroup) and grp.num_threads == 1
    with pytest.raises(IndexError, match="Invalid thread group id"):
        ctx.thread_group(5)
    ctx.finalize()


def test_proc_id_uses_rank():
    ctx = ParallelContext(num_ranks=2, rank_id=1)
    ctx.init_threads(2, 1, lambda: None)
    assert ctx.proc_id() == ctx.num_threads
    assert ctx.master() is False
    assert ctx.master_thread() is True
    assert ctx.num_procs() == 2 * ctx.num_threads
    ctx.finalize()


def test_uneven_group_split_rejected():
    ctx = ParallelContext()
    with pytest.raises(ValueError):
        ctx.init_threads(3, 2, lambda: None)


def test_invalid_rank_rejected():
    with pytest.raises(ValueError):
        ParallelContext(num_ranks=2, rank_id=2)


def test_worker_failure_reported_by_finalize():
    ctx = ParallelContext()

    def worker():
        raise KeyError("boom")

    ctx.init_threads(2, 1, worker)
    with pytest.raises(threading.BrokenBarrierError):
        ctx.global_barrier()
    with pytest.raises(RuntimeError) as info:
        ctx.finalize()
    assert isinstance(info.value.__cause__, KeyError)


def test_reduce_op_combine():
    assert ReduceOp.SUM.combine([1.0, 2.0]) == 3.0
    assert ReduceOp.MAX.combine([1.0, 2.0]) == 2.0
    assert ReduceOp.MIN.combine([1.0, 2.0]) == 1.0