"""Benchmark: plugin evaluation and update-drain throughput.

Measures how many plugin sources can be evaluated per second in the
sandbox, and how many queued updates the lifecycle coordinator delivers
per second to a loaded study.
"""
from __future__ import annotations

import asyncio
import json
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from samples import SAMPLE_CANDLES, SAMPLE_STUDY
from studyhost import RuntimeConfig, SandboxEvaluator, StudyContext, StudyManager

_ITERATIONS: int = 1_000
_UPDATE_ITERATIONS: int = 2_000


def _result(operation: str, iterations: int, total: float) -> dict[str, object]:
    result: dict[str, object] = {
        "operation": operation,
        "iterations": iterations,
        "total_seconds": round(total, 4),
        "ops_per_second": round(iterations / total, 1),
        "avg_latency_ms": round(total / iterations * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def bench_evaluate_throughput() -> dict[str, object]:
    """Benchmark sandbox evaluation of one plugin source.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    evaluator = SandboxEvaluator()
    start = time.perf_counter()
    for _ in range(_ITERATIONS):
        evaluated = evaluator.evaluate_plugin(SAMPLE_STUDY, "average", "<bench>")
        evaluated.timers.cancel_all()
    total = time.perf_counter() - start
    return _result("studyhost_evaluate_throughput", _ITERATIONS, total)


def bench_update_throughput() -> dict[str, object]:
    """Benchmark ordered update delivery through the coordinator queue.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """

    async def drain(root: Path) -> float:
        manager = StudyManager(RuntimeConfig(plugin_root=root, drain_yield_seconds=0.0))
        await manager.initialize(StudyContext(timeframes=("1m",)))
        start = time.perf_counter()
        for _ in range(_UPDATE_ITERATIONS):
            manager.update_all_studies(SAMPLE_CANDLES, [])
        await manager.join()
        elapsed = time.perf_counter() - start
        await manager.close()
        return elapsed

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        (root / "average.py").write_text(SAMPLE_STUDY, encoding="utf-8")
        total = asyncio.run(drain(root))
    return _result("studyhost_update_throughput", _UPDATE_ITERATIONS, total)


if __name__ == "__main__":
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)

    for bench_fn, fname in [
        (bench_evaluate_throughput, "evaluate_throughput_baseline.json"),
        (bench_update_throughput, "update_throughput_baseline.json"),
    ]:
        result = bench_fn()
        output_path = results_dir / fname
        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2)
        print(f"Results saved to {output_path}")
