"""Benchmark: memory retained by repeated load/destroy cycles."""
from __future__ import annotations

import json
import sys
import tracemalloc
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from samples import SAMPLE_STUDY
from studyhost import SandboxEvaluator, StudyRegistry

_ITERATIONS: int = 300


def bench_reload_memory() -> dict[str, object]:
    """Benchmark memory growth while plugins are evaluated, registered and destroyed.

    Returns
    -------
    dict with keys: operation, iterations, peak_memory_kb, current_memory_kb.
    """
    evaluator = SandboxEvaluator()
    registry = StudyRegistry("bench")

    tracemalloc.start()
    snapshot_before = tracemalloc.take_snapshot()

    for _ in range(_ITERATIONS):
        evaluated = evaluator.evaluate_plugin(SAMPLE_STUDY, "average", "<bench>")
        registry.register("average", evaluated.study)
        registry.initialize_all(None)
        registry.destroy_all()
        evaluated.timers.cancel_all()

    snapshot_after = tracemalloc.take_snapshot()
    tracemalloc.stop()

    stats = snapshot_after.compare_to(snapshot_before, "lineno")
    total_bytes = sum(stat.size_diff for stat in stats if stat.size_diff > 0)
    peak_kb = round(total_bytes / 1024, 2)

    result: dict[str, object] = {
        "operation": "studyhost_reload_memory",
        "iterations": _ITERATIONS,
        "peak_memory_kb": peak_kb,
        "current_memory_kb": peak_kb,
        "ops_per_second": 0.0,
        "avg_latency_ms": 0.0,
    }
    print(f"[bench_memory] {result['operation']}: peak {peak_kb:.2f} KB over {_ITERATIONS} iterations")
    return result


if __name__ == "__main__":
    result = bench_reload_memory()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "memory_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
