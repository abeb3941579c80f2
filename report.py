# report.py
import json
import os

RESULTS_FILE = ".csim_results"


def print_summary(counters):
    print(f"hits:{counters.hits} misses:{counters.misses} evictions:{counters.evictions}")


def save_results(counters, path=RESULTS_FILE):
    """
    Write "hits misses evictions" to the result file read by the grading scripts.
    Only called once a run has completed.
    """
    with open(path, "w") as f:
        f.write(f"{counters.hits} {counters.misses} {counters.evictions}\n")
    return path


def build_summary(simulator, trace_path=None):
    counters = simulator.counters
    return {
        "trace_file": trace_path,
        **counters.as_dict(),
        "accesses": counters.accesses,
        "hit_rate": counters.hit_rate,
        "data_records": simulator.records,
        "skipped_records": simulator.skipped,
        "cache": simulator.cache.stats(),
    }


def save_summary(summary, results_dir="results", filename="summary.json"):
    os.makedirs(results_dir, exist_ok=True)
    path = os.path.join(results_dir, filename)
    with open(path, "w") as f:
        json.dump(summary, f, indent=2)
    return path
