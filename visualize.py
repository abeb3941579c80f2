# visualize.py
import os

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def _ensure_parent(outpath):
    parent = os.path.dirname(outpath)
    if parent:
        os.makedirs(parent, exist_ok=True)


def plot_outcomes(counters, outpath):
    _ensure_parent(outpath)
    labels = ["Hits", "Misses", "Evictions"]
    values = [counters.hits, counters.misses, counters.evictions]
    plt.figure(figsize=(6, 4))
    bars = plt.bar(labels, values, color=["tab:green", "tab:orange", "tab:red"])
    plt.bar_label(bars)
    plt.title(f"Cache Outcomes ({counters.accesses} accesses)")
    plt.ylabel("Count")
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
    return outpath


def plot_hit_miss_rate(counters, outpath):
    _ensure_parent(outpath)
    plt.figure(figsize=(4, 4))
    if counters.accesses:
        plt.pie(
            [counters.hits, counters.misses],
            labels=[f"Hit ({counters.hits})", f"Miss ({counters.misses})"],
            autopct="%1.1f%%",
        )
    else:
        plt.text(0.5, 0.5, "no data accesses", ha="center", va="center")
        plt.axis("off")
    plt.title(f"Cache Hit/Miss Rate ({counters.hit_rate:.1%} hits)")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
    return outpath


def plot_set_occupancy(occupancy, associativity, outpath):
    """
    Valid lines per set once the trace is done.
    """
    _ensure_parent(outpath)
    occupancy = np.asarray(occupancy)
    plt.figure(figsize=(8, 4))
    plt.plot(np.arange(occupancy.size), occupancy, marker='.', linewidth=0.5)
    plt.axhline(associativity, color="tab:red", linestyle="--", label=f"E = {associativity}")
    plt.ylim(0, associativity + 1)
    plt.title("Set Occupancy")
    plt.xlabel("Set Index")
    plt.ylabel("Valid Lines")
    plt.legend()
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
    return outpath
