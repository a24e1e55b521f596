"""
Difficulty Chart Generator
==========================
Generates charts describing what the puzzle generator produces across
board sizes: logic-solved fraction, search effort, clue counts and
clue-value mix.
Run:  python generate_difficulty_charts.py --puzzles 5
Output: difficulty_charts/ folder with 4 PNG files.
"""

import sys
import os
import argparse
import numpy as np
from typing import Dict, Any, List, Tuple
from collections import defaultdict

# Ensure project root is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for file output
import matplotlib.pyplot as plt

from benchmark_generator import run_single_puzzle
from slitherlink.config import GeneratorConfig

# ──────────────────────────────────────────────────────────────
# Palette
# ──────────────────────────────────────────────────────────────
CLUE_COLORS = {
    "zero": "#D1495B",
    "one": "#EDAE49",
    "two": "#66A182",
    "three": "#00798C",
}
PAPER = "#FAFAF7"
INK = "#2E2E2E"
RULE = "#D0D0C8"
BAND = "#EDAE49"       # target band for the logic fraction
LINE_COLOR = "#00798C"


def setup_style():
    """Light print-style theme shared by every chart."""
    plt.rcParams.update({
        "figure.facecolor": PAPER,
        "savefig.facecolor": PAPER,
        "axes.facecolor": "white",
        "axes.edgecolor": RULE,
        "axes.labelcolor": INK,
        "axes.titleweight": "semibold",
        "axes.titlesize": 15,
        "axes.labelsize": 12,
        "text.color": INK,
        "xtick.color": INK,
        "ytick.color": INK,
        "grid.color": RULE,
        "grid.linestyle": "--",
        "grid.alpha": 0.6,
        "font.size": 12,
        "legend.frameon": False,
        "figure.dpi": 150,
        "savefig.dpi": 150,
        "savefig.bbox": "tight",
    })


# ──────────────────────────────────────────────────────────────
# Generation Runs
# ──────────────────────────────────────────────────────────────
def run_benchmark(puzzles_per_size: int, sizes: List[Tuple[int, int]],
                  retries: int = 1, seed: int = 0) -> Dict[str, List[Dict[str, Any]]]:
    """
    Generate puzzles for every size.
    Returns rows grouped by size key "RxC".
    """
    results = defaultdict(list)
    config = GeneratorConfig(max_puzzle_retries=retries)

    total = len(sizes) * puzzles_per_size
    done = 0

    for rows, cols in sizes:
        key = f"{rows}x{cols}"
        for p in range(puzzles_per_size):
            done += 1
            print(f"  [{done}/{total}] {key} puzzle {p+1}/{puzzles_per_size} ...", end="\r")
            entry = run_single_puzzle(done, rows, cols, seed=seed + done,
                                      config=config, verify=False)
            results[key].append(entry)

    print()
    return results


# ──────────────────────────────────────────────────────────────
# Chart Generators
# ──────────────────────────────────────────────────────────────
def _finish_axes(ax):
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)


def chart_1_logic_fraction(results, out_dir, logic_range=(0.25, 0.75)):
    """Box plot: logic-solved fraction per size, with the target band shaded."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = list(results.keys())
    data = [[r["logic_fraction"] for r in results[s]] for s in sizes]

    ax.axhspan(logic_range[0], logic_range[1], color=BAND, alpha=0.12, zorder=0)
    ax.boxplot(data, patch_artist=True,
               boxprops=dict(facecolor=LINE_COLOR, alpha=0.6),
               medianprops=dict(color=INK, linewidth=2))
    ax.set_xticks(np.arange(1, len(sizes) + 1))
    ax.set_xticklabels(sizes)
    ax.set_ylim(0, 1.05)
    ax.set_xlabel("Grid Size")
    ax.set_ylabel("Logic-solved fraction")
    ax.set_title("Share of Edges Decided Without Search", fontsize=18, pad=15)
    ax.grid(axis="y", zorder=0)
    _finish_axes(ax)

    fig.savefig(os.path.join(out_dir, "1_logic_fraction.png"))
    plt.close(fig)
    print("  - Chart 1: Logic Fraction")


def chart_2_effort_vs_clues(results, out_dir):
    """Scatter: single-solution probe visits against remaining clue ratio."""
    fig, ax = plt.subplots(figsize=(10, 6))
    for size, entries in results.items():
        ratio = np.array([e["clues"] / e["cells"] for e in entries])
        visits = np.array([e["difficulty_visits"] for e in entries])
        ax.scatter(ratio, visits, s=60, alpha=0.8, label=size, zorder=3)

    ax.set_yscale("log")
    ax.set_xlabel("Clues shown / cells")
    ax.set_ylabel("Probe node visits (log)")
    ax.set_title("Search Effort vs Clue Density", fontsize=18, pad=15)
    ax.legend(loc="upper right")
    ax.grid(True, zorder=0)
    _finish_axes(ax)

    fig.savefig(os.path.join(out_dir, "2_effort_vs_clues.png"))
    plt.close(fig)
    print("  - Chart 2: Effort vs Clues")


def chart_3_clue_mix(results, out_dir):
    """Stacked bar: average count of each clue value per size."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = list(results.keys())
    x = np.arange(len(sizes))
    bottom = np.zeros(len(sizes))

    for tag in ["zero", "one", "two", "three"]:
        values = np.array([np.mean([r[tag] for r in results[s]]) for s in sizes])
        ax.bar(x, values, 0.55, bottom=bottom, label=tag.title(),
               color=CLUE_COLORS[tag], edgecolor="none", alpha=0.9, zorder=3)
        bottom += values

    ax.set_xticks(x)
    ax.set_xticklabels(sizes)
    ax.set_ylabel("Average clue count")
    ax.set_title("Clue Value Mix", fontsize=18, pad=15)
    ax.legend(loc="upper left")
    ax.grid(axis="y", zorder=0)
    _finish_axes(ax)

    fig.savefig(os.path.join(out_dir, "3_clue_mix.png"))
    plt.close(fig)
    print("  - Chart 3: Clue Mix")


def chart_4_generation_time(results, out_dir):
    """Line chart: generation time and solver steps vs grid size."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sizes = sorted(results.keys(),
                   key=lambda s: int(s.split("x")[0]) * int(s.split("x")[1]))
    times = [np.mean([r["time"] for r in results[s]]) for s in sizes]
    steps = [np.mean([r["solver_steps"] for r in results[s]]) for s in sizes]

    ax.plot(sizes, times, "o-", color=LINE_COLOR, linewidth=2.5, markersize=8,
            label="Time (s)", zorder=3)
    ax.set_xlabel("Grid Size")
    ax.set_ylabel("Average Time (seconds)")
    ax2 = ax.twinx()
    ax2.plot(sizes, steps, "s--", color=BAND, linewidth=2, markersize=7,
             label="Solver steps", zorder=3)
    ax2.set_ylabel("Average solver steps")
    ax.set_title("Generation Cost vs Grid Size", fontsize=18, pad=15)
    ax.grid(True, zorder=0)
    _finish_axes(ax)

    fig.savefig(os.path.join(out_dir, "4_generation_time.png"))
    plt.close(fig)
    print("  - Chart 4: Generation Time")


# ──────────────────────────────────────────────────────────────
# Summary Table
# ──────────────────────────────────────────────────────────────
def print_summary(results):
    """Per-size averages of the generated puzzles."""
    print("\n" + "=" * 70)
    print("  GENERATION SUMMARY")
    print("=" * 70)
    print(f"  {'Size':<8} {'Puzzles':>8} {'Clues':>8} {'Logic':>8} {'Visits':>10} {'On target':>10}")
    print("-" * 70)
    for size, entries in results.items():
        clues = np.mean([e["clues"] for e in entries])
        logic = np.mean([e["logic_fraction"] for e in entries])
        visits = np.median([e["difficulty_visits"] for e in entries])
        met = sum(1 for e in entries if e["meets_targets"])
        print(f"  {size:<8} {len(entries):>8} {clues:>8.1f} {logic:>8.2f} {visits:>10.0f} {met:>6}/{len(entries)}")
    print("=" * 70)


# ──────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────
def main():
    parser = argparse.ArgumentParser(description="Generate Difficulty Charts")
    parser.add_argument("--puzzles", type=int, default=5,
                        help="Puzzles per size (default: 5)")
    parser.add_argument("--retries", type=int, default=1,
                        help="max_puzzle_retries for every puzzle (default: 1)")
    parser.add_argument("--seed", type=int, default=0, help="Base seed")
    parser.add_argument("--quick", action="store_true",
                        help="Quick mode: fewer sizes for faster testing")
    args = parser.parse_args()

    out_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                           "difficulty_charts")
    os.makedirs(out_dir, exist_ok=True)

    setup_style()

    if args.quick:
        sizes = [(4, 4), (5, 5)]
    else:
        sizes = [(4, 4), (5, 5), (6, 6), (7, 7)]

    print(f"  Puzzles per size : {args.puzzles}")
    print(f"  Sizes            : {sizes}")
    print(f"  Output folder    : {out_dir}")
    print()

    print("Phase 1/2: Generating Puzzles...")
    results = run_benchmark(args.puzzles, sizes, args.retries, args.seed)

    print("\nPhase 2/2: Generating Charts...")
    chart_1_logic_fraction(results, out_dir)
    chart_2_effort_vs_clues(results, out_dir)
    chart_3_clue_mix(results, out_dir)
    chart_4_generation_time(results, out_dir)

    print_summary(results)
    print(f"All 4 charts saved to: {out_dir}")


if __name__ == "__main__":
    main()
