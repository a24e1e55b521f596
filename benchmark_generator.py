import sys
import os
import time
import csv
import argparse
from typing import Dict, Any, Optional

# Add project root to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from slitherlink.config import GeneratorConfig
from slitherlink.generators.puzzle_generator import generate_puzzle
from slitherlink.solvers.backtracking_solver import solve_slitherlink


def run_single_puzzle(puzzle_id: int, rows: int, cols: int,
                      seed: Optional[int] = None,
                      config: Optional[GeneratorConfig] = None,
                      verify: bool = True) -> Dict[str, Any]:
    """
    Generates one puzzle and flattens its metrics into a CSV row.
    """
    start_time = time.time()
    puzzle = generate_puzzle(rows, cols, config=config, seed=seed)
    elapsed = time.time() - start_time

    stats = puzzle.difficulty.clue_stats
    result = {
        "puzzle_id": puzzle_id,
        "size": f"{rows}x{cols}",
        "seed": seed,
        "time": elapsed,
        "clues": puzzle.remaining_clue_count,
        "cells": rows * cols,
        "loop_length": puzzle.metadata.loop_length,
        "attempts": puzzle.metadata.attempts_run,
        "meets_targets": puzzle.metadata.meets_targets,
        "penalty": puzzle.metadata.penalty,
        "solver_steps": puzzle.metadata.solver_steps_used,
        "difficulty_visits": puzzle.difficulty.difficulty_visits,
        "logic_fraction": puzzle.difficulty.logic_solved_fraction,
        "zero": stats.zero, "one": stats.one, "two": stats.two, "three": stats.three,
        "high": stats.high, "border_zero": stats.border_zero,
        "unique": None,
    }

    # Independent uniqueness re-check of the returned puzzle
    if verify:
        check = solve_slitherlink(puzzle.grid, puzzle.clues, max_solutions=2)
        result["unique"] = check.is_unique and list(check.solutions[0]) == list(puzzle.solution_edge_states)

    return result


def main():
    parser = argparse.ArgumentParser(description="Benchmark the Slitherlink puzzle generator")
    parser.add_argument("--puzzles", type=int, default=10, help="Number of puzzles to generate")
    parser.add_argument("--rows", type=int, default=5, help="Rows")
    parser.add_argument("--cols", type=int, default=5, help="Cols")
    parser.add_argument("--seed", type=int, default=None, help="Base seed (puzzle i uses seed+i)")
    parser.add_argument("--retries", type=int, default=None, help="max_puzzle_retries override")
    parser.add_argument("--no-verify", action="store_true", help="Skip the uniqueness re-check")
    parser.add_argument("--output", type=str, default="benchmark_results.csv", help="Output CSV file")

    args = parser.parse_args()
    if args.puzzles < 1:
        parser.error("--puzzles must be at least 1")

    config = GeneratorConfig()
    if args.retries is not None:
        config = GeneratorConfig(max_puzzle_retries=args.retries)

    print(f"Starting Benchmark: {args.puzzles} puzzles, {args.rows}x{args.cols}")

    results = []
    non_unique = 0

    for i in range(args.puzzles):
        print(f"Generating Puzzle {i+1}/{args.puzzles}...", end="\r")
        seed = None if args.seed is None else args.seed + i
        res = run_single_puzzle(i + 1, args.rows, args.cols, seed=seed,
                                config=config, verify=not args.no_verify)
        results.append(res)
        if res["unique"] is False:
            non_unique += 1

    print(f"\nBenchmark Complete!")
    if not args.no_verify:
        print(f"Puzzles failing the uniqueness re-check: {non_unique}/{args.puzzles}")

    # Save to CSV
    keys = results[0].keys()
    with open(args.output, "w", newline="") as f:
        dict_writer = csv.DictWriter(f, fieldnames=keys)
        dict_writer.writeheader()
        dict_writer.writerows(results)

    print(f"Results saved to {args.output}")

    # Print Summary Table
    n = len(results)
    print("\nSummary Statistics:")
    print(f"{'Metric':<22} | {'Average':>10} | {'Min':>10} | {'Max':>10}")
    print("-" * 62)
    for key, label in [("time", "Time (s)"),
                       ("clues", "Clues"),
                       ("difficulty_visits", "Probe visits"),
                       ("logic_fraction", "Logic fraction"),
                       ("solver_steps", "Solver steps"),
                       ("attempts", "Attempts")]:
        values = [r[key] for r in results]
        print(f"{label:<22} | {sum(values) / n:>10.3f} | {min(values):>10.3f} | {max(values):>10.3f}")
    met = sum(1 for r in results if r["meets_targets"])
    print(f"\nPuzzles meeting every target: {met}/{n}")


if __name__ == "__main__":
    main()
