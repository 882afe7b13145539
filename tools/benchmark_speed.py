"""
Performance Benchmark
=====================

Measures headless simulation throughput for performance tuning.

Usage:
    python -m tools.benchmark_speed [--ticks T] [--steps S] [--quick]
"""

from __future__ import annotations

import argparse
import sys
import time

import numpy as np

from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.env_gym import TowerEnv
from duck_tower.stack_core.events import GameMode
from duck_tower.stack_core.game import TowerGame


def benchmark_env(
    num_steps: int = 1000,
    seed: int = 42
) -> dict:
    """
    Benchmark TowerEnv drop throughput.

    Args:
        num_steps: Number of drops to run.
        seed: Random seed for actions and episodes.

    Returns:
        Dict with timing results.
    """
    env = TowerEnv()
    rng = np.random.default_rng(seed)

    # Warmup
    obs, _ = env.reset(seed=seed)
    for _ in range(10):
        obs, _, terminated, truncated, _ = env.step(rng.uniform(-0.05, 0.05))
        if terminated or truncated:
            obs, _ = env.reset()

    # Benchmark
    obs, _ = env.reset(seed=seed)
    episodes = 1
    total_ticks = 0
    start = time.perf_counter()

    for _ in range(num_steps):
        # Mostly centered drops keep episodes long enough to exercise merges
        obs, _, terminated, truncated, info = env.step(rng.uniform(-0.05, 0.05))
        total_ticks += info["ticks"]
        if terminated or truncated:
            obs, _ = env.reset()
            episodes += 1

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": "env",
        "num_steps": num_steps,
        "episodes": episodes,
        "total_ticks": total_ticks,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_core_game(
    num_ticks: int = 100000,
    seed: str = "benchmark-speed-run"
) -> dict:
    """
    Benchmark raw TowerGame ticks without Gym overhead.

    The hovering duck is left to auto-drop, so this measures the full
    spawn/hover/fall/land cycle.

    Args:
        num_ticks: Number of fixed-step ticks.
        seed: Seed phrase.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    game = TowerGame(config=config, seed=seed)
    game.start()

    start = time.perf_counter()
    for _ in range(num_ticks):
        game.tick()
        if game.mode is GameMode.LEVELUP:
            game.continue_level()
        elif game.mode is GameMode.GAMEOVER:
            game.restart()
    elapsed = time.perf_counter() - start

    return {
        "mode": "core_game",
        "num_steps": num_ticks,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_ticks / elapsed,
        "ms_per_step": (elapsed * 1000) / num_ticks
    }


def run_all_benchmarks(ticks: int = 100000, steps: int = 500) -> list:
    """Run comprehensive benchmarks."""
    results = []

    print("=" * 60)
    print("DUCK TOWER PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    print("Benchmarking TowerGame (raw ticks)...")
    result = benchmark_core_game(num_ticks=ticks)
    results.append(result)
    print(f"  Ticks/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/tick:   {result['ms_per_step']:.4f}")
    print()

    print("Benchmarking TowerEnv (drops)...")
    result = benchmark_env(num_steps=steps)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print(f"  Episodes:  {result['episodes']}")
    print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<20} {'Steps/s':>12} {'ms/step':>10}")
    print("-" * 44)
    for r in results:
        print(f"{r['mode']:<20} {r['steps_per_second']:>12.1f} {r['ms_per_step']:>10.4f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Duck Tower simulation performance")
    parser.add_argument("--ticks", type=int, default=100000, help="Ticks for the raw game benchmark")
    parser.add_argument("--steps", type=int, default=500, help="Drops for the env benchmark")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    if args.quick:
        run_all_benchmarks(ticks=10000, steps=50)
    else:
        run_all_benchmarks(ticks=args.ticks, steps=args.steps)

    return 0


if __name__ == "__main__":
    sys.exit(main())
