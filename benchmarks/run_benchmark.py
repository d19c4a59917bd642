"""
CLI entry point for running throughput benchmarks.

Usage:
    python -m benchmarks.run_benchmark                          # 1,2,4,CPU workers, 100 jobs
    python -m benchmarks.run_benchmark --workers 4              # single pool size
    python -m benchmarks.run_benchmark --num-jobs 500           # more jobs
    python -m benchmarks.run_benchmark --image IMG_0001.CR2 --dcraw ./dcraw-json
"""

import argparse
import json
import os

from benchmarks.throughput import ThroughputBenchmark


def main():
    parser = argparse.ArgumentParser(description="Derivative Pipeline Throughput Benchmark")
    parser.add_argument(
        "--num-jobs", type=int, default=100,
        help="Number of jobs to submit (default: 100)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Pool size to benchmark (default: 1, 2, 4 and CPU count)",
    )
    parser.add_argument(
        "--image", type=str, default=None,
        help="Source image (default: generated 6000x4000 JPEG)",
    )
    parser.add_argument(
        "--dcraw", type=str, default=None,
        help="Path to dcraw-json (default: same as the worker)",
    )
    args = parser.parse_args()

    if args.workers:
        pool_sizes = [args.workers]
    else:
        pool_sizes = sorted({1, 2, 4, os.cpu_count() or 1})

    print("=== Derivative Pipeline Throughput Benchmark ===")
    print(f"Jobs: {args.num_jobs} | Pool sizes: {pool_sizes}\n")

    with ThroughputBenchmark(
        num_jobs=args.num_jobs, image_path=args.image, dcraw_path=args.dcraw
    ) as bench:
        results = bench.run_all(pool_sizes)

    print("\n=== RESULTS ===")
    print(json.dumps(results, indent=2))

    # Summary table
    print("\n{:<10} {:>10} {:>15}".format("Workers", "Time (s)", "Throughput"))
    print("-" * 37)
    for r in results:
        print("{:<10} {:>10.3f} {:>12.2f} j/s".format(
            r["workers"], r["wall_clock_sec"], r["throughput_jobs_per_sec"]
        ))


if __name__ == "__main__":
    main()
