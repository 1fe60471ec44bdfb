"""
Benchmark the move-aware version diff.

Run with: PYTHONPATH=backend/src python performance/diff/benchmark.py

Measures present_mask / diff_against_neighbors on generated notes of growing
size and paragraph count, and how a blocking diff delays concurrent requests
compared to running it in a worker thread. Generates a markdown report file.
"""
import asyncio
import random
import statistics
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from services.version_diff import diff_against_neighbors, present_mask


@dataclass
class BenchmarkResult:
    """Result of a single benchmark test."""

    operation: str
    paragraphs: int
    content_size: str
    change_type: str
    iterations: int
    p50_ms: float
    p95_ms: float
    max_ms: float


@dataclass
class EventLoopImpact:
    """Result of event loop impact test."""

    paragraphs: int
    blocking_p95_ms: float
    threaded_p95_ms: float


WORDS = (
    "agenda budget review draft notes project timeline owner follow up meeting "
    "design decision risk launch metrics customer feedback release plan sprint"
).split()


def generate_note(paragraphs: int, seed: int = 7) -> str:
    """Generate a note of ``paragraphs`` paragraphs of two or three lines each."""
    rng = random.Random(seed)
    blocks = []
    for _ in range(paragraphs):
        lines = [
            " ".join(rng.choice(WORDS) for _ in range(rng.randint(6, 12)))
            for _ in range(rng.randint(2, 3))
        ]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def reorder_paragraphs(content: str) -> str:
    """Simulate moving paragraphs around without editing them."""
    blocks = content.split("\n\n")
    random.Random(11).shuffle(blocks)
    return "\n\n".join(blocks)


def edit_some_paragraphs(content: str) -> str:
    """Simulate editing every fifth paragraph."""
    blocks = content.split("\n\n")
    return "\n\n".join(
        block + " (updated)" if i % 5 == 0 else block for i, block in enumerate(blocks)
    )


def rewrite_content(content: str) -> str:
    """Simulate a full rewrite (nothing pairs)."""
    return generate_note(content.count("\n\n") + 1, seed=99)


def _result(
    operation: str,
    paragraphs: int,
    content: str,
    change_name: str,
    times: list[float],
) -> BenchmarkResult:
    times.sort()
    return BenchmarkResult(
        operation=operation,
        paragraphs=paragraphs,
        content_size=f"{len(content) / 1024:.1f}KB",
        change_type=change_name,
        iterations=len(times),
        p50_ms=round(statistics.median(times), 3),
        p95_ms=round(times[int(len(times) * 0.95)], 3),
        max_ms=round(max(times), 3),
    )


def benchmark_present_mask(
    paragraphs: int,
    change_fn: Callable[[str], str],
    change_name: str,
    iterations: int = 20,
) -> BenchmarkResult:
    """Benchmark one matcher pass against a changed version."""
    original = generate_note(paragraphs)
    modified = change_fn(original)

    times: list[float] = []
    for _ in range(iterations):
        start = time.perf_counter()
        present_mask(modified, original)
        times.append((time.perf_counter() - start) * 1000)
    return _result("present_mask", paragraphs, original, change_name, times)


def benchmark_neighbors(paragraphs: int, iterations: int = 20) -> BenchmarkResult:
    """Benchmark a full neighbor diff (two matcher passes plus highlights)."""
    previous = generate_note(paragraphs)
    current = edit_some_paragraphs(previous)
    following = reorder_paragraphs(current)

    times: list[float] = []
    for _ in range(iterations):
        start = time.perf_counter()
        diff_against_neighbors(current, previous, following)
        times.append((time.perf_counter() - start) * 1000)
    return _result("diff_against_neighbors", paragraphs, current, "edit+move", times)


async def benchmark_event_loop_impact(paragraphs: int) -> EventLoopImpact:
    """Compare request latency while a diff blocks the loop vs runs in a thread."""
    previous = generate_note(paragraphs)
    current = edit_some_paragraphs(previous)

    async def simulated_request() -> float:
        """Simulate an async request that should complete quickly."""
        start = time.perf_counter()
        await asyncio.sleep(0.001)  # 1ms simulated I/O
        return (time.perf_counter() - start) * 1000

    async def blocking() -> list[float]:
        request_tasks = [asyncio.create_task(simulated_request()) for _ in range(10)]
        diff_against_neighbors(current, previous)
        return list(await asyncio.gather(*request_tasks))

    async def threaded() -> list[float]:
        request_tasks = [asyncio.create_task(simulated_request()) for _ in range(10)]
        await asyncio.to_thread(diff_against_neighbors, current, previous)
        return list(await asyncio.gather(*request_tasks))

    blocking_times = sorted(await blocking())
    threaded_times = sorted(await threaded())
    return EventLoopImpact(
        paragraphs=paragraphs,
        blocking_p95_ms=round(blocking_times[int(len(blocking_times) * 0.95)], 3),
        threaded_p95_ms=round(threaded_times[int(len(threaded_times) * 0.95)], 3),
    )


def generate_markdown_report(
    mask_results: list[BenchmarkResult],
    neighbor_results: list[BenchmarkResult],
    event_loop_results: list[EventLoopImpact],
) -> str:
    """Generate a markdown report from benchmark results."""
    lines: list[str] = []

    lines.append("# Version Diff Benchmark Results")
    lines.append("")
    lines.append(f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")
    lines.append("Pairing is greedy over paragraphs, so cost grows with the product of the")
    lines.append("two versions' paragraph counts. A rewrite is the worst case: no pair")
    lines.append("reaches the threshold and the line pass then runs over every line.")
    lines.append("")

    lines.append("## Matcher (present_mask)")
    lines.append("")
    lines.append("| Paragraphs | Size | Change | P50 (ms) | P95 (ms) | Max (ms) |")
    lines.append("|------------|------|--------|----------|----------|----------|")
    for r in mask_results:
        lines.append(
            f"| {r.paragraphs} | {r.content_size} | {r.change_type} "
            f"| {r.p50_ms} | {r.p95_ms} | {r.max_ms} |",
        )
    lines.append("")

    lines.append("## Neighbor diff (diff_against_neighbors)")
    lines.append("")
    lines.append("| Paragraphs | Size | P50 (ms) | P95 (ms) | Max (ms) |")
    lines.append("|------------|------|----------|----------|----------|")
    for r in neighbor_results:
        lines.append(
            f"| {r.paragraphs} | {r.content_size} | {r.p50_ms} | {r.p95_ms} | {r.max_ms} |",
        )
    lines.append("")

    lines.append("## Event Loop Impact")
    lines.append("")
    lines.append("P95 latency of 10 concurrent 1ms requests while one diff runs.")
    lines.append("")
    lines.append("| Paragraphs | Blocking P95 (ms) | Worker thread P95 (ms) |")
    lines.append("|------------|-------------------|------------------------|")
    for r in event_loop_results:
        lines.append(f"| {r.paragraphs} | {r.blocking_p95_ms} | {r.threaded_p95_ms} |")
    lines.append("")

    slow = [r for r in neighbor_results if r.p95_ms > 100]
    lines.append("## Analysis")
    lines.append("")
    if slow:
        first = slow[0]
        lines.append(
            f"- Neighbor diffs exceed 100ms P95 from {first.paragraphs} paragraphs "
            f"({first.content_size})",
        )
    else:
        lines.append("- All neighbor diffs are under 100ms P95")
    return "\n".join(lines)


def main() -> None:
    """Run all benchmarks and generate report."""
    print("Running version diff benchmarks...")
    print("=" * 60)

    paragraph_counts = [10, 50, 100, 250, 500]
    changes: list[tuple[Callable[[str], str], str]] = [
        (edit_some_paragraphs, "edit"),
        (reorder_paragraphs, "move"),
        (rewrite_content, "rewrite"),
    ]

    print("\n[1/3] Benchmarking matcher...")
    mask_results: list[BenchmarkResult] = []
    for paragraphs in paragraph_counts:
        for change_fn, change_name in changes:
            print(f"  {paragraphs} paragraphs / {change_name}...", end=" ", flush=True)
            result = benchmark_present_mask(paragraphs, change_fn, change_name)
            mask_results.append(result)
            print(f"P95: {result.p95_ms}ms")

    print("\n[2/3] Benchmarking neighbor diffs...")
    neighbor_results: list[BenchmarkResult] = []
    for paragraphs in paragraph_counts:
        print(f"  {paragraphs} paragraphs...", end=" ", flush=True)
        result = benchmark_neighbors(paragraphs)
        neighbor_results.append(result)
        print(f"P95: {result.p95_ms}ms")

    print("\n[3/3] Benchmarking event loop impact...")
    event_loop_results: list[EventLoopImpact] = []
    for paragraphs in [50, 250]:
        print(f"  {paragraphs} paragraphs...", end=" ", flush=True)
        result = asyncio.run(benchmark_event_loop_impact(paragraphs))
        event_loop_results.append(result)
        print(f"blocking: {result.blocking_p95_ms}ms, threaded: {result.threaded_p95_ms}ms")

    report = generate_markdown_report(mask_results, neighbor_results, event_loop_results)

    output_dir = Path(__file__).parent / "results"
    output_dir.mkdir(exist_ok=True)
    output_file = output_dir / f"benchmark_diff_{datetime.now().strftime('%Y%m%d_%H%M%S')}.md"
    output_file.write_text(report)

    print("\n" + "=" * 60)
    print(f"Report saved to: {output_file}")
    print("=" * 60)


if __name__ == "__main__":
    main()
