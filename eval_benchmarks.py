"""
Evaluation benchmarks for Base Studio.
Runs instruction sessions through a fresh orchestrator and checks the
observable state of the resulting document.

Run: python eval_benchmarks.py
"""
from __future__ import annotations
import json
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bases import document as doc
from bases.main import Orchestrator
from bases.templates import DEFAULT_CATALOG


@dataclass
class BenchmarkCase:
    """A session of instructions plus the expected final state."""
    name: str
    instructions: List[str]
    expected_route: Optional[str] = None
    expected_tag: Optional[str] = None
    expected_folder: Optional[str] = None
    expected_view_type: Optional[str] = None
    expected_in_order: List[str] = field(default_factory=list)
    expected_not_in_order: List[str] = field(default_factory=list)
    expected_sort: Optional[Dict[str, str]] = None
    expected_group_by: Optional[str] = None
    expected_name: Optional[str] = None


@dataclass
class BenchmarkResult:
    name: str
    passed: bool
    errors: List[str]
    route: Optional[str]
    execution_time_ms: float


# =============================================================================
# BENCHMARK CASES
# =============================================================================
BENCHMARK_CASES: List[BenchmarkCase] = [
    BenchmarkCase(
        name="template_fast_path",
        instructions=[DEFAULT_CATALOG.templates["progress"].description],
        expected_route="template",
        expected_tag="project",
        expected_group_by="formula.status_label",
    ),
    BenchmarkCase(
        name="keyword_birthday",
        instructions=["Track birthdays of people and show days until and age, sorted by days until ascending"],
        expected_route="keyword",
        expected_tag="person",
        expected_in_order=["formula.remaining_days", "formula.age"],
        expected_sort={"property": "formula.remaining_days", "direction": "ASC"},
    ),
    BenchmarkCase(
        name="keyword_tasks",
        instructions=["My todo notes with priority and due dates"],
        expected_route="keyword",
        expected_tag="task",
    ),
    BenchmarkCase(
        name="synthesized_recipes",
        instructions=["notes tagged #recipes in folder Cooking as cards"],
        expected_route="synthesized",
        expected_tag="recipes",
        expected_folder="Cooking",
        expected_view_type="cards",
        expected_in_order=["file.name", "formula.word_count"],
    ),
    BenchmarkCase(
        name="synthesized_property_list",
        instructions=['notes tagged #recipes, show "cuisine" and "servings"'],
        expected_route="synthesized",
        expected_in_order=["cuisine", "servings"],
        expected_not_in_order=["formula.word_count"],
    ),
    BenchmarkCase(
        name="patch_tag_and_sort",
        instructions=["notes tagged #recipes", "use #desserts and sort by size descending"],
        expected_route="patched",
        expected_tag="desserts",
        expected_sort={"property": "file.size", "direction": "DESC"},
    ),
    BenchmarkCase(
        name="patch_view_and_rename",
        instructions=["notes tagged #recipes", 'show them as a list and rename it to "Cookbook"'],
        expected_route="patched",
        expected_view_type="list",
        expected_name="Cookbook",
    ),
    BenchmarkCase(
        name="patch_add_then_remove",
        instructions=["notes tagged #recipes", "add cuisine and file size", "hide cuisine"],
        expected_route="patched",
        expected_in_order=["file.size"],
        expected_not_in_order=["cuisine"],
    ),
    BenchmarkCase(
        name="patch_group_by_folder",
        instructions=["notes in Projects", "group by folder"],
        expected_route="patched",
        expected_folder="Projects",
        expected_group_by="file.folder",
    ),
]


def _check(case: BenchmarkCase, response: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    text = response.get("document") or ""
    filters = doc.filter_entries(text)
    order = doc.view_order(text)

    if response.get("error"):
        errors.append(f"error: {response['error']}")
    if case.expected_route and response.get("route") != case.expected_route:
        errors.append(f"route {response.get('route')!r} != {case.expected_route!r}")
    if case.expected_tag and f'file.hasTag("{case.expected_tag}")' not in filters:
        errors.append(f"missing tag predicate for {case.expected_tag!r}")
    if case.expected_folder and f'file.inFolder("{case.expected_folder}")' not in filters:
        errors.append(f"missing folder predicate for {case.expected_folder!r}")
    if case.expected_view_type and doc.view_type(text) != case.expected_view_type:
        errors.append(f"view type {doc.view_type(text)!r} != {case.expected_view_type!r}")
    for prop in case.expected_in_order:
        if prop not in order:
            errors.append(f"{prop!r} not in order {order}")
    for prop in case.expected_not_in_order:
        if prop in order:
            errors.append(f"{prop!r} unexpectedly in order")
    if case.expected_sort and case.expected_sort not in doc.view_sort(text):
        errors.append(f"sort {doc.view_sort(text)} lacks {case.expected_sort}")
    if case.expected_group_by:
        group = doc.view_group_by(text) or {}
        if group.get("property") != case.expected_group_by:
            errors.append(f"groupBy {group} != {case.expected_group_by!r}")
    if case.expected_name and doc.view_name(text) != case.expected_name:
        errors.append(f"name {doc.view_name(text)!r} != {case.expected_name!r}")
    return errors


def run_benchmark(case: BenchmarkCase) -> BenchmarkResult:
    orchestrator = Orchestrator()
    t0 = time.perf_counter()
    response: Dict[str, Any] = {}
    for instruction in case.instructions:
        response = orchestrator.submit(instruction)
    elapsed = (time.perf_counter() - t0) * 1000
    errors = _check(case, response)
    return BenchmarkResult(case.name, not errors, errors, response.get("route"), elapsed)


def run_all_benchmarks(verbose: bool = True) -> Dict[str, Any]:
    results = []
    for case in BENCHMARK_CASES:
        result = run_benchmark(case)
        results.append(result)
        if verbose:
            status = "PASS" if result.passed else "FAIL"
            print(f"[{status}] {case.name} ({result.route}, {result.execution_time_ms:.1f}ms)")
            for err in result.errors:
                print(f"      {err}")

    passed = sum(1 for r in results if r.passed)
    return {
        "total_tests": len(results),
        "passed": passed,
        "failed": len(results) - passed,
        "pass_rate": passed / len(results) * 100 if results else 0,
        "results": [
            {"name": r.name, "passed": r.passed, "errors": r.errors, "route": r.route,
             "time_ms": r.execution_time_ms}
            for r in results
        ],
    }


def print_summary(summary: Dict[str, Any]):
    """Print formatted summary of benchmark results."""
    print("\n" + "=" * 60)
    print("BENCHMARK SUMMARY")
    print("=" * 60)
    print(f"Total Tests: {summary['total_tests']}")
    print(f"Passed: {summary['passed']}")
    print(f"Failed: {summary['failed']}")
    print(f"Pass Rate: {summary['pass_rate']:.1f}%")
    print("=" * 60)


def main():
    """Run benchmarks from command line."""
    import argparse

    parser = argparse.ArgumentParser(description="Run Base Studio evaluation benchmarks")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")
    args = parser.parse_args()

    summary = run_all_benchmarks(verbose=not args.quiet and not args.json)
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print_summary(summary)
    return 0 if summary["failed"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
