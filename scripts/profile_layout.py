"""
Profiling script for kinlayout performance analysis.

Profiles final and incremental layouts of synthetic family trees of
increasing size. Run after installing the package (pip install -e .).
"""

import cProfile
import pstats
import io
from pstats import SortKey
import time
import warnings

import numpy as np

from kinlayout import (
    ConvergenceWarning, FamilyNode, GraphState, RelationType,
    compute_layout, compute_layout_incremental, compute_transition
)


def create_family(n_couples, max_children=4, seed=42):
    """
    Create a random family: a founding couple, then couples whose first
    member is a child of an earlier couple. The root is the last child.
    """
    rng = np.random.default_rng(seed)
    nodes = {}

    def person(node_id):
        nodes[node_id] = FamilyNode(node_id)
        return nodes[node_id]

    couples = [("p0000", "q0000")]
    person("p0000").add_relation(RelationType.spouse, "q0000")
    person("q0000")
    counter = 0
    for _ in range(n_couples):
        parent_id, spouse_id = couples[rng.integers(len(couples))]
        children = [c for c in nodes.values()
                    if any(r.target_id == parent_id for r in c.relations_of_type(RelationType.parent))]
        if len(children) >= max_children:
            continue
        counter += 1
        child_id = f"p{counter:04d}"
        partner_id = f"q{counter:04d}"
        (person(child_id)
         .add_relation(RelationType.parent, parent_id)
         .add_relation(RelationType.parent, spouse_id)
         .add_relation(RelationType.spouse, partner_id))
        person(partner_id)
        couples.append((child_id, partner_id))

    return list(nodes.values()), f"p{counter:04d}"


def profile_small_family():
    """Profile a small family (about 40 nodes)."""
    nodes, root = create_family(20)
    compute_layout(nodes, root)


def profile_medium_family():
    """Profile a medium family (about 200 nodes)."""
    nodes, root = create_family(100)
    compute_layout(nodes, root)


def profile_large_family():
    """Profile a large family (about 1000 nodes)."""
    nodes, root = create_family(500, max_children=6)
    compute_layout(nodes, root)


def profile_incremental():
    """Profile incremental snapshots and the transitions between them."""
    nodes, root = create_family(60)
    snapshots = compute_layout_incremental(nodes, root)
    for before, after in zip(snapshots, snapshots[1:]):
        compute_transition(GraphState.from_layout(before, nodes), GraphState.from_layout(after, nodes))


def benchmark_scenario(name, func):
    """Benchmark a scenario and print timing."""
    print(f"\n{'='*60}")
    print(f"Profiling: {name}")
    print('='*60)

    profiler = cProfile.Profile()

    start_time = time.time()
    profiler.enable()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        func()
    profiler.disable()
    elapsed = time.time() - start_time

    print(f"\nTotal time: {elapsed:.3f}s")

    s = io.StringIO()
    ps = pstats.Stats(profiler, stream=s).sort_stats(SortKey.CUMULATIVE)
    ps.print_stats(20)

    print("\nTop 20 functions by cumulative time:")
    print(s.getvalue())

    return profiler


def main():
    """Run all profiling scenarios."""
    print("kinlayout Performance Profiling")
    print("=" * 60)

    scenarios = [
        ("Small Family (20 couples)", profile_small_family),
        ("Medium Family (100 couples)", profile_medium_family),
        ("Large Family (500 couples)", profile_large_family),
        ("Incremental (60 couples, with transitions)", profile_incremental),
    ]

    profilers = {}
    for name, func in scenarios:
        profilers[name] = benchmark_scenario(name, func)

    print("\n" + "="*60)
    print("Saving detailed profiles...")
    print("="*60)

    for name, profiler in profilers.items():
        filename = f"profile_{name.lower().replace(' ', '_').replace('(', '').replace(')', '').replace(',', '')}.prof"
        profiler.dump_stats(filename)
        print(f"Saved: {filename}")

    print("\nTo view detailed profile, use:")
    print("  python -m pstats <profile_file>")


if __name__ == "__main__":
    main()
