"""
Computation-graph utilities.

Inspect and summarise the nodes recorded on a tape (size, fan-in/fan-out,
operation mix). Useful to check that density functions stay fused and that
constant data never reaches the tape.
"""

from collections import Counter
from typing import Dict

import numpy as np
import pandas as pd


def _fan_outs(tape) -> list:
    fan_outs = [0] * len(tape.nodes)
    for node in tape.nodes:
        for p in node.parents:
            fan_outs[p] += 1
    return fan_outs


def get_graph_stats(tape) -> Dict:
    """
    Collect computation-graph statistics (no printing).

    Returns:
        dict with node/edge counts, fan-in/fan-out maxima and means, and a
        {op_tag: count} breakdown.
    """
    if not tape.nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    n_nodes = len(tape.nodes)
    fan_ins = [len(node.parents) for node in tape.nodes]
    fan_outs = _fan_outs(tape)

    return {
        'nodes': n_nodes,
        'edges': int(sum(fan_ins)),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(Counter(node.op_tag for node in tape.nodes))
    }


def op_breakdown(tape) -> pd.DataFrame:
    """
    Operation mix of the tape as a DataFrame with columns
    [op_tag, nodes, share], sorted by node count (descending).
    """
    ops = Counter(node.op_tag for node in tape.nodes)
    df = pd.DataFrame(sorted(ops.items(), key=lambda kv: (-kv[1], kv[0])),
                      columns=["op_tag", "nodes"])
    total = len(tape.nodes)
    df["share"] = df["nodes"] / total if total else 0.0
    return df


def print_graph_summary(tape, detailed: bool = False) -> Dict:
    """
    Print a summary of the computation graph.

    Args:
        tape: Tape to inspect
        detailed: also print one line per node (only for tapes of <= 100 nodes)

    Returns:
        The statistics dict from get_graph_stats
    """
    stats = get_graph_stats(tape)
    if stats['nodes'] == 0:
        print("Empty computation graph")
        return stats

    print("\n" + "="*70)
    print("COMPUTATION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    for row in op_breakdown(tape).head(10).itertuples(index=False):
        print(f"  {row.op_tag:22s}: {row.nodes:6,} ({100.0 * row.share:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        for i, node in enumerate(tape.nodes):
            parent_info = ", ".join(f"Node{p}" for p in node.parents)
            print(f"Node {i:3d}: {node.op_tag:22s} ({float(node.val):12.6g}) <- [{parent_info}]")

    print("="*70 + "\n")
    return stats
