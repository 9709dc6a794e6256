"""Pair-weighted progress bar for duplicate scans.

Anchor i of an n-row upper-triangle scan owns n - 1 - i pairs, so early
anchors carry far more work than late ones. The bar advances by pairs
rather than by items to keep its rate and ETA honest.
"""

import sys
from collections.abc import Iterable, Iterator, Sequence

import progressbar


def pair_progress(
    items: Iterable, pair_counts: Sequence[int], desc: str = "Scanning pairs"
) -> Iterator:
    """Yield items while advancing a bar by the pairs each item covers.

    The bar is finished in a finally block, so an early break or an error in
    the caller still restores the terminal.

    Args:
        items: Anchors or anchor blocks, in scan order.
        pair_counts: Pairs covered by each item, aligned with ``items``.
        desc: Label shown before the counter.

    Yields:
        Items from ``items``.
    """
    total = int(sum(pair_counts))
    widgets = [
        f"{desc}: ",
        progressbar.Counter(),
        f"/{total} pairs ",
        progressbar.Percentage(),
        " ",
        progressbar.Bar(),
        " ",
        progressbar.ETA(),
    ]
    bar = progressbar.ProgressBar(max_value=total, widgets=widgets, fd=sys.stdout)
    bar.start()
    done = 0
    try:
        for item, n_pairs in zip(items, pair_counts):
            yield item
            done += int(n_pairs)
            bar.update(done)
    finally:
        bar.finish()
