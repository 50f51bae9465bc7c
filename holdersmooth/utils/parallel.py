"""
Order-preserving map over independent work items.
"""

from multiprocessing.pool import ThreadPool


def ordered_map(func, items, n_jobs=1):
    """
    Apply func to every item and return the results in input order.

    Args:
        func (callable): Function of a single argument.
        items (iterable): Work items.
        n_jobs (int, optional): Number of worker threads. 1 runs serially.

    Returns:
        list: func(item) for each item, positionally aligned with items.
    """
    items = list(items)
    if n_jobs is None or n_jobs <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    # Pool.map keeps input order whatever the completion order
    with ThreadPool(min(n_jobs, len(items))) as pool:
        return pool.map(func, items)
