import random

from more_itertools import chunked, collapse, unique_everseen


def distinct_values(items, key):
    """[{'a': 1}, {'a': 2}, {'a': 1}], 'a' => [1, 2]"""
    return list(unique_everseen(item.get(key) for item in items))


def group_by(items, key):
    """Group dicts by the value at key, preserving first-seen group order"""
    groups = {}
    for item in items:
        groups.setdefault(item.get(key), []).append(item)
    return groups


def distinct_objects(items, key):
    """Keep the first dict seen for each value at key"""
    return list(unique_everseen(items, key=lambda item: item.get(key)))


def sort_by(items, key, ascending=True):
    return sorted(items, key=lambda item: item.get(key), reverse=not ascending)


def filter_by(items, criteria):
    """Keep dicts matching every key/value pair in criteria"""
    return [
        item for item in items
        if all(item.get(k) == v for k, v in criteria.items())
    ]


def chunk(items, size):
    """[1, 2, 3, 4, 5], 2 => [[1, 2], [3, 4], [5]]"""
    if size <= 0:
        raise ValueError("size must be positive")
    return list(chunked(items, size))


def flatten(items, depth=1):
    """
        [1, [2, [3, [4]]]], depth=1 => [1, 2, [3, [4]]]
        strings and dicts stay whole
    """
    if depth <= 0:
        return list(items)
    return list(collapse(items, base_type=(str, bytes, dict), levels=depth))


def unique(items):
    return list(unique_everseen(items))


def intersection(first, second):
    return [item for item in first if item in second]


def difference(first, second):
    return [item for item in first if item not in second]


def shuffle(items):
    shuffled = list(items)
    random.shuffle(shuffled)
    return shuffled


def random_item(items):
    if not items:
        return None
    return random.choice(items)


def is_empty(items):
    return not items


def _values(items, key):
    if key is None:
        return list(items)
    return [item.get(key) or 0 for item in items]


def total(items, key=None):
    """Sum numbers, or the values at key for a list of dicts (missing counts as 0)"""
    return sum(_values(items, key))


def average(items, key=None):
    if is_empty(items):
        return 0
    return total(items, key) / len(items)


def minimum(items, key=None):
    """Smallest number, or the dict with the smallest value at key"""
    if is_empty(items):
        return None
    if key is None:
        return min(items)
    return min(items, key=lambda item: item.get(key))


def maximum(items, key=None):
    """Largest number, or the dict with the largest value at key"""
    if is_empty(items):
        return None
    if key is None:
        return max(items)
    return max(items, key=lambda item: item.get(key))
