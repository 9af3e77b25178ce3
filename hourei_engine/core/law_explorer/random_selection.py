"""
Random selection helpers shared by the draw feature and the quiz generator.

The random source is always a parameter so callers (and tests) control it.
"""

import json
import random as _random
from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Optional, Sequence, Set

from hourei_engine.core.law_explorer.models import UniqueRandomResult, WeightedItem

MAJOR_SIX_LAWS = frozenset({
    "日本国憲法",
    "民法",
    "商法",
    "民事訴訟法",
    "刑法",
    "刑事訴訟法",
})

RandomSource = Callable[[], float]


def default_key(value: Any) -> str:
    """Structural string form of a value: scalars via str, containers and dataclasses via JSON."""
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def default_law_name(value: Any) -> Optional[str]:
    """law_name (or lawName) of a dict or object, if it is a string."""
    if isinstance(value, dict):
        name = value.get("law_name", value.get("lawName"))
    else:
        name = getattr(value, "law_name", None)
    return name if isinstance(name, str) else None


def pick_index(count: int, random: RandomSource) -> int:
    return min(int(random() * count), count - 1)


def pick_unique_random(
    items: Sequence[Any],
    history: Optional[Set[str]] = None,
    get_key: Callable[[Any], str] = default_key,
    allow_reset: bool = True,
    random: RandomSource = _random.random,
) -> UniqueRandomResult:
    """
    Pick an item not yet present in history.

    Args:
        items: Candidates
        history: Keys already drawn; mutated in place (a new set when None)
        get_key: Maps an item to its history key
        allow_reset: When every item was drawn, clear history and start a new cycle;
            otherwise raise
        random: Returns a float in [0, 1)

    Returns:
        UniqueRandomResult with the picked value and the updated history

    Raises:
        ValueError: If items is empty, or the pool is exhausted and allow_reset is False
    """
    if not items:
        raise ValueError("Cannot pick from an empty array")

    if history is None:
        history = set()

    pool = [item for item in items if get_key(item) not in history]
    if not pool:
        if not allow_reset:
            raise ValueError("Unique random pool exhausted")
        history.clear()
        pool = list(items)

    value = pool[pick_index(len(pool), random)]
    history.add(get_key(value))
    return UniqueRandomResult(value=value, history=history)


def pick_weighted_random(
    items: Sequence[Any],
    default_weight: float = 1.0,
    major_six_multiplier: float = 1.0,
    get_law_name: Callable[[Any], Optional[str]] = default_law_name,
    random: RandomSource = _random.random,
) -> Any:
    """
    Weighted pick over plain values or WeightedItem entries.

    Entries whose law name belongs to MAJOR_SIX_LAWS have their weight
    multiplied by major_six_multiplier. Entries left with a weight <= 0 are
    ignored.

    Returns:
        The picked value (unwrapped from WeightedItem)

    Raises:
        ValueError: If items is empty or the total weight is zero
    """
    if not items:
        raise ValueError("Cannot pick from an empty set")

    weighted = []
    for entry in items:
        if not isinstance(entry, WeightedItem):
            entry = WeightedItem(value=entry)
        base_weight = entry.weight if entry.weight is not None else default_weight
        law_name = entry.law_name or get_law_name(entry.value)
        multiplier = major_six_multiplier if law_name in MAJOR_SIX_LAWS else 1
        weight = max(base_weight * multiplier, 0)
        if weight > 0:
            weighted.append((entry.value, weight))

    total_weight = sum(weight for _, weight in weighted)
    if total_weight <= 0:
        raise ValueError("Total weight must be greater than zero")

    threshold = random() * total_weight
    cumulative = 0.0
    for value, weight in weighted:
        cumulative += weight
        if threshold <= cumulative:
            return value
    return weighted[-1][0]


def shuffle(items: Sequence[Any], random: RandomSource = _random.random) -> list:
    """Fisher-Yates shuffle into a new list."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result
