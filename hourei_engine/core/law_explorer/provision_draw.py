"""
ProvisionDraw: the "draw" feature, one random provision at a time.

A law is chosen from a curated candidate list (the major six statutes weigh
more), fetched through LawApiClient, and a provision is drawn without repeats
until every provision of that law has been seen. Draw history is kept per law
in a PersistentStore so it survives restarts.
"""

import logging
import random as _random
from typing import Callable, List, Optional, Sequence

from hourei_engine.core.law_explorer.errors import LawClientError
from hourei_engine.core.law_explorer.law_client import LawApiClient, extract_provisions_by_keyword
from hourei_engine.core.law_explorer.models import DrawResult, WeightedItem
from hourei_engine.core.law_explorer.persist import PersistentStore
from hourei_engine.core.law_explorer.random_selection import pick_unique_random, pick_weighted_random

logger = logging.getLogger(__name__)

HISTORY_KEY_PREFIX = "draw-history"
DEFAULT_MAJOR_SIX_MULTIPLIER = 3.0

DRAW_CANDIDATES: Sequence[WeightedItem] = (
    WeightedItem(value="321CONSTITUTION", law_name="日本国憲法"),
    WeightedItem(value="129AC0000000089", law_name="民法"),
    WeightedItem(value="132AC0000000048", law_name="商法"),
    WeightedItem(value="408AC0000000109", law_name="民事訴訟法"),
    WeightedItem(value="140AC0000000045", law_name="刑法"),
    WeightedItem(value="323AC0000000131", law_name="刑事訴訟法"),
    WeightedItem(value="405AC0000000088", law_name="行政手続法"),
    WeightedItem(value="417AC0000000086", law_name="会社法"),
)


def history_key(law_id: str, keyword: Optional[str] = None) -> str:
    """Store key of a draw history; keyword-filtered draws keep their own history per keyword."""
    if keyword and keyword.strip():
        return f"{HISTORY_KEY_PREFIX}:{law_id}:{keyword.strip().lower()}"
    return f"{HISTORY_KEY_PREFIX}:{law_id}"


class ProvisionDraw:
    def __init__(
        self,
        client: LawApiClient,
        store: Optional[PersistentStore] = None,
        candidates: Sequence[WeightedItem] = DRAW_CANDIDATES,
        major_six_multiplier: float = DEFAULT_MAJOR_SIX_MULTIPLIER,
        random: Callable[[], float] = _random.random,
    ):
        self.client = client
        self.store = store or PersistentStore()
        self.candidates = tuple(candidates)
        self.major_six_multiplier = major_six_multiplier
        self.random = random

    def pick_law_id(self) -> str:
        return pick_weighted_random(
            self.candidates,
            major_six_multiplier=self.major_six_multiplier,
            random=self.random,
        )

    def draw(self, law_id: Optional[str] = None, keyword: Optional[str] = None) -> DrawResult:
        """
        Draw one provision.

        Args:
            law_id: Law to draw from; chosen by weighted pick when None
            keyword: Restrict the pool to provisions containing this keyword

        Returns:
            DrawResult with the provision and the size of the draw history for this law and keyword

        Raises:
            LawClientError: If the pool of provisions is empty
            LawApiError: If the law cannot be fetched
        """
        law_id = law_id or self.pick_law_id()
        detail = self.client.get_law_by_id(law_id)

        pool = extract_provisions_by_keyword(detail, keyword) if keyword else list(detail.provisions)
        if not pool:
            raise LawClientError(f"No provisions to draw from in {detail.law_name}.")

        key = history_key(law_id, keyword)
        history = set(self.store.get(key, []))
        result = pick_unique_random(pool, history=history, get_key=lambda provision: provision.path, random=self.random)
        self.store.set(key, sorted(result.history))

        logger.info(f"✓ Drew {detail.law_name} {result.value.path} ({len(result.history)}/{len(pool)})")
        return DrawResult(
            law_id=law_id,
            law_name=detail.law_name,
            provision=result.value,
            history_size=len(result.history),
        )

    def get_history(self, law_id: str, keyword: Optional[str] = None) -> List[str]:
        return list(self.store.get(history_key(law_id, keyword), []))

    def clear_history(self, law_id: Optional[str] = None) -> None:
        """Forget the draw histories (keyword-filtered ones included) of one law, or of every law when law_id is None."""
        base = history_key(law_id) if law_id else HISTORY_KEY_PREFIX
        for key in self.store.keys():
            if key == base or key.startswith(f"{base}:"):
                self.store.remove(key)
