"""
Data models for the law explorer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


# --- Enums ---

class SortOrder(Enum):
    RELEVANCE = "relevance"
    PROMULGATION_DATE = "promulgationDate"
    LAW_NUMBER = "lawNumber"


class CacheStrategy(Enum):
    """
    Storage tiers, from most volatile to most durable.

    - MEMORY: process-local, gone on restart
    - SESSION: survives only the current session
    - DISK: survives restarts
    """
    MEMORY = "memory"
    SESSION = "session"
    DISK = "disk"


class QuizDifficulty(Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


class QuizGenerationMode(Enum):
    MANUAL = "manual"
    AUTO = "auto"
    MIXED = "mixed"


# --- Search ---

@dataclass
class SearchParams:
    """Query input for a law search."""
    keyword: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    category: Optional[str] = None  # human label, mapped through CATEGORY_CODE_MAP
    category_codes: List[str] = field(default_factory=list)  # raw upstream codes
    law_type: Optional[str] = None
    promulgation_date_from: Optional[str] = None
    promulgation_date_to: Optional[str] = None
    page: int = 1
    page_size: int = 20
    sort: SortOrder = SortOrder.RELEVANCE


@dataclass(frozen=True)
class LawSummary:
    """One hit in a search result."""
    law_id: str
    law_name: str
    law_number: Optional[str] = None
    promulgation_date: Optional[str] = None
    law_type: Optional[str] = None
    categories: Tuple[str, ...] = ()
    highlights: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LawsSearchResult:
    total_count: int
    page: int
    page_size: int
    results: Tuple[LawSummary, ...]
    query: Optional[SearchParams] = None
    execution_time_ms: float = 0.0
    number_of_records: int = 0
    status: Optional[str] = None
    message: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total_count

    @property
    def has_previous(self) -> bool:
        return self.page > 1


# --- Law document ---

@dataclass(frozen=True)
class Item:
    item_number: str
    text: str
    sub_items: Tuple["Item", ...] = ()


@dataclass(frozen=True)
class Paragraph:
    paragraph_number: str
    text: str
    items: Tuple[Item, ...] = ()


@dataclass(frozen=True)
class Article:
    article_number: str
    paragraphs: Tuple[Paragraph, ...] = ()
    article_title: Optional[str] = None


@dataclass(frozen=True)
class Provision:
    """
    Smallest addressable unit of statute text.

    The path is unique within its LawDetail and text is never empty.
    """
    law_id: str
    article_number: str
    text: str
    path: str
    paragraph_number: Optional[str] = None
    item_number: Optional[str] = None


@dataclass(frozen=True)
class LawBodyTransformResult:
    articles: Tuple[Article, ...]
    provisions: Tuple[Provision, ...]


@dataclass(frozen=True)
class LawDetail:
    """One statute, normalized. Treated as a value once built."""
    law_id: str
    law_name: str
    articles: Tuple[Article, ...]
    provisions: Tuple[Provision, ...]
    law_number: Optional[str] = None
    promulgation_date: Optional[str] = None
    law_type: Optional[str] = None
    categories: Tuple[str, ...] = ()
    raw: Any = field(default=None, compare=False, repr=False)


# --- Quiz ---

@dataclass(frozen=True)
class ManualQuizPreset:
    """Hand-authored question attached to a quiz bank entry."""
    prompt: str
    masked_text: str
    blanks: Tuple[str, ...]
    choices: Tuple[str, ...]
    answer_index: int
    explanation: Optional[str] = None


@dataclass(frozen=True)
class QuizBankEntry:
    """Curated statute excerpt used as quiz source. Read-only reference data."""
    id: str
    law_id: str
    law_name: str
    article_number: str
    category: str
    difficulty: QuizDifficulty
    text: str
    source_url: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    distractors: Tuple[str, ...] = ()
    manual: Optional[ManualQuizPreset] = None


@dataclass(frozen=True)
class QuizMetadata:
    law_id: str
    law_name: str
    article_number: str
    category: str
    difficulty: QuizDifficulty
    source_url: Optional[str] = None


@dataclass(frozen=True)
class QuizQuestion:
    """
    Generated quiz question.

    Exactly four distinct choices; answer_index points at the correct one.
    """
    id: str
    prompt: str
    choices: Tuple[str, ...]
    answer_index: int
    metadata: QuizMetadata
    masked_text: Optional[str] = None
    blanks: Tuple[str, ...] = ()
    explanation: Optional[str] = None

    @property
    def correct_choice(self) -> str:
        return self.choices[self.answer_index]


@dataclass
class UniqueRandomResult:
    value: Any
    history: set


@dataclass
class WeightedItem:
    """Explicitly weighted entry for pick_weighted_random."""
    value: Any
    weight: Optional[float] = None
    law_name: Optional[str] = None


@dataclass
class DrawResult:
    """Outcome of one provision draw."""
    law_id: str
    law_name: str
    provision: Provision
    history_size: int
