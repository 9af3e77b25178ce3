"""
Law explorer module.

This module fetches statutes from the e-Gov law API, normalizes both upstream
payload shapes into addressable provisions, and builds the draw, search and
quiz features on top of them.

The main entry point is the LawApiClient class in law_client.py.
"""

# Main client entry point
from hourei_engine.core.law_explorer.law_client import LawApiClient, extract_provisions_by_keyword
from hourei_engine.core.law_explorer.config import LawClientConfig

# Core components
from hourei_engine.core.law_explorer.cache_manager import LawCache
from hourei_engine.core.law_explorer.persist import PersistentStore
from hourei_engine.core.law_explorer.law_parser import transform_law_body
from hourei_engine.core.law_explorer.payload_normalizer import normalize_law_detail, normalize_search_result
from hourei_engine.core.law_explorer.highlight import highlight_keyword, highlight_keywords
from hourei_engine.core.law_explorer.quiz_generator import (
    QuizGenerator,
    ensure_valid_question,
    pick_mode_from_difficulty,
)
from hourei_engine.core.law_explorer.random_selection import (
    MAJOR_SIX_LAWS,
    pick_unique_random,
    pick_weighted_random,
)
from hourei_engine.core.law_explorer.provision_draw import ProvisionDraw

# Errors
from hourei_engine.core.law_explorer.errors import (
    InvalidQuizQuestionError,
    LawApiError,
    LawClientError,
    ProxyTargetError,
    QuizGenerationError,
)

# Data models
from hourei_engine.core.law_explorer.models import (
    SearchParams,
    SortOrder,
    CacheStrategy,
    LawSummary,
    LawsSearchResult,
    LawDetail,
    Article,
    Paragraph,
    Item,
    Provision,
    QuizBankEntry,
    QuizQuestion,
    QuizDifficulty,
    QuizGenerationMode,
    DrawResult,
)

__all__ = [
    # Main client entry point
    'LawApiClient',
    'LawClientConfig',
    'extract_provisions_by_keyword',

    # Core components
    'LawCache',
    'PersistentStore',
    'transform_law_body',
    'normalize_law_detail',
    'normalize_search_result',
    'highlight_keyword',
    'highlight_keywords',
    'QuizGenerator',
    'ensure_valid_question',
    'pick_mode_from_difficulty',
    'MAJOR_SIX_LAWS',
    'pick_unique_random',
    'pick_weighted_random',
    'ProvisionDraw',

    # Errors
    'InvalidQuizQuestionError',
    'LawApiError',
    'LawClientError',
    'ProxyTargetError',
    'QuizGenerationError',

    # Data models
    'SearchParams',
    'SortOrder',
    'CacheStrategy',
    'LawSummary',
    'LawsSearchResult',
    'LawDetail',
    'Article',
    'Paragraph',
    'Item',
    'Provision',
    'QuizBankEntry',
    'QuizQuestion',
    'QuizDifficulty',
    'QuizGenerationMode',
    'DrawResult',
]
