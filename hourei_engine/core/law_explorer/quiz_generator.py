"""
Fill-in-the-blank quiz generation from the curated quiz bank.

Key Features:
- Difficulty policy: easy/normal mask one term, hard masks two when the pool allows
- Candidate terms: curated keywords plus tokens found in the statute text
- Distractors from the entry itself and from other laws of the same category,
  with same-arity combinations for multi-blank questions
- Manual (hand-authored), auto (masked) and mixed generation modes
- Every random decision goes through the injected random source
"""

import logging
import random as _random
import re
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

from hourei_engine.core.law_explorer.errors import InvalidQuizQuestionError, QuizGenerationError
from hourei_engine.core.law_explorer.models import (
    QuizBankEntry,
    QuizDifficulty,
    QuizGenerationMode,
    QuizMetadata,
    QuizQuestion,
)
from hourei_engine.core.law_explorer.quiz_bank import QUIZ_BANK_ENTRIES, get_distractor_pool, get_entries_by_category
from hourei_engine.core.law_explorer.random_selection import pick_index, shuffle

logger = logging.getLogger(__name__)

PLACEHOLDER = "[ 〇〇 ]"
CHOICE_SEPARATOR = "／"
CHOICE_COUNT = 4
DISTRACTOR_COUNT = CHOICE_COUNT - 1
FILLER_PREFIX = "選択肢"
DEFAULT_MAX_ATTEMPTS = 3

STOP_WORDS = frozenset({"こと", "ため", "する", "おいて", "もの", "場合", "その他"})

# Kanji runs (2+), katakana runs (3+), ASCII words (4+), digit runs (2+)
_TOKEN_RE = re.compile(r"[一-龠々〆ヶ]{2,}|[ァ-ヶー]{3,}|[A-Za-z]{4,}|[0-9]{2,}")

RandomSource = Callable[[], float]


def tokenize_candidates(text: str) -> List[str]:
    """Distinct candidate terms of text, in order of first appearance, stop words removed."""
    tokens = []
    for token in _TOKEN_RE.findall(text or ""):
        token = token.strip()
        if token and token not in STOP_WORDS and token not in tokens:
            tokens.append(token)
    return tokens


def mask_text_with_terms(text: str, terms: Sequence[str]) -> str:
    """Replace the first occurrence of each term, in order, with the placeholder."""
    masked = text
    for term in terms:
        masked = masked.replace(term, PLACEHOLDER, 1)
    return masked


def choice_label(terms: Sequence[str]) -> str:
    return CHOICE_SEPARATOR.join(terms)


def blank_count_for(difficulty: QuizDifficulty, pool_size: int) -> int:
    return 2 if difficulty == QuizDifficulty.HARD and pool_size > 1 else 1


def ensure_valid_question(question: QuizQuestion) -> None:
    """
    Check the four-distinct-choices contract.

    Raises:
        InvalidQuizQuestionError: On any violation
    """
    if not question.choices or len(question.choices) != CHOICE_COUNT:
        raise InvalidQuizQuestionError("Quiz question must provide exactly four choices.")
    if len(set(question.choices)) != len(question.choices):
        raise InvalidQuizQuestionError("Quiz choices must be unique.")
    if not 0 <= question.answer_index < len(question.choices):
        raise InvalidQuizQuestionError("Answer index out of bounds.")


def pick_mode_from_difficulty(difficulty: QuizDifficulty, random: RandomSource = _random.random) -> QuizGenerationMode:
    """Easy leans on hand-authored questions, hard on masked ones."""
    difficulty = QuizDifficulty(difficulty)
    if difficulty == QuizDifficulty.EASY:
        return QuizGenerationMode.MANUAL if random() < 0.7 else QuizGenerationMode.MIXED
    if difficulty == QuizDifficulty.HARD:
        return QuizGenerationMode.AUTO if random() < 0.6 else QuizGenerationMode.MIXED
    return QuizGenerationMode.MIXED


class QuizGenerator:
    """
    Builds QuizQuestion objects from quiz bank entries.

    Example:
        generator = QuizGenerator(random=random.Random(42).random)
        question = generator.generate(category="会社法", difficulty=QuizDifficulty.HARD)
    """

    def __init__(
        self,
        entries: Sequence[QuizBankEntry] = QUIZ_BANK_ENTRIES,
        random: RandomSource = _random.random,
        strict: bool = False,
    ):
        """
        Args:
            entries: Quiz bank to draw from
            random: Returns a float in [0, 1); drives every random decision
            strict: Let contract violations propagate from generate_validated (development mode)
        """
        self.entries = tuple(entries)
        self.random = random
        self.strict = strict

    def generate(
        self,
        category: Optional[str] = None,
        difficulty: QuizDifficulty = QuizDifficulty.NORMAL,
        mode: QuizGenerationMode = QuizGenerationMode.MIXED,
    ) -> QuizQuestion:
        """
        Generate one question.

        Args:
            category: Restrict entries to this category (whole bank when None)
            difficulty: Controls the number of masked terms
            mode: manual, auto or mixed

        Returns:
            QuizQuestion

        Raises:
            QuizGenerationError: If no entry matches, manual mode meets an entry
                without preset, or masking fails without a preset to fall back to
        """
        difficulty = QuizDifficulty(difficulty)
        mode = QuizGenerationMode(mode)
        entry = self._resolve_entry(category)

        if mode == QuizGenerationMode.MANUAL:
            return self.build_manual_question(entry)

        if mode == QuizGenerationMode.AUTO:
            try:
                return self.build_automatic_question(entry, difficulty)
            except QuizGenerationError as e:
                if entry.manual is None:
                    raise
                logger.warning(f"Automatic quiz for {entry.id} failed ({e}), using the manual preset")
                return self.build_manual_question(entry)

        if entry.manual is not None and self.random() < 0.5:
            return self.build_manual_question(entry)
        return self.build_automatic_question(entry, difficulty)

    def generate_validated(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, **kwargs) -> QuizQuestion:
        """
        Generate a question and check it with ensure_valid_question.

        Invalid questions propagate in strict mode; otherwise generation is
        retried up to max_attempts times.

        Raises:
            InvalidQuizQuestionError: In strict mode, on the first invalid question
            QuizGenerationError: When every attempt produced an invalid question
        """
        for attempt in range(1, max_attempts + 1):
            question = self.generate(**kwargs)
            try:
                ensure_valid_question(question)
                return question
            except InvalidQuizQuestionError as e:
                if self.strict:
                    raise
                logger.warning(f"Discarding invalid quiz question {question.id} (attempt {attempt}/{max_attempts}): {e}")
        raise QuizGenerationError(f"No valid quiz question after {max_attempts} attempts.")

    # --- Builders ---

    def build_manual_question(self, entry: QuizBankEntry) -> QuizQuestion:
        if entry.manual is None:
            raise QuizGenerationError(f"Manual question requested but {entry.id} has no preset.")
        preset = entry.manual
        return QuizQuestion(
            id=f"quiz-{entry.id}-{uuid.uuid4().hex[:8]}",
            prompt=preset.prompt,
            choices=tuple(preset.choices),
            answer_index=preset.answer_index,
            metadata=self._metadata(entry, entry.difficulty),
            masked_text=preset.masked_text,
            blanks=tuple(preset.blanks),
            explanation=preset.explanation,
        )

    def build_automatic_question(self, entry: QuizBankEntry, difficulty: QuizDifficulty) -> QuizQuestion:
        terms, masked_text = self.pick_terms_for_masking(entry, difficulty)
        if not terms:
            raise QuizGenerationError(f"Unable to determine masking terms for {entry.id}.")
        choices, answer_index = self.build_choice_set(terms, entry)

        if len(terms) > 1:
            prompt = f"{entry.law_name}（{entry.article_number}）の本文中にある二箇所の{PLACEHOLDER}に当てはまる語句の組み合わせはどれか。"
        else:
            prompt = f"{entry.law_name}（{entry.article_number}）の本文の{PLACEHOLDER}に当てはまる語句はどれか。"

        return QuizQuestion(
            id=f"quiz-auto-{entry.id}-{uuid.uuid4().hex[:8]}",
            prompt=prompt,
            choices=choices,
            answer_index=answer_index,
            metadata=self._metadata(entry, difficulty),
            masked_text=masked_text,
            blanks=tuple(terms),
        )

    def pick_terms_for_masking(self, entry: QuizBankEntry, difficulty: QuizDifficulty) -> Tuple[List[str], str]:
        """
        Choose the terms to blank out and mask them.

        The pool (keywords, then text tokens) is shuffled and walked in order;
        a term is taken only if it still occurs in the partially masked text,
        so every blank has exactly one placeholder.

        Returns:
            (terms, masked_text); terms is empty when nothing can be masked
        """
        pool = list(dict.fromkeys(list(entry.keywords) + tokenize_candidates(entry.text)))
        if not pool:
            return [], entry.text

        wanted = blank_count_for(difficulty, len(pool))
        masked = entry.text
        terms: List[str] = []
        for term in shuffle(pool, self.random):
            if term in masked:
                masked = mask_text_with_terms(masked, [term])
                terms.append(term)
                if len(terms) == wanted:
                    break
        return terms, masked

    def build_choice_set(self, correct_terms: Sequence[str], entry: QuizBankEntry) -> Tuple[Tuple[str, ...], int]:
        """
        Correct label plus three distractors, shuffled.

        Returns:
            (choices, answer_index)
        """
        correct_label = choice_label(correct_terms)
        pool_words = list(dict.fromkeys(
            list(entry.distractors)
            + list(entry.keywords)
            + get_distractor_pool(entry.category, entry.law_id, self.entries)
        ))
        pool = [word for word in shuffle(pool_words, self.random) if word not in correct_terms]

        distractors: List[str] = []
        arity = len(correct_terms)
        if arity > 1:
            while len(distractors) < DISTRACTOR_COUNT and len(pool) >= arity:
                combination, pool = pool[:arity], pool[arity:]
                label = choice_label(combination)
                if label != correct_label and label not in distractors:
                    distractors.append(label)
        else:
            for candidate in pool:
                if candidate == correct_label or candidate in distractors:
                    continue
                distractors.append(candidate)
                if len(distractors) == DISTRACTOR_COUNT:
                    break

        letter = 0
        while len(distractors) < DISTRACTOR_COUNT:
            filler = f"{FILLER_PREFIX}{chr(ord('A') + letter)}"
            letter += 1
            if filler not in distractors and filler != correct_label:
                distractors.append(filler)

        choices = tuple(shuffle([correct_label] + distractors, self.random))
        return choices, choices.index(correct_label)

    # --- Helpers ---

    def _resolve_entry(self, category: Optional[str]) -> QuizBankEntry:
        entries = get_entries_by_category(category, self.entries)
        if not entries:
            raise QuizGenerationError(f"No quiz bank entries available for category {category!r}.")
        if len(entries) == 1:
            return entries[0]
        return entries[pick_index(len(entries), self.random)]

    @staticmethod
    def _metadata(entry: QuizBankEntry, difficulty: QuizDifficulty) -> QuizMetadata:
        return QuizMetadata(
            law_id=entry.law_id,
            law_name=entry.law_name,
            article_number=entry.article_number,
            category=entry.category,
            difficulty=difficulty,
            source_url=entry.source_url,
        )
