#!/usr/bin/env python3
"""
Generate quiz questions from the curated quiz bank (no network access).

Examples:
    python scripts/run_quiz.py
    python scripts/run_quiz.py --category 会社法 --difficulty hard --mode auto --count 3
    python scripts/run_quiz.py --difficulty easy --seed 7
"""

import argparse
import logging
import os
import random
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add the project root to Python path for imports
project_root = Path(__file__).resolve().parents[1]
sys.path.append(str(project_root))

from hourei_engine.core.law_explorer.errors import QuizGenerationError
from hourei_engine.core.law_explorer.models import QuizDifficulty, QuizGenerationMode
from hourei_engine.core.law_explorer.quiz_bank import QUIZ_CATEGORIES
from hourei_engine.core.law_explorer.quiz_generator import QuizGenerator, pick_mode_from_difficulty


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate fill-in-the-blank statute quiz questions")
    parser.add_argument("--category", choices=list(QUIZ_CATEGORIES))
    parser.add_argument("--difficulty", choices=[level.value for level in QuizDifficulty], default="normal")
    parser.add_argument("--mode", choices=[mode.value for mode in QuizGenerationMode],
                        help="Generation mode (derived from the difficulty when omitted)")
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--seed", type=int, help="Seed for reproducible questions")
    parser.add_argument("--strict", action="store_true", help="Fail on the first invalid question")
    args = parser.parse_args()

    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")
    logging.basicConfig(
        level=os.getenv("HOUREI_LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    rng = random.Random(args.seed)
    generator = QuizGenerator(random=rng.random, strict=args.strict)
    difficulty = QuizDifficulty(args.difficulty)

    for number in range(1, args.count + 1):
        mode = QuizGenerationMode(args.mode) if args.mode else pick_mode_from_difficulty(difficulty, rng.random)
        try:
            question = generator.generate_validated(category=args.category, difficulty=difficulty, mode=mode)
        except QuizGenerationError as e:
            print(f"❌ Question {number} ({mode.value}): {e}")
            continue

        print(f"\nQ{number} [{question.metadata.law_name} {question.metadata.article_number} / {mode.value}]")
        print(f"  {question.prompt}")
        if question.masked_text:
            print(f"  {question.masked_text}")
        for index, choice in enumerate(question.choices):
            print(f"   {index + 1}. {choice}")
        print(f"  → 正解: {question.answer_index + 1}. {question.correct_choice}")
        if question.explanation:
            print(f"  {question.explanation}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
