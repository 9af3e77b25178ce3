"""
Curated statute excerpts used as quiz sources.

Static reference data: entries are frozen dataclasses and are never mutated.
"""

from typing import List, Optional, Sequence

from hourei_engine.core.law_explorer.models import ManualQuizPreset, QuizBankEntry, QuizDifficulty

QUIZ_BANK_ENTRIES: Sequence[QuizBankEntry] = (
    QuizBankEntry(
        id="banking-01",
        law_id="410AC0000000059",
        law_name="銀行法",
        article_number="第1条",
        category="金融法",
        difficulty=QuizDifficulty.EASY,
        text="銀行は、預金者等の保護を図り、その業務の健全かつ適切な運営を確保することにより、信用秩序の維持に資することを目的とする。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=410AC0000000059",
        keywords=("預金者", "保護", "信用秩序"),
        distractors=("財務諸表", "内部統制", "変動金利"),
        manual=ManualQuizPreset(
            prompt="銀行法第1条の目的として正しい語句はどれか。",
            masked_text="銀行は、[ 〇〇 ]等の保護を図り、その業務の健全かつ適切な運営を確保することにより、信用秩序の維持に資することを目的とする。",
            blanks=("預金者",),
            choices=("預金者", "行政機関", "監査法人", "労働組合"),
            answer_index=0,
            explanation="銀行法は銀行利用者、とりわけ預金者を保護することを目的に掲げている。",
        ),
    ),
    QuizBankEntry(
        id="corporate-02",
        law_id="417AC0000000086",
        law_name="会社法",
        article_number="第362条",
        category="会社法",
        difficulty=QuizDifficulty.NORMAL,
        text="取締役会は、会社の業務執行の決定、取締役の職務の執行の監督及び代表取締役の選定並びに解職を行う。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=417AC0000000086",
        keywords=("取締役会", "業務執行", "監督", "代表取締役"),
        distractors=("株主割当増資", "決算公告", "委員会設置会社"),
        manual=ManualQuizPreset(
            prompt="会社法第362条における取締役会の権限として適切なものはどれか。",
            masked_text="取締役会は、会社の[ 〇〇 ]の決定、取締役の職務の執行の監督及び代表取締役の選定並びに解職を行う。",
            blanks=("業務執行",),
            choices=("業務執行", "定款変更", "剰余金の配当", "会計監査"),
            answer_index=0,
        ),
    ),
    QuizBankEntry(
        id="copyright-01",
        law_id="345AC0000000048",
        law_name="著作権法",
        article_number="第21条",
        category="著作権法",
        difficulty=QuizDifficulty.NORMAL,
        text="著作者は、その著作物を上映する権利を専有する。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=345AC0000000048",
        keywords=("著作者", "著作物", "上映する権利"),
        distractors=("頒布権", "翻案権", "複製権"),
        manual=ManualQuizPreset(
            prompt="著作権法第21条で著作者が専有すると規定されている権利はどれか。",
            masked_text="著作者は、その著作物を[ 〇〇 ]権利を専有する。",
            blanks=("上映する",),
            choices=("上映する", "複製する", "翻案する", "放送する"),
            answer_index=0,
        ),
    ),
    QuizBankEntry(
        id="administrative-01",
        law_id="405AC1000000088",
        law_name="行政手続法",
        article_number="第5条",
        category="行政手続法",
        difficulty=QuizDifficulty.HARD,
        text="行政庁は、申請に対して標準処理期間を定め、申請者に対してその期間を公表しなければならない。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=405AC1000000088",
        keywords=("申請", "標準処理期間", "公表"),
        distractors=("行政指導", "聴聞", "教示"),
        manual=ManualQuizPreset(
            prompt="行政手続法第5条に関する記述のうち正しい語句を選べ。",
            masked_text="行政庁は、申請に対して[ 〇〇 ]を定め、申請者に対してその期間を公表しなければならない。",
            blanks=("標準処理期間",),
            choices=("標準処理期間", "行政指導計画", "聴聞日程", "審査基準"),
            answer_index=0,
            explanation="申請手続の迅速化を図るため、行政手続法は標準処理期間の設定・公表を義務づけている。",
        ),
    ),
    QuizBankEntry(
        id="banking-02",
        law_id="410AC0000000059",
        law_name="銀行法",
        article_number="第13条",
        category="金融法",
        difficulty=QuizDifficulty.HARD,
        text="銀行は、内閣総理大臣の認可を受けなければ他の銀行と合併することができない。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=410AC0000000059",
        keywords=("認可", "合併", "内閣総理大臣"),
        distractors=("登録", "届出", "許可"),
    ),
    QuizBankEntry(
        id="corporate-04",
        law_id="417AC0000000086",
        law_name="会社法",
        article_number="第296条",
        category="会社法",
        difficulty=QuizDifficulty.EASY,
        text="株主総会は、株主により構成され、会社の基本的な意思決定を行う機関である。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=417AC0000000086",
        keywords=("株主総会", "意思決定"),
        distractors=("監査役会", "委員会", "社外取締役"),
    ),
    QuizBankEntry(
        id="copyright-03",
        law_id="345AC0000000048",
        law_name="著作権法",
        article_number="第30条",
        category="著作権法",
        difficulty=QuizDifficulty.HARD,
        text="著作物は、家庭内その他これに準ずる限られた範囲内において私的に利用することができる。",
        source_url="https://elaws.e-gov.go.jp/document?lawid=345AC0000000048",
        keywords=("家庭内", "私的", "利用"),
        distractors=("営利目的", "公衆送信", "海外利用"),
    ),
)

# Categories in first-appearance order
QUIZ_CATEGORIES: Sequence[str] = tuple(dict.fromkeys(entry.category for entry in QUIZ_BANK_ENTRIES))


def get_entries_by_category(
    category: Optional[str] = None,
    entries: Sequence[QuizBankEntry] = QUIZ_BANK_ENTRIES,
) -> List[QuizBankEntry]:
    if not category:
        return list(entries)
    return [entry for entry in entries if entry.category == category]


def get_distractor_pool(
    category: Optional[str] = None,
    exclude_law_id: Optional[str] = None,
    entries: Sequence[QuizBankEntry] = QUIZ_BANK_ENTRIES,
) -> List[str]:
    """
    Keywords and distractors of the bank entries in a category, without duplicates.

    Entries of exclude_law_id are skipped, so the source entry and its sibling
    excerpts from the same law never contribute.
    """
    words: List[str] = []
    for entry in get_entries_by_category(category, entries):
        if exclude_law_id and entry.law_id == exclude_law_id:
            continue
        for word in entry.keywords + entry.distractors:
            if word not in words:
                words.append(word)
    return words


def get_preset_entries(entries: Sequence[QuizBankEntry] = QUIZ_BANK_ENTRIES) -> List[QuizBankEntry]:
    return [entry for entry in entries if entry.manual is not None]
