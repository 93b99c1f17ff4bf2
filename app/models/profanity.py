"""
Lexicon-based profanity matcher.

Each lexicon term compiles to a word-bounded regex that tolerates the usual
obfuscations: masked letters ("f***", "sh*t"), leetspeak ("sh1t", "@ss"),
and stretched letters ("fuuuck"). The first letter must stay visible so a
run of asterisks never matches on its own.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from app.core.logging import get_logger

logger = get_logger("models.profanity")


# Characters commonly used in place of a letter
LEET = {
    "a": "a@4",
    "b": "b8",
    "e": "e3",
    "g": "g9",
    "i": "i1!|",
    "l": "l1|",
    "o": "o0",
    "s": "s$5",
    "t": "t7+",
}

MASK_CHARS = "*#%"

# (word, allow_inflection)
DEFAULT_LEXICON: Tuple[Tuple[str, bool], ...] = (
    ("fuck", True),
    ("motherfucker", True),
    ("shit", True),
    ("bullshit", True),
    ("bitch", True),
    ("bastard", True),
    ("asshole", True),
    ("dumbass", True),
    ("jackass", True),
    ("dick", False),
    ("dickhead", True),
    ("cock", False),
    ("cocksucker", True),
    ("cunt", True),
    ("pussy", False),
    ("whore", True),
    ("slut", True),
    ("twat", True),
    ("wanker", True),
    ("porn", False),
    ("blowjob", True),
    ("handjob", True),
    ("dildo", True),
    ("jizz", False),
    ("nigger", True),
    ("nigga", True),
    ("faggot", True),
    ("fag", False),
    ("retard", True),
)

INFLECTIONS = r"(?:s|es|ed|er|ers|ing|in)?"


@dataclass(frozen=True)
class LexiconMatch:
    """A matched span. `word` is None when the term carries no metadata."""
    term_id: int
    start: int
    end: int
    word: Optional[str] = None


def _letter_class(letter: str) -> str:
    chars = LEET.get(letter, letter)
    return "[" + "".join(re.escape(c) for c in chars) + "]"


def compile_term(word: str, inflect: bool = False) -> Pattern:
    """Compile one lexicon word into an obfuscation tolerant pattern."""
    word = word.lower()
    mask = "[" + re.escape(MASK_CHARS) + "]"
    parts = [_letter_class(word[0]) + "+"]
    for letter in word[1:]:
        parts.append(f"(?:{_letter_class(letter)}+|{mask})")

    boundary = "a-z0-9" + re.escape(MASK_CHARS)
    body = "".join(parts) + (INFLECTIONS if inflect else "")
    return re.compile(f"(?<![{boundary}]){body}(?![{boundary}])", re.IGNORECASE)


class ProfanityMatcher:
    """
    Matches text against a profanity lexicon and censors matched spans.

    Literal text and transcript segments go through the same instance so
    both are judged identically.
    """

    def __init__(
        self,
        lexicon: Sequence[Tuple[str, bool]] = DEFAULT_LEXICON,
        extra_terms: Iterable[str] = (),
        extra_patterns: Iterable[str] = (),
        censor_char: str = "*",
    ):
        self.censor_char = censor_char
        # (pattern, word or None)
        self._terms: List[Tuple[Pattern, Optional[str]]] = []

        for word, inflect in lexicon:
            self._terms.append((compile_term(word, inflect), word))
        for word in extra_terms:
            self._terms.append((compile_term(word, True), word))
        for raw in extra_patterns:
            # Raw patterns have no word metadata
            self._terms.append((re.compile(raw, re.IGNORECASE), None))

        logger.debug(f"Profanity matcher ready with {len(self._terms)} terms")

    @property
    def term_count(self) -> int:
        return len(self._terms)

    def has_match(self, text: str) -> bool:
        if not text:
            return False
        return any(pattern.search(text) for pattern, _ in self._terms)

    def find_matches(self, text: str) -> List[LexiconMatch]:
        """All non-overlapping matches, ordered by position, longest wins."""
        if not text:
            return []

        candidates = []
        for term_id, (pattern, word) in enumerate(self._terms):
            for m in pattern.finditer(text):
                if m.end() > m.start():
                    candidates.append(LexiconMatch(term_id, m.start(), m.end(), word))

        candidates.sort(key=lambda c: (c.start, -(c.end - c.start), c.term_id))

        matches: List[LexiconMatch] = []
        for candidate in candidates:
            if matches and candidate.start < matches[-1].end:
                continue
            matches.append(candidate)
        return matches

    def censor(self, text: str, matches: Sequence[LexiconMatch]) -> str:
        """Replace every matched span with censor characters."""
        if not matches:
            return text

        pieces = []
        cursor = 0
        for match in sorted(matches, key=lambda m: m.start):
            if match.start < cursor:
                continue
            pieces.append(text[cursor:match.start])
            pieces.append(self.censor_char * (match.end - match.start))
            cursor = match.end
        pieces.append(text[cursor:])
        return "".join(pieces)

    def filter_text(self, text: str) -> str:
        """Censored rewrite of `text`."""
        return self.censor(text, self.find_matches(text))
