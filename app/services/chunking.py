import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

import tiktoken

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_MAX_TOKENS = 3000
DEFAULT_OVERLAP = 200
OVERLAP_SENTENCES = 2
ENCODING_NAME = "cl100k_base"

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
WHITESPACE = re.compile(r"\s+")

TokenCounter = Callable[[str], int]


@dataclass(frozen=True)
class TextChunk:
    text: str
    chunk_index: int
    token_count: int
    # Length of the leading text repeated from the previous chunk (including the joining space)
    overlap_chars: int = 0

    @property
    def fresh_text(self) -> str:
        return self.text[self.overlap_chars:]


@lru_cache(maxsize=1)
def _encoder():
    return tiktoken.get_encoding(ENCODING_NAME)


def count_tokens(text: str) -> int:
    """Number of cl100k_base BPE tokens in text."""
    return len(_encoder().encode(text, disallowed_special=()))


def normalize_text(text: str) -> str:
    return WHITESPACE.sub(" ", (text or "").strip())


def _seed(parts: List[str], counts: List[int], carry: int, next_count: int,
          max_tokens: int) -> Tuple[List[str], List[int]]:
    """Overlap parts carried into the next chunk, trimmed from the front until they fit."""
    if carry <= 0:
        return [], []
    seed, seed_counts = parts[-carry:], counts[-carry:]
    while seed and sum(seed_counts) + next_count > max_tokens:
        seed, seed_counts = seed[1:], seed_counts[1:]
    return seed, seed_counts


def _pack(parts: List[Tuple[str, int]], max_tokens: int, carry: int) -> List[Tuple[List[str], int]]:
    """
    Greedy packing of (part, token_count) pairs with a running total. A chunk's
    total is the sum of its parts' counts; nothing is re-tokenized.
    """
    pieces: List[Tuple[List[str], int]] = []
    current: List[str] = []
    counts: List[int] = []
    total = 0
    carried = 0

    for part, n in parts:
        if current and total + n > max_tokens:
            pieces.append((current, carried))
            current, counts = _seed(current, counts, carry, n, max_tokens)
            carried = len(current)
            total = sum(counts)
        current.append(part)
        counts.append(n)
        total += n

    if current:
        pieces.append((current, carried))
    return pieces


def _split_by_words(sentence: str, max_tokens: int, overlap: int, count: TokenCounter) -> List[Tuple[List[str], int]]:
    words = [(word, count(word)) for word in sentence.split(" ")]
    return _pack(words, max_tokens, math.ceil(overlap / 10))


def _build_pieces(text: str, max_tokens: int, overlap: int, count: TokenCounter) -> List[Tuple[List[str], int]]:
    cleaned = normalize_text(text)
    if not cleaned:
        return []

    pieces: List[Tuple[List[str], int]] = []
    run: List[Tuple[str, int]] = []

    for sentence in SENTENCE_BOUNDARY.split(cleaned):
        n = count(sentence)
        if n > max_tokens:
            # Flush the sentences so far, then split the long one by words
            pieces.extend(_pack(run, max_tokens, OVERLAP_SENTENCES))
            run = []
            pieces.extend(_split_by_words(sentence, max_tokens, overlap, count))
        else:
            run.append((sentence, n))

    pieces.extend(_pack(run, max_tokens, OVERLAP_SENTENCES))
    return pieces


def split_into_chunks(
    text: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap: int = DEFAULT_OVERLAP,
    token_counter: Optional[TokenCounter] = None,
) -> List[TextChunk]:
    """
    Split text into token-bounded, overlapping chunks.

    Sentences are packed greedily; each new chunk repeats the last two sentences of
    the previous one. Sentences longer than the budget are split by words, carrying
    roughly overlap / 10 words forward. A single word longer than the budget is
    kept whole.
    """
    count = token_counter or count_tokens
    chunks: List[TextChunk] = []

    for index, (parts, carried) in enumerate(_build_pieces(text, max_tokens, overlap, count)):
        chunk = " ".join(parts)
        overlap_chars = len(" ".join(parts[:carried])) + 1 if carried else 0
        chunks.append(TextChunk(
            text=chunk,
            chunk_index=index,
            token_count=count(chunk),
            overlap_chars=overlap_chars,
        ))

    logger.info(f"Split text into {len(chunks)} chunks", extra={"token_counts": [c.token_count for c in chunks]})
    return chunks


def chunk_text(
    text: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap: int = DEFAULT_OVERLAP,
    token_counter: Optional[TokenCounter] = None,
) -> List[str]:
    return [c.text for c in split_into_chunks(text, max_tokens, overlap, token_counter)]


def prepare_chunks_for_embedding(
    text: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap: int = DEFAULT_OVERLAP,
    token_counter: Optional[TokenCounter] = None,
) -> List[TextChunk]:
    """Ordered chunks with index and token count, ready for the embedding step."""
    return split_into_chunks(text, max_tokens, overlap, token_counter)
