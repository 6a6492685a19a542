"""
WordPiece Tokenizer
====================
Turns raw text into the three integer sequences a BERT-style encoder expects:

    input_ids       -- [CLS] word-piece ids ... [SEP]
    token_type_ids  -- all zeros (single-segment input)
    attention_mask  -- all ones (no padding is added here)

The vocabulary is a plain-text file with one word-piece per line, loaded once
when the tokenizer is constructed.  Casing policy is fixed: text is
lower-cased and accents are stripped before splitting.

Truncation:
    BERT supports a maximum sequence length of 512.  Longer encodings are
    hard-truncated to their first 512 entries.  The trailing [SEP] is NOT
    re-appended, so a truncated sequence ends on an ordinary word-piece.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from transformers import BertTokenizer

from text_embedder.errors import ModelFileNotFoundError

logger = logging.getLogger(__name__)

MAX_SEQ_LENGTH = 512

UNK_TOKEN = "[UNK]"
SEP_TOKEN = "[SEP]"
PAD_TOKEN = "[PAD]"
CLS_TOKEN = "[CLS]"
MASK_TOKEN = "[MASK]"


@dataclass(frozen=True)
class EncodedInput:
    """Model-ready token sequences for a single text (all the same length)."""

    input_ids: List[int]
    token_type_ids: List[int]
    attention_mask: List[int]

    def __len__(self) -> int:
        return len(self.input_ids)


def truncate_encoded(encoded: EncodedInput, max_length: int = MAX_SEQ_LENGTH) -> EncodedInput:
    """Keep the first ``max_length`` entries of every sequence."""
    if len(encoded) <= max_length:
        return encoded
    return EncodedInput(
        input_ids=encoded.input_ids[:max_length],
        token_type_ids=encoded.token_type_ids[:max_length],
        attention_mask=encoded.attention_mask[:max_length],
    )


class WordPieceTokenizer:
    """
    Lower-casing, accent-stripping WordPiece tokenizer over a fixed vocabulary.

    Usage:
        tok = WordPieceTokenizer("models/all-MiniLM-L6-v2/vocab.txt")
        encoded = tok.tokenize_and_encode("Hello world")
        # encoded.input_ids == [101, 7592, 2088, 102]
    """

    def __init__(self, vocab_path: str, max_length: int = MAX_SEQ_LENGTH):
        """
        Args:
            vocab_path : plain-text vocabulary file, one word-piece per line
            max_length : hard cap applied to every encoded sequence
        """
        path = Path(vocab_path)
        if not path.exists():
            raise ModelFileNotFoundError(f"Vocabulary file not found: {path}")

        self.vocab_path = path
        self.max_length = max_length
        self._tokenizer = BertTokenizer(
            vocab_file=str(path),
            do_lower_case=True,
            strip_accents=True,
            unk_token=UNK_TOKEN,
            sep_token=SEP_TOKEN,
            pad_token=PAD_TOKEN,
            cls_token=CLS_TOKEN,
            mask_token=MASK_TOKEN,
        )
        logger.info(
            "Loaded vocabulary: %s (%d entries)", path, self._tokenizer.vocab_size
        )

    def tokenize(self, text: str) -> List[str]:
        """Split text into word-pieces (no special tokens)."""
        return self._tokenizer.tokenize(text)

    def tokenize_and_encode(self, text: str) -> EncodedInput:
        """
        Encode one text into an ``EncodedInput``.

        Special tokens are added before truncation, so an over-long text
        keeps its leading [CLS] but loses its trailing [SEP].
        """
        encoded = self._tokenizer(
            text,
            add_special_tokens=True,
            truncation=False,
            padding=False,
            return_token_type_ids=True,
            return_attention_mask=True,
        )
        input_ids = list(encoded["input_ids"])
        full = EncodedInput(
            input_ids=input_ids,
            token_type_ids=list(encoded["token_type_ids"]),
            attention_mask=[1] * len(input_ids),
        )
        if len(full) > self.max_length:
            logger.debug(
                "Truncating encoded input from %d to %d tokens",
                len(full),
                self.max_length,
            )
        return truncate_encoded(full, self.max_length)
