"""Tokenizer for mixed Chinese/English discussion text.

ASCII letter/digit runs become one token each. Runs of CJK characters have
no word boundaries, so they are split into overlapping character bigrams:
"微服务架构" -> 微服, 服务, 务架, 架构. Single-character tokens and stop words
are dropped.
"""

import re

from parley.lib.stopwords import is_stopword

_NOISE = re.compile(r"[^0-9a-z\u4e00-\u9fff]+")
_RUNS = re.compile(r"[0-9a-z]+|[\u4e00-\u9fff]+")
_CJK = re.compile(r"[\u4e00-\u9fff]")


def _bigrams(run: str) -> list[str]:
    if len(run) < 2:
        return [run]
    return [run[i : i + 2] for i in range(len(run) - 1)]


def tokenize(text: str | None) -> list[str]:
    """Split text into raw tokens, before stop-word filtering."""
    if not text or not isinstance(text, str):
        return []

    tokens = []
    for chunk in _NOISE.sub(" ", text.lower()).split():
        for run in _RUNS.findall(chunk):
            if _CJK.match(run):
                tokens.extend(_bigrams(run))
            else:
                tokens.append(run)
    return tokens


def preprocess(text: str | None) -> list[str]:
    return [t for t in tokenize(text) if len(t) > 1 and not is_stopword(t)]
