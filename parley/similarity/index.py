"""TF-IDF vectors per discussion and cosine similarity between them.

``train`` rebuilds the vocabulary and IDF weights from a full corpus.
``update_discussion`` only re-vectorises one discussion against the last
trained IDF: terms first seen after training carry no weight until the next
``train``, and the document count behind the IDF does not include
discussions added since. Callers that need corpus-accurate scores after many
incremental updates must retrain.
"""

import logging
import math
import threading
from collections import Counter
from collections.abc import Mapping
from typing import Any

from parley.core.models import Discussion

from .tokenize import preprocess

logger = logging.getLogger(__name__)

Vector = dict[str, float]


def document_text(discussion: Discussion) -> str:
    parts = [discussion.topic] if discussion.topic else []
    parts.extend(m.content for m in discussion.messages if m.content)
    return " ".join(parts)


def cosine_similarity(vec1: Vector, vec2: Vector) -> float:
    if not vec1 or not vec2:
        return 0.0
    if vec1 == vec2:
        return 1.0

    dot = sum(weight * vec2[term] for term, weight in vec1.items() if term in vec2)
    norm1 = math.sqrt(sum(w * w for w in vec1.values()))
    norm2 = math.sqrt(sum(w * w for w in vec2.values()))
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return max(0.0, min(1.0, dot / (norm1 * norm2)))


class SimilarityIndex:
    def __init__(self, top_terms: int = 20, max_keywords: int = 10):
        self.top_terms_count = top_terms
        self.max_keywords = max_keywords
        self.document_count = 0
        self._idf: dict[str, float] = {}
        self._vectors: dict[str, Vector] = {}
        self._trained = False
        self._lock = threading.Lock()

    @property
    def is_trained(self) -> bool:
        return self._trained

    @property
    def vocabulary_size(self) -> int:
        return len(self._idf)

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, discussion_id: str) -> bool:
        return discussion_id in self._vectors

    def _vectorize(self, text: str, idf: dict[str, float]) -> Vector:
        counts = Counter(preprocess(text))
        if not counts:
            return {}
        max_tf = max(counts.values())
        vector = {}
        for term, tf in counts.items():
            weight = idf.get(term)
            if weight is not None:
                vector[term] = (0.5 + 0.5 * tf / max_tf) * weight
        return vector

    def train(self, discussions: Mapping[str, Discussion]) -> dict[str, int]:
        """Fit vocabulary and IDF over the corpus and replace every stored vector."""
        texts = {did: document_text(d) for did, d in discussions.items()}
        document_count = len(texts)

        doc_freq: Counter[str] = Counter()
        for text in texts.values():
            doc_freq.update(set(preprocess(text)))

        idf = {
            term: math.log(document_count / (df + 1)) + 1 for term, df in doc_freq.items()
        }
        vectors = {did: self._vectorize(text, idf) for did, text in texts.items()}

        with self._lock:
            self.document_count = document_count
            self._idf = idf
            self._vectors = vectors
            self._trained = True

        logger.info(f"Trained similarity index: {document_count} discussions, {len(idf)} terms")
        return {"documents": document_count, "vocabulary": len(idf)}

    def update_discussion(self, discussion_id: str, discussion: Discussion) -> None:
        """Re-vectorise one discussion against the last trained IDF weights."""
        vector = self._vectorize(document_text(discussion), self._idf)
        with self._lock:
            self._vectors[discussion_id] = vector

    def remove_discussion(self, discussion_id: str) -> bool:
        with self._lock:
            return self._vectors.pop(discussion_id, None) is not None

    def on_store_change(self, discussion_id: str, discussion: Discussion | None) -> None:
        if discussion is None:
            self.remove_discussion(discussion_id)
        elif self._trained:
            self.update_discussion(discussion_id, discussion)

    def vector(self, discussion_id: str) -> Vector:
        return dict(self._vectors.get(discussion_id, {}))

    def calculate_similarity(self, id1: str, id2: str) -> float:
        """Cosine similarity in [0, 1]; 0 when either vector is missing or empty."""
        vec1 = self._vectors.get(id1)
        vec2 = self._vectors.get(id2)
        if not vec1 or not vec2:
            return 0.0
        if id1 == id2:
            return 1.0
        return cosine_similarity(vec1, vec2)

    def top_terms(self, discussion_id: str, n: int | None = None) -> list[str]:
        n = self.top_terms_count if n is None else n
        vector = self._vectors.get(discussion_id, {})
        ranked = sorted(vector.items(), key=lambda item: (-item[1], item[0]))
        return [term for term, _ in ranked[:n]]

    def common_keywords(self, id1: str, id2: str) -> list[str]:
        """Terms in both discussions' top terms, strongest combined weight first."""
        vec1 = self._vectors.get(id1, {})
        vec2 = self._vectors.get(id2, {})
        shared = set(self.top_terms(id1)) & set(self.top_terms(id2))
        ranked = sorted(shared, key=lambda term: (-(vec1[term] + vec2[term]), term))
        return ranked[: self.max_keywords]

    def find_similar(
        self,
        discussion_id: str,
        corpus: Mapping[str, Discussion],
        threshold: float = 0.1,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Discussions in ``corpus`` at least ``threshold`` similar, best first."""
        if discussion_id not in self._vectors:
            return []

        results = []
        for other_id, other in corpus.items():
            if other_id == discussion_id:
                continue
            similarity = self.calculate_similarity(discussion_id, other_id)
            if similarity < threshold:
                continue
            results.append(
                {
                    "discussionId": other_id,
                    "topic": other.topic or "无主题",
                    "similarity": similarity,
                    "commonKeywords": self.common_keywords(discussion_id, other_id),
                    "messageCount": len(other.messages),
                    "createdAt": other.created_at,
                    "status": other.status,
                }
            )

        results.sort(key=lambda r: (-r["similarity"], r["discussionId"]))
        return results[: max(limit, 0)]
