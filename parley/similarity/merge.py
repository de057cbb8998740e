"""Merge near-duplicate discussions into one, keeping message provenance."""

import copy
import logging
from dataclasses import replace
from typing import Any

from parley.core.models import now_ms
from parley.core.protocols import DiscussionRepository
from parley.errors import InvalidArgumentError, NotFoundError
from parley.lib.uuid7 import prefixed

from .index import SimilarityIndex

logger = logging.getLogger(__name__)


def merge_discussions(
    store: DiscussionRepository,
    index: SimilarityIndex | None,
    target_id: str,
    source_ids: list[str],
) -> dict[str, Any]:
    """Fold each source discussion into ``target_id`` and delete the source.

    Migrated messages get fresh ids and ``provenance`` recording where they
    came from. A missing source is logged and skipped; the rest still merge.
    """
    if not source_ids:
        raise InvalidArgumentError("sourceIds must not be empty")

    with store.locks.hold(target_id, *source_ids):
        target = store.get(target_id)
        if target is None:
            raise NotFoundError(f"Target discussion {target_id} not found")

        messages = list(target.messages)
        conflicts = copy.deepcopy(target.conflicts)
        topic = target.topic
        merged_ids: list[str] = []
        skipped_ids: list[str] = []
        merged_messages = 0
        merged_conflicts = 0

        for source_id in dict.fromkeys(source_ids):
            if source_id == target_id:
                logger.warning(f"Skipping merge of discussion {target_id} into itself")
                skipped_ids.append(source_id)
                continue
            source = store.get(source_id)
            if source is None:
                logger.warning(f"Source discussion {source_id} not found, skipping merge")
                skipped_ids.append(source_id)
                continue

            for message in source.messages:
                messages.append(
                    replace(
                        message,
                        id=prefixed("msg"),
                        mentions=list(message.mentions),
                        metadata=copy.deepcopy(message.metadata),
                        provenance={"mergedFrom": source_id, "originalMessageId": message.id},
                    )
                )
            conflicts.extend(copy.deepcopy(source.conflicts))
            if source.topic and source.topic not in topic:
                topic = f"{topic} / {source.topic}" if topic else source.topic

            merged_messages += len(source.messages)
            merged_conflicts += len(source.conflicts)
            merged_ids.append(source_id)

        if merged_ids:
            merged = store.save(
                replace(
                    target,
                    messages=messages,
                    conflicts=conflicts,
                    topic=topic,
                    updated_at=now_ms(),
                )
            )
            for source_id in merged_ids:
                store.delete(source_id)
                if index is not None:
                    index.remove_discussion(source_id)
            if index is not None and index.is_trained:
                index.update_discussion(target_id, merged)

    logger.info(
        f"Merged {len(merged_ids)} discussions into {target_id}: "
        f"{merged_messages} messages, {merged_conflicts} conflicts"
    )
    return {
        "targetId": target_id,
        "mergedMessagesCount": merged_messages,
        "mergedConflictsCount": merged_conflicts,
        "mergedSourceIds": merged_ids,
        "skippedSourceIds": skipped_ids,
    }
