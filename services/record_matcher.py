"""
Record matcher.

Pairs records from the two platforms by natural key (SKU) and decides
create vs update for every authoritative record. Pure functions: no
network or storage access.

Known limitations, kept on purpose:
    - Duplicate natural keys in the counterpart set are shadowed silently,
      the last record with a key wins.
    - Bidirectional matching is a single pass with the source set as
      authoritative; there is no mirrored pass over the target set.
"""

from typing import Iterable, Optional

import structlog

from models.preview import PreviewStats
from models.record import Record
from models.sync import Mapping, SyncAction, SyncDirection

logger = structlog.get_logger(__name__)


def split_by_authority(
    source_set: list[Record],
    target_set: list[Record],
    direction: SyncDirection
) -> tuple[list[Record], list[Record]]:
    """Return (authoritative, counterpart) record sets for a direction."""
    if direction is SyncDirection.TARGET_TO_SOURCE:
        return target_set, source_set
    return source_set, target_set


def build_key_index(records: Iterable[Record]) -> dict[str, Record]:
    """
    Index records by natural key.

    Records without a key are left out. On duplicate keys the last record
    wins.
    """
    index: dict[str, Record] = {}
    for record in records:
        if record.has_natural_key:
            index[record.natural_key] = record
    return index


def match(
    source_set: list[Record],
    target_set: list[Record],
    direction: SyncDirection
) -> list[Mapping]:
    """
    Match authoritative records against their counterparts.

    Args:
        source_set: Records from the source platform (NetSuite)
        target_set: Records from the target platform (Shopify)
        direction: Sync direction, decides which set is authoritative

    Returns:
        One Mapping per authoritative record, in input order. A record
        without a natural key is always `create` and never paired.
    """
    authoritative, counterpart = split_by_authority(source_set, target_set, direction)
    index = build_key_index(counterpart)

    mappings = []
    for record in authoritative:
        found: Optional[Record] = index.get(record.natural_key) if record.has_natural_key else None
        mappings.append(
            Mapping(
                source_id=record.id,
                target_id=found.id if found else None,
                action=SyncAction.UPDATE if found else SyncAction.CREATE,
                conflicts=[],
            )
        )

    logger.debug(
        "records_matched",
        direction=direction.value,
        authoritative=len(authoritative),
        counterpart=len(counterpart),
        updates=sum(1 for m in mappings if m.action is SyncAction.UPDATE)
    )

    return mappings


def apply_selection(mappings: list[Mapping], selected_ids: Iterable[str]) -> list[Mapping]:
    """
    Turn deselected mappings into `skip`.

    Returns new Mapping objects; the input list is not modified. Selected
    mappings keep their create/update verdict.
    """
    selected = set(selected_ids)
    return [
        m if m.source_id in selected
        else m.model_copy(update={"action": SyncAction.SKIP})
        for m in mappings
    ]


def summarize(mappings: list[Mapping], selected_ids: Iterable[str]) -> PreviewStats:
    """Counts of selected creates and updates."""
    selected = set(selected_ids)
    chosen = [m for m in mappings if m.source_id in selected]
    return PreviewStats(
        to_create=sum(1 for m in chosen if m.action is SyncAction.CREATE),
        to_update=sum(1 for m in chosen if m.action is SyncAction.UPDATE),
        total=len(chosen),
    )
