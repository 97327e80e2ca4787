"""Chain repair passes for session transcripts.

Two independent passes restore the consistency a transcript writer can lose
when records are appended out of order or sessions are stitched together:

- temporal repair makes timestamps non-decreasing (best effort, bounded);
- parent-link repair makes every ``parentUuid`` point at the previous record.

Both are pure over decoded records and return a sparse ``{index: entry}``
update map. Both return an empty map on an already-consistent sequence.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from claude_context.codec import apply_updates, decode_best_effort
from claude_context.types import (
    Record,
    ceil_to_millisecond,
    format_timestamp,
    midpoint,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 10
TIMESTAMP_STEP = timedelta(seconds=1)


@dataclass
class RepairResult:
    """Outcome of a repair run over one transcript."""

    text: str
    timestamps_fixed: int = 0
    parents_fixed: int = 0

    @property
    def changed(self) -> bool:
        return self.timestamps_fixed > 0 or self.parents_fixed > 0


def repair_timestamps(
    records: Sequence[Record], max_passes: int = DEFAULT_MAX_PASSES
) -> Dict[int, Dict[str, Any]]:
    """Make timestamps non-decreasing across the record sequence.

    An inverted record gets the midpoint between its predecessor and its
    successor when the successor is strictly later than the predecessor, and
    the predecessor plus one second otherwise. A correction can create a new
    inversion with the next record, so the scan repeats until a pass makes no
    change, up to ``max_passes`` passes. Residual inversions are left alone.
    """
    entries = [record.data for record in records]
    stamps = [parse_timestamp(entry.get("timestamp")) for entry in entries]
    updates: Dict[int, Dict[str, Any]] = {}

    for _ in range(max_passes):
        corrected = False
        for i in range(1, len(entries)):
            prev_ts, curr_ts = stamps[i - 1], stamps[i]
            if prev_ts is None or curr_ts is None or curr_ts >= prev_ts:
                continue

            next_ts = stamps[i + 1] if i + 1 < len(entries) else None
            if next_ts is not None and next_ts > prev_ts:
                new_ts = midpoint(prev_ts, next_ts)
            else:
                new_ts = prev_ts + TIMESTAMP_STEP

            index = records[i].index
            entry = updates.get(index)
            if entry is None:
                entry = copy.deepcopy(entries[i])
                updates[index] = entry
                entries[i] = entry
            # Written at millisecond precision, never below the predecessor.
            entry["timestamp"] = format_timestamp(ceil_to_millisecond(new_ts))
            stamps[i] = parse_timestamp(entry["timestamp"])
            corrected = True
        if not corrected:
            break
    else:
        logger.debug("Timestamp repair stopped after %d passes", max_passes)

    return updates


def repair_parent_links(records: Sequence[Record]) -> Dict[int, Dict[str, Any]]:
    """Point every present ``parentUuid`` at the previous record's ``uuid``.

    The chain is assumed to be linear: a record deliberately parented to an
    older ancestor is indistinguishable from a broken link and is rewritten.
    """
    updates: Dict[int, Dict[str, Any]] = {}
    for prev, curr in zip(records, records[1:]):
        prev_uuid = prev.uuid
        parent = curr.parent_uuid
        if parent and prev_uuid and parent != prev_uuid:
            entry = copy.deepcopy(curr.data)
            entry["parentUuid"] = prev_uuid
            updates[curr.index] = entry
    return updates


def _with_updates(records: List[Record], updates: Dict[int, Dict[str, Any]]) -> List[Record]:
    return [
        Record(index=r.index, data=updates.get(r.index, r.data), line_number=r.line_number)
        for r in records
    ]


def repair_log(text: str, max_passes: int = DEFAULT_MAX_PASSES) -> RepairResult:
    """Run temporal repair, then parent-link repair, over transcript text.

    Decoding is best-effort: lines that do not parse are left exactly where
    they are and take no part in either pass.
    """
    records = decode_best_effort(text)

    time_updates = repair_timestamps(records, max_passes=max_passes)
    records = _with_updates(records, time_updates)
    parent_updates = repair_parent_links(records)

    merged = dict(time_updates)
    merged.update(parent_updates)
    return RepairResult(
        text=apply_updates(text, merged),
        timestamps_fixed=len(time_updates),
        parents_fixed=len(parent_updates),
    )


def fix_transcript(path: Path, max_passes: Optional[int] = None) -> RepairResult:
    """Repair a transcript file in place; the file is only written when something changed."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    result = repair_log(text, max_passes=max_passes or DEFAULT_MAX_PASSES)
    if result.changed:
        path.write_text(result.text, encoding="utf-8")
        logger.info(
            "Repaired %s: %d timestamp(s), %d parent link(s)",
            path,
            result.timestamps_fixed,
            result.parents_fixed,
        )
    return result
