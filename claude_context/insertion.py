"""Summary insertion that keeps tool_use / tool_result pairs adjacent.

A consumer replaying the transcript expects each ``tool_use`` to be followed
immediately by its ``tool_result``. Appending a summary after a pending
invocation would land between the two, so the summary goes *before* the last
tool-invocation record instead and that record is re-parented onto it.
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from claude_context.codec import splice_records
from claude_context.types import Record, RecordKind, utc_now

Entry = Dict[str, Any]


def find_last_tool_invocation(records: Sequence[Record]) -> Optional[int]:
    """Position in ``records`` of the last record carrying a ``tool_use`` block."""
    for pos in range(len(records) - 1, -1, -1):
        if records[pos].has_tool_invocation:
            return pos
    return None


def build_summary_record(
    text: str,
    *,
    cwd: str = "",
    session_id: str = "",
    version: str = "1.0.0",
    git_branch: str = "",
    record_id: Optional[str] = None,
    now: Optional[str] = None,
) -> Entry:
    """Create a synthetic compact-summary ``user`` record.

    ``parentUuid`` starts out ``None``; the insertion plan decides it.
    """
    return {
        "parentUuid": None,
        "isSidechain": False,
        "userType": "external",
        "cwd": cwd,
        "sessionId": session_id,
        "version": version,
        "gitBranch": git_branch,
        "type": RecordKind.USER.value,
        "message": {"role": "user", "content": text},
        "isCompactSummary": True,
        "uuid": record_id or str(uuid.uuid4()),
        "timestamp": now or utc_now(),
    }


@dataclass
class InsertionPlan:
    """Where a summary record goes and which existing records change.

    ``before`` is the index the summary is inserted in front of, or ``None``
    to append. ``updates`` maps indices of existing records to their
    rewritten JSON objects.
    """

    record: Entry
    before: Optional[int] = None
    updates: Dict[int, Entry] = field(default_factory=dict)

    def apply(self, records: Sequence[Record]) -> List[Entry]:
        """The new record sequence as JSON objects."""
        result: List[Entry] = []
        for r in records:
            if self.before is not None and r.index == self.before:
                result.append(self.record)
            result.append(self.updates.get(r.index, r.data))
        if self.before is None:
            result.append(self.record)
        return result

    def render(self, text: str, end_index: int) -> str:
        """Apply the plan to the log text; ``end_index`` is the index one past the last record."""
        position = self.before if self.before is not None else end_index
        return splice_records(text, self.updates, {position: [self.record]})


def plan_summary_insertion(records: Sequence[Record], summary: Entry) -> InsertionPlan:
    """Plan the insertion of ``summary`` into ``records``.

    With a tool invocation at index ``k`` the summary goes in at ``k`` and the
    invocation record (now ``k + 1``) is re-parented onto the summary.
    Without one the summary is appended, parented to the last record.
    """
    summary = copy.deepcopy(summary)
    pos = find_last_tool_invocation(records)

    if pos is None:
        summary["parentUuid"] = records[-1].uuid if records else None
        return InsertionPlan(record=summary)

    invocation = records[pos]
    summary["parentUuid"] = None
    reparented = copy.deepcopy(invocation.data)
    reparented["parentUuid"] = summary["uuid"]
    return InsertionPlan(
        record=summary,
        before=invocation.index,
        updates={invocation.index: reparented},
    )


def insert_summary(records: Sequence[Record], summary_text: str, **metadata: Any) -> List[Entry]:
    """Build a summary record for ``summary_text`` and return the new sequence."""
    summary = build_summary_record(summary_text, **metadata)
    return plan_summary_insertion(records, summary).apply(records)
