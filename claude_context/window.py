"""Bounded read views over a transcript.

``project`` turns records into display lines (dropping tool traffic and,
by default, deleted records); a :class:`Window` then picks which lines to
return. Windows select by a line's *original* index, so addresses shown to
a client can be fed straight back into the editing operations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from claude_context.errors import InvalidArgumentError
from claude_context.types import Record, truncate_text

DEFAULT_TAIL_COUNT = 10
DEFAULT_RADIUS = 10


@dataclass(frozen=True)
class LogLine:
    """One projected record: its address and its display text."""

    index: int
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"lineNumber": self.index, "content": self.content}


def project(
    records: Iterable[Record],
    include_deleted: bool = False,
    max_field_size: Optional[int] = None,
) -> List[LogLine]:
    """Project records to display lines.

    Records holding a ``tool_use`` or ``tool_result`` block are always
    dropped; deleted records are dropped unless ``include_deleted``.
    """
    lines = []
    for record in records:
        if record.is_tool_record:
            continue
        if record.is_deleted and not include_deleted:
            continue
        lines.append(LogLine(record.index, truncate_text(record.text(), max_field_size)))
    return lines


class WindowType(str, Enum):
    ALL = "all"
    TAIL = "tail"
    SLICE = "slice"
    AROUND = "around"


WINDOW_TYPES = [w.value for w in WindowType]

T = TypeVar("T")


@dataclass(frozen=True)
class Window:
    """A selection over indexed entries.

    ``slice`` and ``around`` bounds are inclusive and compare against each
    entry's ``index`` attribute, not its position in the filtered list.
    """

    type: WindowType = WindowType.ALL
    count: int = DEFAULT_TAIL_COUNT
    start: int = 0
    end: Optional[int] = None
    target: int = 0
    radius: int = DEFAULT_RADIUS

    @classmethod
    def all(cls) -> "Window":
        return cls(WindowType.ALL)

    @classmethod
    def tail(cls, count: int) -> "Window":
        return cls(WindowType.TAIL, count=count)

    @classmethod
    def slice(cls, start: int, end: Optional[int]) -> "Window":
        return cls(WindowType.SLICE, start=start, end=end)

    @classmethod
    def around(cls, target: int, radius: int = DEFAULT_RADIUS) -> "Window":
        return cls(WindowType.AROUND, target=target, radius=radius)

    @classmethod
    def from_options(
        cls,
        type: str = "all",
        count: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        target_line: Optional[int] = None,
        radius: Optional[int] = None,
        strict: bool = False,
    ) -> "Window":
        """Build a window from loose tool/CLI parameters.

        In ``strict`` mode the parameters a window type needs are mandatory;
        otherwise missing ones take defaults (tail of 10, slice from 0 with no
        upper bound). ``around`` always needs ``target_line``.

        Raises:
            InvalidArgumentError: for an unknown type or a missing parameter.
        """
        try:
            window_type = WindowType(type)
        except ValueError:
            raise InvalidArgumentError(f"type must be one of {WINDOW_TYPES}, got '{type}'")

        if window_type is WindowType.ALL:
            return cls.all()
        if window_type is WindowType.TAIL:
            if count is None and strict:
                raise InvalidArgumentError("count is required for tail type")
            return cls.tail(count if count is not None else DEFAULT_TAIL_COUNT)
        if window_type is WindowType.SLICE:
            if strict and (start is None or end is None):
                raise InvalidArgumentError("start and end are required for slice type")
            return cls.slice(start or 0, end)
        if target_line is None:
            raise InvalidArgumentError("targetLine is required for around type")
        return cls.around(target_line, radius if radius is not None else DEFAULT_RADIUS)

    def apply(self, entries: Sequence[T]) -> List[T]:
        if self.type is WindowType.ALL:
            return list(entries)
        if self.type is WindowType.TAIL:
            if self.count <= 0:
                return []
            return list(entries[-self.count :])
        if self.type is WindowType.SLICE:
            return [
                e
                for e in entries
                if e.index >= self.start and (self.end is None or e.index <= self.end)
            ]
        if not entries:
            return []
        last = max(e.index for e in entries)
        low = max(0, self.target - self.radius)
        high = min(last, self.target + self.radius)
        return [e for e in entries if low <= e.index <= high]
