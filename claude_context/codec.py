"""JSONL record codec.

Decodes transcript text into addressable :class:`Record` objects and writes
changes back by rewriting only the lines that changed.

Addresses: blank and whitespace-only lines are skipped and get no index;
every other line gets the next index, in both decoders. A line the
best-effort decoder cannot parse still consumes its index, so an index means
the same line whichever decoder produced it.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from claude_context.errors import MalformedRecordError
from claude_context.types import Record

logger = logging.getLogger(__name__)


def dumps_record(entry: Dict[str, Any]) -> str:
    """Encode one record as a single compact JSON line (no newline)."""
    return json.dumps(entry, ensure_ascii=False, separators=(",", ":"))


def _split_lines(text: str) -> Tuple[List[str], bool]:
    """Split text into lines and report whether it ended with a line break."""
    if not text:
        return [], False
    lines = text.split("\n")
    trailing = text.endswith("\n")
    if trailing:
        lines.pop()
    return lines, trailing


def _iter_addressed(lines: Sequence[str]) -> Iterator[Tuple[int, int, str]]:
    """Yield ``(index, physical_line, stripped_text)`` for every non-blank line."""
    index = 0
    for line_number, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        yield index, line_number, stripped
        index += 1


def _parse_line(text: str) -> Dict[str, Any]:
    entry = json.loads(text)
    if not isinstance(entry, dict):
        raise ValueError(f"expected a JSON object, got {type(entry).__name__}")
    return entry


def decode_strict(text: str) -> List[Record]:
    """Decode every non-blank line; any malformed line fails the whole decode.

    Raises:
        MalformedRecordError: on the first line that is not a JSON object.
    """
    lines, _ = _split_lines(text)
    records: List[Record] = []
    for index, line_number, stripped in _iter_addressed(lines):
        try:
            entry = _parse_line(stripped)
        except ValueError as e:
            raise MalformedRecordError(index, line_number + 1, stripped, e) from e
        records.append(Record(index=index, data=entry, line_number=line_number))
    return records


def decode_best_effort(text: str) -> List[Record]:
    """Decode every non-blank line, silently skipping lines that do not parse."""
    lines, _ = _split_lines(text)
    records: List[Record] = []
    for index, line_number, stripped in _iter_addressed(lines):
        try:
            entry = _parse_line(stripped)
        except ValueError as e:
            logger.debug("Skipping unparseable line %d: %s", line_number + 1, e)
            continue
        records.append(Record(index=index, data=entry, line_number=line_number))
    return records


def encode(records: Sequence[Any]) -> str:
    """Encode records (``Record`` objects or raw dicts) one per line, in order.

    The result carries no trailing newline; callers writing a file add it.
    """
    out = []
    for record in records:
        entry = record.data if isinstance(record, Record) else record
        out.append(dumps_record(entry))
    return "\n".join(out)


def _carriage_return(lines: Sequence[str]) -> str:
    """``"\\r"`` when the text breaks lines with CRLF, else ``""``."""
    for line in lines:
        if line.endswith("\r"):
            return "\r"
    return ""


def _rewrite(
    text: str,
    updates: Mapping[int, Dict[str, Any]],
    inserts: Optional[Mapping[int, Sequence[Dict[str, Any]]]] = None,
    force_trailing_newline: bool = False,
) -> str:
    lines, trailing = _split_lines(text)
    cr = _carriage_return(lines)
    inserts = inserts or {}
    out: List[str] = []
    next_index = 0
    addressed = {line_number: index for index, line_number, _ in _iter_addressed(lines)}

    for line_number, line in enumerate(lines):
        index = addressed.get(line_number)
        if index is None:
            out.append(line)
            continue
        for entry in inserts.get(index, ()):
            out.append(dumps_record(entry) + cr)
        if index in updates:
            # A rewritten line keeps its own line ending.
            ending = "\r" if line.endswith("\r") else ""
            out.append(dumps_record(updates[index]) + ending)
        else:
            out.append(line)
        next_index = index + 1

    # Anything addressed at or past the end is appended.
    appended = [
        dumps_record(entry) + cr
        for index in sorted(i for i in inserts if i >= next_index)
        for entry in inserts[index]
    ]
    if appended and out and not trailing and not out[-1].endswith(cr):
        out[-1] += cr
    out.extend(appended)

    ends_with_break = (trailing or force_trailing_newline) and bool(out)
    if ends_with_break and not trailing and not out[-1].endswith(cr):
        out[-1] += cr

    result = "\n".join(out)
    if ends_with_break:
        result += "\n"
    return result


def apply_updates(text: str, updates: Mapping[int, Dict[str, Any]]) -> str:
    """Rewrite the records at the given indices and nothing else.

    Untouched lines stay byte-identical, blank lines included, and the
    presence or absence of the final line break is preserved. Rewritten
    lines keep their CRLF line break. Indices with no record are ignored.
    """
    if not updates:
        return text
    return _rewrite(text, updates)


def splice_records(
    text: str,
    updates: Mapping[int, Dict[str, Any]],
    inserts: Mapping[int, Sequence[Dict[str, Any]]],
) -> str:
    """Like :func:`apply_updates`, also inserting new records.

    ``inserts[i]`` lands immediately before the record currently at index
    ``i``; an index at or past the end appends. The result always ends with a
    line break so the log's writer can keep appending to it.
    """
    return _rewrite(text, updates, inserts, force_trailing_newline=True)
