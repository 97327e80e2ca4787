"""Variant-aware content mutation for single transcript records.

``redact``, ``restore`` and ``replace`` take one record's JSON object and
return either a new object or ``None`` when the operation has no effect.
Inputs are never modified.

Shape rules shared by redact and replace:

==========  =======================  ======================================
kind        content                  field overwritten
==========  =======================  ======================================
user        blocks with tool_result  first tool_result block's ``content``
user        other blocks / scalar    ``message.content`` as a whole
assistant   blocks with text         first text block's ``text``
assistant   blocks with thinking     first thinking block's ``thinking``
assistant   tool_use only            redact: ``input``; replace: refused
assistant   no known blocks          content becomes one text block
assistant   scalar                   ``message.content`` as a whole
summary     -                        ``summary``
other       -                        nothing (no-op)
==========  =======================  ======================================

Whatever is overwritten is first backed up under the mutation-state key so
``restore`` can put the record back exactly.
"""

import copy
from typing import Any, Dict, List, Optional

from claude_context.types import (
    MUTATION_KEY,
    REDACTED_MARKER,
    BlockType,
    MutationState,
    RecordKind,
    message_of,
)

Entry = Dict[str, Any]


def _first_block(blocks: List[Any], block_type: BlockType) -> int:
    for i, block in enumerate(blocks):
        if isinstance(block, dict) and block.get("type") == block_type.value:
            return i
    return -1


def _has_payload(entry: Entry, kind: RecordKind) -> bool:
    """Whether the record has a content-bearing field a mutation could overwrite."""
    if kind is RecordKind.SUMMARY:
        return "summary" in entry
    message = message_of(entry)
    return message is not None and "content" in message


def _backup_fields(entry: Entry, kind: RecordKind) -> Dict[str, Any]:
    """Copy the fields a mutation of this kind may overwrite."""
    original: Dict[str, Any] = {}
    if kind is RecordKind.USER:
        message = message_of(entry)
        if message is not None and "content" in message:
            original["message"] = {"content": copy.deepcopy(message["content"])}
        if entry.get("toolUseResult"):
            original["toolUseResult"] = copy.deepcopy(entry["toolUseResult"])
    elif kind is RecordKind.ASSISTANT:
        message = message_of(entry)
        if message is not None and "content" in message:
            original["message"] = {"content": copy.deepcopy(message["content"])}
    elif kind is RecordKind.SUMMARY:
        original["summary"] = copy.deepcopy(entry.get("summary"))
    return original


def _rewrite_user(entry: Entry, new_text: str) -> Entry:
    result = dict(entry)
    message = dict(message_of(entry) or {})
    content = message.get("content")
    if isinstance(content, list):
        blocks = list(content)
        idx = _first_block(blocks, BlockType.TOOL_RESULT)
        if idx != -1:
            blocks[idx] = {**blocks[idx], "content": new_text}
            message["content"] = blocks
        else:
            message["content"] = new_text
    else:
        message["content"] = new_text
    result["message"] = message
    return result


def _rewrite_assistant(entry: Entry, new_text: str, redacting: bool) -> Optional[Entry]:
    result = dict(entry)
    message = dict(message_of(entry) or {})
    content = message.get("content")
    if not isinstance(content, list):
        message["content"] = new_text
        result["message"] = message
        return result

    blocks = list(content)
    text_idx = _first_block(blocks, BlockType.TEXT)
    thinking_idx = _first_block(blocks, BlockType.THINKING)
    tool_idx = _first_block(blocks, BlockType.TOOL_USE)

    if text_idx != -1:
        blocks[text_idx] = {**blocks[text_idx], "text": new_text}
    elif thinking_idx != -1:
        blocks[thinking_idx] = {**blocks[thinking_idx], "thinking": new_text}
    elif tool_idx != -1:
        # Rewriting a bare tool_use would desync it from its tool_result.
        if not redacting:
            return None
        if blocks[tool_idx].get("input"):
            blocks[tool_idx] = {**blocks[tool_idx], "input": {"content": REDACTED_MARKER}}
    else:
        blocks = [{"type": BlockType.TEXT.value, "text": new_text}]

    message["content"] = blocks
    result["message"] = message
    return result


def _rewrite(entry: Entry, kind: RecordKind, new_text: str, redacting: bool) -> Optional[Entry]:
    if kind is RecordKind.USER:
        return _rewrite_user(entry, new_text)
    if kind is RecordKind.ASSISTANT:
        return _rewrite_assistant(entry, new_text, redacting)
    if kind is RecordKind.SUMMARY:
        result = dict(entry)
        result["summary"] = new_text
        return result
    if kind is RecordKind.OTHER:
        return None
    raise AssertionError(f"unhandled record kind: {kind}")


def _stamp(entry: Entry, source: Entry, kind: RecordKind, deleted: bool) -> Entry:
    """Attach the mutation state, keeping any existing backup and flags."""
    raw = source.get(MUTATION_KEY)
    state = dict(raw) if isinstance(raw, dict) else {}
    if not isinstance(state.get("original"), dict):
        state["original"] = _backup_fields(source, kind)
    if deleted:
        state["deleted"] = True
    else:
        state.pop("deleted", None)
    entry[MUTATION_KEY] = state
    return entry


def redact(entry: Entry, skip_imported: bool = False) -> Optional[Entry]:
    """Replace a record's content with :data:`REDACTED_MARKER` and mark it deleted.

    Returns ``None`` (no change) for records that are already deleted, imported
    records when ``skip_imported`` is set, ``OTHER`` records, and records with
    nothing to redact.
    """
    state = MutationState.of(entry)
    if state.deleted:
        return None
    if skip_imported and state.imported:
        return None

    kind = RecordKind.of(entry)
    if kind is RecordKind.OTHER or not _has_payload(entry, kind):
        return None

    rewritten = _rewrite(entry, kind, REDACTED_MARKER, redacting=True)
    if rewritten is None:
        return None
    return _stamp(rewritten, entry, kind, deleted=True)


def replace(entry: Entry, new_text: str) -> Optional[Entry]:
    """Rewrite a record's content to ``new_text``, keeping a backup for restore.

    A record whose only block is a ``tool_use`` is refused (``None``): use
    :func:`redact` to neutralise those. ``toolUseResult`` is never touched.
    """
    kind = RecordKind.of(entry)
    if kind is RecordKind.OTHER or not _has_payload(entry, kind):
        return None

    rewritten = _rewrite(entry, kind, new_text, redacting=False)
    if rewritten is None:
        return None
    return _stamp(rewritten, entry, kind, deleted=False)


def restore(entry: Entry) -> Optional[Entry]:
    """Put backed-up fields back and drop the mutation-state key.

    Returns ``None`` when the record has no backup or is an ``OTHER`` record.
    """
    backup = MutationState.of(entry).original
    if backup is None:
        return None

    kind = RecordKind.of(entry)
    result = dict(entry)
    if kind is RecordKind.USER or kind is RecordKind.ASSISTANT:
        if isinstance(backup.get("message"), dict):
            result["message"] = {**(message_of(entry) or {}), **copy.deepcopy(backup["message"])}
        if kind is RecordKind.USER and "toolUseResult" in backup:
            result["toolUseResult"] = copy.deepcopy(backup["toolUseResult"])
    elif kind is RecordKind.SUMMARY:
        if "summary" in backup:
            result["summary"] = copy.deepcopy(backup["summary"])
    elif kind is RecordKind.OTHER:
        return None
    else:
        raise AssertionError(f"unhandled record kind: {kind}")

    result.pop(MUTATION_KEY, None)
    return result
