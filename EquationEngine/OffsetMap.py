# OffsetMap.py
"""""
Keeps error positions anchored to the text the user typed.

Every rewrite of an equation (stripping spaces, replacing function names,
inserting '*', ...) is applied as one batch of edits and recorded as a
layer. A position found in the rewritten text is walked back through the
layers, newest first, to the original offset.
"""""

from __future__ import annotations

from bisect import bisect_right
from typing import NamedTuple


class Edit(NamedTuple):
    """Replace `length` characters at `offset` (in the pre-edit text) with `replacement`."""
    offset: int
    length: int
    replacement: str


class _Entry(NamedTuple):
    post_start: int       # where the replacement starts in the edited text
    post_end: int         # where it ends
    pre_offset: int       # where the replaced span started before the edit
    cumulative_delta: int # total length change up to and including this edit


class OffsetMap:
    def __init__(self, layers=()):
        self._layers = tuple(layers)

    @property
    def layer_count(self):
        return len(self._layers)

    def apply(self, text, edits):
        """Apply a batch of edits computed against `text`. Returns (new_text, new_map)."""
        edits = sorted(edits, key=lambda e: (e.offset, e.length))
        if not edits:
            return text, self

        parts = []
        entries = []
        previous_end = 0
        delta = 0
        for edit in edits:
            if edit.offset < previous_end or edit.offset + edit.length > len(text):
                raise ValueError(f"Overlapping or out of range edit: {edit}")
            parts.append(text[previous_end:edit.offset])
            parts.append(edit.replacement)
            post_start = edit.offset + delta
            delta += len(edit.replacement) - edit.length
            entries.append(_Entry(post_start, post_start + len(edit.replacement), edit.offset, delta))
            previous_end = edit.offset + edit.length
        parts.append(text[previous_end:])

        return "".join(parts), OffsetMap(self._layers + (tuple(entries),))

    def to_original(self, position):
        for entries in reversed(self._layers):
            position = _map_back(entries, position)
        return position


def _map_back(entries, position):
    starts = [entry.post_start for entry in entries]
    index = bisect_right(starts, position) - 1
    if index < 0:
        return position
    entry = entries[index]
    if position < entry.post_end:
        # inside inserted/replacement text: point at what it replaced
        return entry.pre_offset
    return position - entry.cumulative_delta
