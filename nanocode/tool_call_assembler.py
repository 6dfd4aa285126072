# nanocode/tool_call_assembler.py
import logging
from typing import Dict, List, Optional

from nanocode.data_models import ToolCallFragment, ToolInvocation

logger = logging.getLogger(__name__)


class _PartialInvocation:
    __slots__ = ("id", "name", "argument_chunks")

    def __init__(self, call_id: Optional[str], name: Optional[str]):
        self.id = call_id or ""
        self.name = name or ""
        self.argument_chunks: List[str] = []


class ToolCallAssembler:
    """
    Folds the tool-call fragments of one streamed response into invocations.

    Fragments are keyed by their index. A fragment carrying an id or a name
    opens a new invocation at its index, sealing the one already open there;
    any other fragment appends its argument text to the open invocation.
    finish() seals whatever is still open, in the order the indices first
    appeared.
    """

    def __init__(self):
        self._open: Dict[int, _PartialInvocation] = {}  # insertion order == first-seen order
        self._completed: List[ToolInvocation] = []
        self._synthesized_ids = 0

    def add(self, fragment: ToolCallFragment) -> None:
        current = self._open.get(fragment.index)

        if fragment.starts_invocation:
            same_call = (
                current is not None
                and fragment.id_if_new is not None
                and fragment.id_if_new == current.id
            )
            if not same_call:
                if current is not None:
                    self._seal(current)
                current = _PartialInvocation(fragment.id_if_new, fragment.name_if_new)
                # re-assigning an existing key keeps the index's first-seen position
                self._open[fragment.index] = current
        elif current is None:
            logger.debug("Continuation fragment for unopened index %d; opening anonymous call", fragment.index)
            current = _PartialInvocation(None, None)
            self._open[fragment.index] = current

        current.argument_chunks.append(fragment.arguments_chunk)

    def finish(self) -> List[ToolInvocation]:
        """Seals open invocations and returns every invocation of the response."""
        for partial in self._open.values():
            self._seal(partial)
        self._open.clear()
        return list(self._completed)

    def _seal(self, partial: _PartialInvocation) -> None:
        call_id = partial.id
        if not call_id:
            call_id = f"call_{self._synthesized_ids}"
            self._synthesized_ids += 1
        self._completed.append(ToolInvocation(
            id=call_id,
            name=partial.name,
            arguments_json="".join(partial.argument_chunks),
        ))
