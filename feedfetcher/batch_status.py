"""A small, transportable summary of a batch's progress."""

from __future__ import annotations

from dataclasses import dataclass

from .batch import Batch


@dataclass(frozen=True)
class BatchStatus:
    """How far a batch has come, together with the batch's id."""

    total: int
    done: int
    id: int

    @classmethod
    def from_batch(cls, batch_id: int, batch: Batch) -> "BatchStatus":
        return cls(total=batch.total, done=len(batch.finished), id=batch_id)

    def is_finished(self) -> bool:
        return self.total == self.done

    def describe(self) -> str:
        return f"Finished: {self.done} / {self.total}"