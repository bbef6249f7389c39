"""Map between the in-memory draft and its durable story record."""

from __future__ import annotations

from story_spine.domain.draft import StoryDraft
from story_spine.domain.records import PassageRecord, StoryRecord, utc_now_iso


def apply_draft_to_record(
    draft: StoryDraft,
    record: StoryRecord,
    *,
    now_utc: str | None = None,
) -> StoryRecord:
    """Copy draft state onto ``record`` in place.

    Existing passages keep their identity and only get their text rewritten,
    missing ones are created, and passages for ranks the draft no longer has
    are pruned. Re-applying an unchanged draft only touches ``updated_at_utc``.
    """
    record.title = draft.title
    record.complete = draft.complete
    record.current_step_rank = draft.current_step.rank
    record.updated_at_utc = now_utc or utc_now_iso()

    passages = draft.passages
    for rank, text in sorted(passages.items()):
        existing = record.passage_for(rank)
        if existing is not None:
            existing.text = text
        else:
            record.passages.append(PassageRecord(step_rank=rank, text=text))

    record.passages = [passage for passage in record.passages if passage.step_rank in passages]
    return record


def new_record(draft: StoryDraft, *, now_utc: str | None = None) -> StoryRecord:
    """Build a fresh record for a draft that has never been persisted."""
    timestamp = now_utc or utc_now_iso()
    record = StoryRecord(created_at_utc=timestamp, updated_at_utc=timestamp)
    return apply_draft_to_record(draft, record, now_utc=timestamp)


def record_to_draft(record: StoryRecord) -> StoryDraft:
    """Rebuild a draft from ``record`` alone."""
    return StoryDraft.rebuild(
        title=record.title,
        complete=record.complete,
        current_rank=record.current_step_rank,
        passages=record.passages_by_rank(),
    )
