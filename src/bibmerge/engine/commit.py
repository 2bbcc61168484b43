"""Atomic commit of a resolved merge batch into the target collection."""

from bibmerge.engine.models import MergeBatch
from bibmerge.errors import MergeInvariantError
from bibmerge.models import Record, RecordCollection

__all__ = ["commit"]


def commit(target: RecordCollection, batch: MergeBatch) -> RecordCollection:
    """Insert every record of ``batch.to_insert`` into *target*.

    The target's lock is held for the whole operation, so no other writer
    observes a partial insert. Records are appended in batch order, which is
    source-file order then position within the file.

    Parameters
    ----------
    target : RecordCollection
        Collection to extend.
    batch : MergeBatch
        Output of ``resolve``.

    Returns
    -------
    RecordCollection
        The same target collection.

    Raises
    ------
    MergeInvariantError
        If a record to insert shares its citation key with the target or
        with another record of the batch. The target is left unchanged.
    """
    with target.lock:
        _check_unique_keys(target, batch.to_insert)
        target.insert_records(batch.to_insert)
    return target


def _check_unique_keys(target: RecordCollection, records: tuple[Record, ...]) -> None:
    owners: dict[str, str] = {key: "target collection" for key in target.citation_keys()}
    for record in records:
        key = record.citation_key
        if not key:
            continue
        owner = owners.get(key)
        if owner is not None:
            raise MergeInvariantError(
                f"Citation key '{key}' from {_describe(record)} collides with {owner}",
                citation_key=key,
            )
        owners[key] = _describe(record)


def _describe(record: Record) -> str:
    if record.origin is None:
        return "a batch record"
    return f"{record.origin.source} (entry {record.origin.index})"
