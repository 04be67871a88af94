"""Queue service: admit, list, update and remove patients.

Each mutating operation is one load → compute → save cycle against the
persisted collection, run end-to-end while holding the store's resource
lock. Nothing is cached between calls; the file is re-read every time.
"""

import re
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from patient_queue.errors import InvalidArgumentError, NotFoundError, ValidationError
from patient_queue.models import PatientInput, PatientRecord
from patient_queue.store import PatientStore
from patient_queue.tracing import OperationTracer

_DIGITS = re.compile(r"^\s*\d+\s*$")

# Fields overwritten by an update; queueNumber is never touched
UPDATABLE_FIELDS = ("firstName", "lastName", "emailAddress", "phoneNumber", "sex")


def next_queue_number(records: list[dict]) -> int:
    """max(existing queue numbers) + 1, or 1 for an empty collection."""
    numbers = [
        r["queueNumber"] for r in records
        if isinstance(r.get("queueNumber"), int) and not isinstance(r.get("queueNumber"), bool)
    ]
    return max(numbers) + 1 if numbers else 1


def parse_queue_number(value: Any) -> int:
    """Coerce a queue number from an int or a string of digits."""
    if isinstance(value, bool):
        raise InvalidArgumentError("Invalid queue number.")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _DIGITS.match(value):
        try:
            number = int(value)
        except ValueError as exc:
            # over the interpreter's int string conversion limit
            raise InvalidArgumentError("Invalid queue number.") from exc
    else:
        raise InvalidArgumentError("Invalid queue number.")
    if number <= 0:
        raise InvalidArgumentError("Invalid queue number.")
    return number


def validate_patient(data: Any) -> PatientInput:
    """Check required fields and the sex enum before anything is mutated."""
    if not isinstance(data, dict):
        raise ValidationError("Patient data must be a JSON object.")
    try:
        return PatientInput.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in errors})
        raise ValidationError(
            f"Missing or invalid fields: {', '.join(fields)}.", errors=errors,
        ) from exc


def _find_index(records: list[dict], queue_number: int) -> Optional[int]:
    for index, record in enumerate(records):
        if record.get("queueNumber") == queue_number:
            return index
    return None


class QueueService:
    def __init__(self, store: PatientStore):
        self._store = store

    @property
    def store(self) -> PatientStore:
        return self._store

    def list_patients(self) -> list[dict]:
        """Return the whole queue in admission order.

        Reads run without the lock; saves are atomic replaces so a read
        never sees a partially written collection.
        """
        with OperationTracer("list") as tracer:
            records = self._store.load()
            tracer.extra["queue_size"] = len(records)
        return records

    def admit_patient(self, data: Any) -> int:
        """Append a patient to the queue and return the assigned queue number."""
        patient = validate_patient(data)

        with OperationTracer("admit") as tracer, self._store.lock:
            records = self._store.load()
            queue_number = next_queue_number(records)
            record = PatientRecord(
                **patient.model_dump(), queue_number=queue_number,
            ).model_dump(by_alias=True)
            records.append(record)
            self._store.save(records)
            tracer.extra["queue_number"] = queue_number
            tracer.extra["queue_size"] = len(records)

        return queue_number

    def update_patient(self, queue_number: Any, patch: Any) -> dict:
        """Overwrite every detail of a queued patient except the queue number.

        This is a full overwrite, not a merge: the patch must carry all of
        the patient fields.
        """
        number = parse_queue_number(queue_number)
        patient = validate_patient(patch)
        fields = patient.to_record_fields()

        with OperationTracer("update", queue_number=number), self._store.lock:
            records = self._store.load()
            index = _find_index(records, number)
            if index is None:
                raise NotFoundError(number)
            updated = {**records[index], **{k: fields[k] for k in UPDATABLE_FIELDS}}
            updated["queueNumber"] = number
            records[index] = updated
            self._store.save(records)

        return updated

    def remove_patient(self, queue_number: Any) -> dict:
        """Remove the first patient holding ``queue_number`` and return it."""
        number = parse_queue_number(queue_number)

        with OperationTracer("remove", queue_number=number) as tracer, self._store.lock:
            records = self._store.load()
            index = _find_index(records, number)
            if index is None:
                raise NotFoundError(number)
            removed = records.pop(index)
            self._store.save(records)
            tracer.extra["queue_size"] = len(records)

        return removed
