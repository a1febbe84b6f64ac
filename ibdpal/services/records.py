# record fetch layer - reads journal, diagnosis, profile, and medication docs
# maps mongodb documents onto the scoring models; malformed docs are skipped
# pymongo failures surface as StorageError (retryable for connection/timeouts)

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError

from ibdpal.models.journal import JournalEntry, UserDiagnosis
from ibdpal.models.medication import MedicationFrequency, MedicationIntakeRecord, Prescription
from ibdpal.models.targets import TargetProfile
from ibdpal.services.db import Database

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """a record fetch failed. retryable is True for connection loss and
    server-side timeouts, False for everything else."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


def _storage_error(operation: str, exc: PyMongoError) -> StorageError:
    retryable = isinstance(exc, (ConnectionFailure, ExecutionTimeout))
    logger.error(f"MongoDB {operation} failed (retryable={retryable}): {exc}")
    return StorageError(f"{operation} failed: {exc}", retryable=retryable)


# document mapping

def _entry_from_doc(doc: dict[str, Any]) -> JournalEntry:
    data = {k: v for k, v in doc.items() if k != "_id"}
    if not data.get("entry_id") and doc.get("_id") is not None:
        data["entry_id"] = str(doc["_id"])
    return JournalEntry.model_validate(data)


def _intake_from_doc(doc: dict[str, Any]) -> MedicationIntakeRecord:
    record_id = doc.get("intake_id") or doc.get("_id")
    return MedicationIntakeRecord(
        id=str(record_id) if record_id is not None else "",
        medication_name=doc["medication_name"],
        taken_at=doc["taken_at"],
        dosage=doc.get("dosage"),
        notes=doc.get("notes"),
        user_id=doc.get("user_id"),
    )


def _prescription_from_doc(doc: dict[str, Any]) -> Prescription:
    frequency = MedicationFrequency.from_label(doc.get("frequency"))
    if frequency is None and doc.get("interval_days"):
        frequency = MedicationFrequency.custom(int(doc["interval_days"]))
    return Prescription(medication_name=doc["medication_name"], frequency=frequency)


def _profile_from_doc(doc: dict[str, Any]) -> TargetProfile:
    return TargetProfile(
        age=doc.get("age"),
        gender=doc.get("gender"),
        weight_kg=doc.get("weight_kg"),
        height_cm=doc.get("height_cm"),
    )


# fetches

async def fetch_journal_entries(db: Database, user_id: str, start: date, end: date) -> list[JournalEntry]:
    """journal entries dated within [start, end] (entry_date stored as ISO string)"""
    query = {
        "user_id": user_id,
        "entry_date": {"$gte": start.isoformat(), "$lte": end.isoformat()},
    }
    entries = []
    try:
        cursor = db.journal_entries.find(query).sort("entry_date", -1)
        async for doc in cursor:
            try:
                entries.append(_entry_from_doc(doc))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed journal entry {doc.get('_id')}: {e}")
    except PyMongoError as e:
        raise _storage_error("journal entry fetch", e) from e

    logger.info(f"Fetched {len(entries)} journal entries for user {user_id} ({start}..{end})")
    return entries


async def fetch_diagnosis(db: Database, user_id: str) -> Optional[UserDiagnosis]:
    try:
        doc = await db.diagnoses.find_one({"user_id": user_id})
    except PyMongoError as e:
        raise _storage_error("diagnosis fetch", e) from e

    if doc is None:
        return None
    try:
        return UserDiagnosis.model_validate(doc)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed diagnosis for user {user_id}: {e}")
        return None


async def fetch_profile(db: Database, user_id: str) -> Optional[TargetProfile]:
    """demographics from the users collection, looked up by objectid when the id is one"""
    key: Any = ObjectId(user_id) if ObjectId.is_valid(user_id) else user_id
    try:
        doc = await db.users.find_one({"_id": key})
    except PyMongoError as e:
        raise _storage_error("profile fetch", e) from e

    if doc is None:
        return None
    try:
        return _profile_from_doc(doc)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed profile for user {user_id}: {e}")
        return None


async def fetch_intake_records(
    db: Database,
    user_id: str,
    start: date,
    end: date,
) -> list[MedicationIntakeRecord]:
    """explicit dose logs taken on a calendar date within [start, end]"""
    query: dict[str, Any] = {
        "user_id": user_id,
        "taken_at": {
            "$gte": datetime.combine(start, time.min),
            "$lt": datetime.combine(end + timedelta(days=1), time.min),
        },
    }
    records = []
    try:
        cursor = db.medication_intakes.find(query).sort("taken_at", 1)
        async for doc in cursor:
            try:
                records.append(_intake_from_doc(doc))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed intake record {doc.get('_id')}: {e}")
    except PyMongoError as e:
        raise _storage_error("intake record fetch", e) from e

    logger.info(f"Fetched {len(records)} intake records for user {user_id} ({start}..{end})")
    return records


async def fetch_prescriptions(db: Database, user_id: str) -> list[Prescription]:
    prescriptions = []
    try:
        async for doc in db.medications.find({"user_id": user_id}):
            try:
                prescriptions.append(_prescription_from_doc(doc))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed medication {doc.get('_id')}: {e}")
    except PyMongoError as e:
        raise _storage_error("prescription fetch", e) from e

    logger.info(f"Fetched {len(prescriptions)} prescriptions for user {user_id}")
    return prescriptions
