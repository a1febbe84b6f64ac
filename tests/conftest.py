# shared fixtures for ibdpal tests
# provides mock db, symptom fixtures, entry / intake factories, and httpx test client

import pytest
import pytest_asyncio
from datetime import date, datetime, time, timedelta
from bson import ObjectId

from httpx import AsyncClient, ASGITransport

from ibdpal.main import app
from ibdpal.models.journal import JournalEntry
from ibdpal.models.medication import MedicationIntakeRecord
from ibdpal.services.db import get_db


# test ids
USER_OID = ObjectId("665f1c2ae4b0a1b2c3d4e5f6")
USER_ID = str(USER_OID)
OTHER_USER_ID = "665f1c2ae4b0a1b2c3d4e5f7"

AS_OF = date(2025, 6, 30)


# symptom vectors: blood, mucus, pain, urgency, bowel frequency, stress, fatigue, sleep quality

SYMPTOMS = {
    "remission": (False, False, 1, 2, 2, 2, 2, 8),           # 1.55
    "mild": (False, False, 3, 4, 3, 3, 4, 6),                # 3.85
    "moderate": (False, True, 5, 6, 4, 4, 5, 4),             # 8.05
    "severe": (True, True, 8, 8, 6, 5, 7, 2),                # 16.2
    "blood_mild": (True, False, 2, 2, 2, 2, 2, 8),           # 6.9
    "no_blood_pain_urgency": (False, False, 6, 6, 2, 2, 2, 8),  # 4.5
}


def symptom_fields(profile: str) -> dict:
    blood, mucus, pain, urgency, bowel, stress, fatigue, sleep = SYMPTOMS[profile]
    return {
        "blood_present": blood,
        "mucus_present": mucus,
        "pain_severity": pain,
        "urgency_level": urgency,
        "bowel_frequency": bowel,
        "stress_level": stress,
        "fatigue_level": fatigue,
        "sleep_quality": sleep,
    }


def make_entry(entry_date: date, profile: str = "remission", **overrides) -> JournalEntry:
    fields = symptom_fields(profile)
    fields.update(overrides)
    return JournalEntry(entry_date=entry_date, **fields)


def make_entries(profile: str, days: int, end: date = AS_OF) -> list[JournalEntry]:
    """one entry per day for `days` days ending on `end`"""
    return [make_entry(end - timedelta(days=i), profile) for i in range(days)]


def entry_doc(entry_date: date, profile: str = "remission", user_id: str = USER_ID, **overrides) -> dict:
    """journal entry as stored in mongodb (entry_date as iso string)"""
    doc = {
        "_id": ObjectId(),
        "user_id": user_id,
        "entry_date": entry_date.isoformat(),
        **symptom_fields(profile),
    }
    doc.update(overrides)
    return doc


def make_intake(record_id: str, taken_at: datetime, name: str = "Mesalamine") -> MedicationIntakeRecord:
    return MedicationIntakeRecord(id=record_id, medication_name=name, taken_at=taken_at)


def daily_intakes(start: date, days: int, name: str = "Mesalamine", at: time = time(8, 0)) -> list[MedicationIntakeRecord]:
    return [
        make_intake(f"{name}-{i}", datetime.combine(start + timedelta(days=i), at), name)
        for i in range(days)
    ]


def intake_doc(taken_at: datetime, name: str = "Mesalamine", user_id: str = USER_ID, **overrides) -> dict:
    doc = {
        "_id": ObjectId(),
        "user_id": user_id,
        "medication_name": name,
        "taken_at": taken_at,
        "dosage": "400",
    }
    doc.update(overrides)
    return doc


DIAGNOSIS_DOC = {
    "_id": ObjectId(),
    "user_id": USER_ID,
    "disease_type": "crohns",
    "disease_severity": "moderate",
    "disease_location": "ileum",
}

USER_DOC = {
    "_id": USER_OID,
    "email": "sam.patel@email.com",
    "age": 14,
    "gender": "female",
    "weight_kg": 48.5,
    "height_cm": 158.0,
}


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor - supports async for and chained methods"""

    def __init__(self, data=None, error=None):
        self._data = data or []
        self._index = 0
        self._error = error

    def sort(self, key, direction=1):
        self._data = sorted(self._data, key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._error is not None:
            raise self._error
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []

    def find(self, query=None, projection=None):
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock(list(results))

    async def find_one(self, query=None, projection=None):
        if not query:
            return self._data[0] if self._data else None
        for doc in self._data:
            if self._matches(doc, query):
                return doc
        return None

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            doc_val = doc.get(key)
            if isinstance(value, dict):
                if "$gte" in value and (doc_val is None or doc_val < value["$gte"]):
                    return False
                if "$lte" in value and (doc_val is None or doc_val > value["$lte"]):
                    return False
                if "$lt" in value and (doc_val is None or doc_val >= value["$lt"]):
                    return False
            elif doc_val != value:
                return False
        return True


class FailingCollection:
    """collection whose reads raise the given pymongo error"""

    def __init__(self, error):
        self._error = error

    def find(self, query=None, projection=None):
        return AsyncCursorMock(error=self._error)

    async def find_one(self, query=None, projection=None):
        raise self._error


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self):
        self.users = MockCollection([USER_DOC.copy()])
        self.diagnoses = MockCollection([DIAGNOSIS_DOC.copy()])
        self.journal_entries = MockCollection([])
        self.medication_intakes = MockCollection([])
        self.medications = MockCollection([])

    async def connect(self):
        pass

    async def close(self):
        pass


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest_asyncio.fixture
async def client(mock_db):
    """httpx async test client with mocked dependencies"""

    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
