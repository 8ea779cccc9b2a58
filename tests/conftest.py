"""Shared fixtures: a small catalog on disk and an in-memory stand-in for the Mongo collections."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError

from services.access import AccessGate, InMemoryAllowListStore
from services.content_loader import ContentLoader
from services.database import DayManager, ProgressManager, UserManager
from services.lesson_manager import LessonService
from services.progress_tracker import ProgressTracker


ADMIN_ID = 1000


SAMPLE_DAYS = {
    "1": {
        "title": "Der Adventskranz",
        "sections": {
            "main": {"title": "Tag 1", "text": "Die erste Kerze."},
            "vocab": {"title": "Vokabeln", "text": "die Kerze"},
            "reading": {
                "title": "Leseverstehen",
                "intro": "Beantworte die Fragen.",
                "questions": [
                    {"q": "Wie viele Kerzen?", "options": ["Drei", "Vier", "Fünf"], "correct": 2},
                    {
                        "q": "Die Kugel liegt ... dem Tisch.",
                        "options": ["auf", "über"],
                        "correct": 0,
                        "explanation": "Use 'auf' for surfaces.",
                    },
                ],
            },
        },
        "steps": [
            {"type": "image", "path": "media/day1.jpg"},
            {"type": "text", "section": "main"},
            {
                "type": "menu",
                "buttons": [
                    {"label": "Vokabeln", "section": "vocab"},
                    {"label": "Leseverstehen", "section": "reading"},
                ],
            },
        ],
    },
    "2": {
        "title": "Plätzchen",
        "sections": {
            "main": {"title": "Tag 2", "text": "Wir backen."},
            "exercise": {
                "title": "Übung",
                "intro": "auf oder über?",
                "items": ["Der Stern hängt ... dem Baum."],
                "choices": ["auf", "über"],
                "solutions": ["über"],
            },
        },
    },
    "4": {
        "title": "Der Baum",
        "sections": {"main": {"title": "Tag 4", "text": "Der Baum."}},
    },
    "5": {
        "title": "Nikolaus",
        "publish_date": "2099-12-05T06:00:00+01:00",
        "sections": {
            "main": {"title": "Tag 5", "text": "Der Stiefel."},
            "vocab": {"title": "Vokabeln", "text": "der Stiefel"},
        },
    },
    "6": {
        "title": "Nikolaustag",
        "publish_date": "2020-12-06T06:00:00+01:00",
        "sections": {"main": {"title": "Tag 6", "text": "Nüsse."}},
    },
    "24": {
        "title": "Heiligabend",
        "sections": {"main": {"title": "Tag 24", "text": "Frohe Weihnachten!"}},
    },
}


class FakeCursor:
    def __init__(self, docs):
        self._docs = iter(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._docs)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Just enough of a motor collection for the managers, with an optional unique key."""

    def __init__(self, unique=()):
        self.docs = []
        self.unique = tuple(unique)

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    async def insert_one(self, doc):
        if self.unique:
            key = tuple(doc.get(field) for field in self.unique)
            if any(tuple(d.get(field) for field in self.unique) == key for d in self.docs):
                raise DuplicateKeyError("E11000 duplicate key error")
        self.docs.append(dict(doc))

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    def find(self, query, projection=None):
        return FakeCursor([dict(d) for d in self.docs if self._matches(d, query)])

    async def update_one(self, query, update, upsert=False):
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return
        if upsert:
            doc = dict(query)
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            self.docs.append(doc)

    async def find_one_and_update(self, query, update, upsert=False, return_document=None):
        await self.update_one(query, update, upsert=upsert)
        return await self.find_one(query)


class FakeDatabase:
    def __init__(self):
        self.users = FakeCollection(unique=("telegram_id",))
        self.days = FakeCollection(unique=("day_number",))
        self.progress = FakeCollection(unique=("user_id", "day_number"))


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "days.json"
    path.write_text(json.dumps(SAMPLE_DAYS, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def content(catalog_file, tmp_path):
    return ContentLoader(content_file=catalog_file, media_dir=tmp_path)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def tracker(content, fake_db):
    return ProgressTracker(content, ProgressManager(fake_db), DayManager(fake_db))


@pytest.fixture
def gate():
    return AccessGate(InMemoryAllowListStore(["alice"]), admin_ids=[ADMIN_ID])


@pytest.fixture
def bot_context(content, fake_db, tracker, gate):
    """Stand-in for telegram.ext.CallbackContext with the services registered."""
    return SimpleNamespace(
        bot=AsyncMock(),
        args=[],
        bot_data={
            "content": content,
            "access_gate": gate,
            "user_manager": UserManager(fake_db),
            "progress_tracker": tracker,
            "lesson_service": LessonService(content),
        },
    )


def make_update(user_id=1, username="alice", callback_data=None, chat_id=None):
    chat_id = chat_id or user_id
    user = SimpleNamespace(id=user_id, username=username, first_name="Test", language_code="uk")
    message = SimpleNamespace(reply_text=AsyncMock(), chat_id=chat_id)
    callback_query = None
    if callback_data is not None:
        callback_query = SimpleNamespace(data=callback_data, answer=AsyncMock(), message=message)
    return SimpleNamespace(
        effective_user=user,
        effective_chat=SimpleNamespace(id=chat_id),
        effective_message=message,
        message=None if callback_query else message,
        callback_query=callback_query,
    )
