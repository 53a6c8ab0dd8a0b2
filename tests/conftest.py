import copy
import os
import re
import uuid

import pytest

# Configura las variables requeridas antes de importar el backend.
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("TIMEZONE", "America/Sao_Paulo")
os.environ.setdefault("STORE_TIMEOUT_SECONDS", "2")

from helpdesk.core import db as core_db  # noqa: E402
from helpdesk.models.user import CurrentUser  # noqa: E402

_MISSING = object()


# ---- Base Mongo en memoria (lo justo para los repositorios) ----

class _Result:
    def __init__(self, matched=0, modified=0, deleted=0, upserted_id=None):
        self.matched_count = matched
        self.modified_count = modified
        self.deleted_count = deleted
        self.upserted_id = upserted_id


def _cmp_ok(value, op, arg):
    if value is _MISSING or value is None:
        return False
    if op == "$gt": return value > arg
    if op == "$gte": return value >= arg
    if op == "$lt": return value < arg
    return value <= arg


def _match_value(value, cond):
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                ok = value is not _MISSING and value in arg
            elif op == "$nin":
                ok = value is _MISSING or value not in arg
            elif op == "$ne":
                ok = value is _MISSING or value != arg
            elif op in ("$gt", "$gte", "$lt", "$lte"):
                ok = _cmp_ok(value, op, arg)
            elif op == "$exists":
                ok = (value is not _MISSING) == bool(arg)
            elif op == "$regex":
                flags = re.I if "i" in cond.get("$options", "") else 0
                ok = isinstance(value, str) and re.search(arg, value, flags) is not None
            elif op == "$options":
                ok = True
            else:
                raise NotImplementedError(op)
            if not ok:
                return False
        return True
    if cond is None:
        return value is _MISSING or value is None
    return value == cond


def matches(doc, filt):
    for key, cond in (filt or {}).items():
        if key == "$or":
            if not any(matches(doc, f) for f in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, f) for f in cond):
                return False
        elif not _match_value(doc.get(key, _MISSING), cond):
            return False
    return True


def _apply(doc, ops, inserting=False):
    for op, fields in ops.items():
        if op == "$set":
            doc.update(copy.deepcopy(fields))
        elif op == "$setOnInsert":
            if inserting:
                doc.update(copy.deepcopy(fields))
        elif op == "$inc":
            for k, v in fields.items():
                doc[k] = doc.get(k, 0) + v
        elif op == "$push":
            for k, v in fields.items():
                items = doc.setdefault(k, [])
                if isinstance(v, dict) and "$each" in v:
                    items.extend(copy.deepcopy(v["$each"]))
                else:
                    items.append(copy.deepcopy(v))
        elif op == "$rename":
            for old, new in fields.items():
                if old in doc:
                    doc[new] = doc.pop(old)
        elif op == "$unset":
            for k in fields:
                doc.pop(k, None)
        else:
            raise NotImplementedError(op)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = None

    def sort(self, field, direction=1):
        self._docs = sorted(
            self._docs, key=lambda d: (d.get(field) is None, d.get(field)), reverse=direction < 0,
        )
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n or None
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        cap = min(x for x in (self._limit, length) if x) if (self._limit or length) else None
        if cap:
            docs = docs[:cap]
        return copy.deepcopy(docs)


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.fail_on = set()

    def _check(self, method):
        if method in self.fail_on:
            from pymongo.errors import ServerSelectionTimeoutError
            raise ServerSelectionTimeoutError(f"fallo simulado en {method}")

    async def create_index(self, *args, **kwargs):
        return "ok"

    async def insert_one(self, doc):
        self._check("insert_one")
        doc.setdefault("_id", uuid.uuid4().hex)
        self.docs.append(copy.deepcopy(doc))
        return _Result()

    async def find_one(self, filt=None):
        self._check("find_one")
        for d in self.docs:
            if matches(d, filt):
                return copy.deepcopy(d)
        return None

    def find(self, filt=None):
        return FakeCursor([d for d in self.docs if matches(d, filt)])

    async def count_documents(self, filt):
        return sum(1 for d in self.docs if matches(d, filt))

    async def distinct(self, field, filt=None):
        values = []
        for d in self.docs:
            if field in d and matches(d, filt) and d[field] not in values:
                values.append(d[field])
        return values

    def _upsert(self, filt, ops):
        doc = {k: v for k, v in filt.items() if not k.startswith("$") and not isinstance(v, dict)}
        doc["_id"] = doc.get("_id", uuid.uuid4().hex)
        _apply(doc, ops, inserting=True)
        self.docs.append(doc)
        return doc

    async def update_one(self, filt, ops, upsert=False):
        self._check("update_one")
        for d in self.docs:
            if matches(d, filt):
                _apply(d, ops)
                return _Result(matched=1, modified=1)
        if upsert:
            return _Result(upserted_id=self._upsert(filt, ops)["_id"])
        return _Result()

    async def update_many(self, filt, ops):
        self._check("update_many")
        n = 0
        for d in self.docs:
            if matches(d, filt):
                _apply(d, ops)
                n += 1
        return _Result(matched=n, modified=n)

    async def find_one_and_update(self, filt, ops, upsert=False, return_document=False):
        self._check("find_one_and_update")
        for d in self.docs:
            if matches(d, filt):
                before = copy.deepcopy(d)
                _apply(d, ops)
                return copy.deepcopy(d) if return_document else before
        if upsert:
            doc = self._upsert(filt, ops)
            return copy.deepcopy(doc) if return_document else None
        return None

    async def delete_one(self, filt):
        self._check("delete_one")
        for i, d in enumerate(self.docs):
            if matches(d, filt):
                del self.docs[i]
                return _Result(deleted=1)
        return _Result()


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    def __getitem__(self, name):
        return getattr(self, name)


# ---- fixtures ----

ADMIN = CurrentUser(id="admin-1", name="Ana Admin", email="ana@empresa.com", role="admin")
ADMIN_2 = CurrentUser(id="admin-2", name="Bruno Suporte", email="bruno@empresa.com", role="admin")
REQUESTER = CurrentUser(id="user-1", name="Carla Compras", email="carla@empresa.com", role="requester")
OTHER = CurrentUser(id="user-2", name="Diego Depósito", email="diego@empresa.com", role="requester")


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDatabase()
    monkeypatch.setattr(core_db, "_db", db)
    for u in (ADMIN, ADMIN_2, REQUESTER, OTHER):
        db.users.docs.append({"_id": u.id, **u.model_dump()})
    return db


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def admin_2():
    return ADMIN_2


@pytest.fixture
def requester():
    return REQUESTER


@pytest.fixture
def other_requester():
    return OTHER
