"""
Record store for users, vehicles and trips.

Two interchangeable backends sit behind ``RecordStore``:

* ``SqlDocumentStore`` keeps each record as a JSON document in the
  ``documents`` table of the database at ``DATABASE_URL`` ("remote" mode).
* ``LocalJsonStore`` keeps one JSON file on the local disk ("local" mode).

The backend is picked once by ``select_store`` while the app is created and
is never swapped afterwards. Callers outside this module never look at
which backend is active.
"""
import json
import logging
import os
import random
import string
import tempfile
import time
import uuid
from contextlib import contextmanager
from pathlib import Path

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import db
from .errors import BackendUnavailable, NotFound
from .models import COLLECTIONS, Document

log = logging.getLogger(__name__)

EXTENSION_KEY = "fleetlog.store"
LOCAL_KEYS = {c: f"fleetlog_{c}" for c in COLLECTIONS}

_B36 = string.digits + string.ascii_lowercase


def _clean(record):
    return {k: v for k, v in record.items() if k != "id" and v is not None}


def _matches(record, equals):
    return all(record.get(k) == v for k, v in equals.items())


class RecordStore:
    mode = None

    def list(self, collection):
        raise NotImplementedError

    def create(self, collection, record):
        raise NotImplementedError

    def update(self, collection, record_id, fields, replace=False):
        raise NotImplementedError

    def delete(self, collection, record_id):
        raise NotImplementedError

    def get(self, collection, record_id):
        for record in self.list(collection):
            if record["id"] == record_id:
                return record
        raise NotFound(f"{collection} record {record_id} not found")

    def find(self, collection, **equals):
        return [r for r in self.list(collection) if _matches(r, equals)]


class SqlDocumentStore(RecordStore):
    mode = "remote"

    @property
    def session(self):
        return db.session

    @contextmanager
    def _guard(self):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            log.error("Remote backend error: %s", e)
            raise BackendUnavailable("remote backend unreachable") from e

    def _row(self, collection, record_id):
        stmt = db.select(Document).filter_by(collection=collection, doc_id=record_id)
        return self.session.execute(stmt).scalars().first()

    def ping(self):
        with self._guard():
            self.session.execute(text("SELECT 1"))

    def list(self, collection):
        with self._guard():
            stmt = db.select(Document).filter_by(collection=collection).order_by(Document.seq)
            rows = self.session.execute(stmt).scalars().all()
            return [{"id": r.doc_id, **r.body} for r in rows]

    def get(self, collection, record_id):
        with self._guard():
            row = self._row(collection, record_id)
        if row is None:
            raise NotFound(f"{collection} record {record_id} not found")
        return {"id": row.doc_id, **row.body}

    def create(self, collection, record):
        doc_id = uuid.uuid4().hex
        with self._guard():
            self.session.add(Document(doc_id=doc_id, collection=collection, body=_clean(record)))
            self.session.commit()
        return doc_id

    def update(self, collection, record_id, fields, replace=False):
        with self._guard():
            row = self._row(collection, record_id)
            if row is None:
                raise NotFound(f"{collection} record {record_id} not found")
            body = {} if replace else dict(row.body)
            body.update(_clean(fields))
            # JSON columns only notice reassignment
            row.body = body
            self.session.commit()

    def delete(self, collection, record_id):
        with self._guard():
            row = self._row(collection, record_id)
            if row is not None:
                self.session.delete(row)
                self.session.commit()


class LocalJsonStore(RecordStore):
    mode = "local"

    def __init__(self, path):
        self.path = Path(path)

    def _load(self):
        if not self.path.exists():
            return {key: [] for key in LOCAL_KEYS.values()}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        for key in LOCAL_KEYS.values():
            data.setdefault(key, [])
        return data

    def _save(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # one temp file per write; concurrent saves must not share it
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    @staticmethod
    def generate_id():
        ms = int(time.time() * 1000)
        stamp = ""
        while ms:
            ms, rem = divmod(ms, 36)
            stamp = _B36[rem] + stamp
        return stamp + "".join(random.choices(_B36, k=5))

    def list(self, collection):
        return [dict(r) for r in self._load()[LOCAL_KEYS[collection]]]

    def create(self, collection, record):
        data = self._load()
        records = data[LOCAL_KEYS[collection]]
        taken = {r["id"] for r in records}
        record_id = self.generate_id()
        while record_id in taken:
            record_id = self.generate_id()
        records.append({"id": record_id, **_clean(record)})
        self._save(data)
        return record_id

    def update(self, collection, record_id, fields, replace=False):
        data = self._load()
        records = data[LOCAL_KEYS[collection]]
        for i, r in enumerate(records):
            if r["id"] == record_id:
                base = {} if replace else {k: v for k, v in r.items() if k != "id"}
                base.update(_clean(fields))
                records[i] = {"id": record_id, **base}
                self._save(data)
                return
        raise NotFound(f"{collection} record {record_id} not found")

    def delete(self, collection, record_id):
        data = self._load()
        key = LOCAL_KEYS[collection]
        kept = [r for r in data[key] if r["id"] != record_id]
        if len(kept) != len(data[key]):
            data[key] = kept
            self._save(data)


def _local_store(app):
    path = app.config.get("LOCAL_STORE_PATH") or os.path.join(app.instance_path, "fleetlog.json")
    return LocalJsonStore(path)


def select_store(app):
    """Pick the backend for the lifetime of ``app``."""
    if EXTENSION_KEY in app.extensions:
        raise RuntimeError("record store already selected")

    store = None
    if app.config.get("SQLALCHEMY_DATABASE_URI"):
        db.init_app(app)
        with app.app_context():
            try:
                db.create_all()
                candidate = SqlDocumentStore()
                candidate.ping()
                store = candidate
            except (SQLAlchemyError, BackendUnavailable) as e:
                log.warning("Remote backend not reachable (%s), using local store", e)

    if store is None:
        store = _local_store(app)
        log.info("Local mode: records kept in %s", store.path)
    else:
        log.info("Remote mode: records kept in the documents table")

    app.extensions[EXTENSION_KEY] = store
    return store


def get_store():
    return current_app.extensions[EXTENSION_KEY]
