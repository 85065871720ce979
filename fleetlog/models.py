from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional

from . import db

USERS = "users"
VEHICLES = "vehicles"
TRIPS = "trips"
COLLECTIONS = (USERS, VEHICLES, TRIPS)

DRIVER = "DRIVER"
HEAD_DRIVER = "HEAD_DRIVER"
ROLES = (DRIVER, HEAD_DRIVER)

ACTIVE = "ACTIVE"
COMPLETED = "COMPLETED"


class Document(db.Model):
    __tablename__ = "documents"

    seq = db.Column(db.Integer, primary_key=True, autoincrement=True)
    doc_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    collection = db.Column(db.String(32), nullable=False, index=True)
    body = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


def _camel(name):
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


class _Record:
    """Maps snake_case attributes onto the camelCase document keys."""

    @classmethod
    def from_doc(cls, doc):
        kwargs = {}
        for f in fields(cls):
            key = _camel(f.name)
            if key in doc:
                kwargs[f.name] = doc[key]
        return cls(**kwargs)

    def to_doc(self, with_id=True):
        doc = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (f.name == "id" and not with_id):
                continue
            doc[_camel(f.name)] = value
        return doc


@dataclass
class User(_Record):
    id: str = ""
    name: str = ""
    username: str = ""
    password: str = ""
    role: str = DRIVER
    phone: Optional[str] = None

    @property
    def is_head_driver(self) -> bool:
        return self.role == HEAD_DRIVER

    def public(self):
        doc = self.to_doc()
        doc.pop("password", None)
        return doc


@dataclass
class Vehicle(_Record):
    id: str = ""
    plate_number: str = ""
    model: str = ""
    type: str = ""


@dataclass
class Trip(_Record):
    id: str = ""
    driver_id: str = ""
    driver_name: str = ""
    vehicle_id: str = ""
    vehicle_model: str = ""
    plate_number: str = ""
    origin: str = ""
    destination: str = ""
    passengers: str = ""
    remarks: Optional[str] = None
    start_time: int = 0
    end_time: Optional[int] = None
    duration_minutes: Optional[int] = None
    status: str = ACTIVE
