"""Users and vehicles, as managed from the head driver's settings page."""
import logging

from .errors import DuplicateUsername, InvalidInput, SelfDeletionForbidden
from .models import DRIVER, ROLES, USERS, VEHICLES, User, Vehicle
from .utils import text_field

log = logging.getLogger(__name__)

DEFAULT_VEHICLE_TYPE = "Vehicle"


def _password_given(password):
    # a password made only of spaces counts as blank, for add and update alike
    return bool(text_field(password, "password"))


def _username_taken(store, username, exclude_id=None):
    wanted = username.strip().lower()
    return any(
        u.get("username", "").strip().lower() == wanted and u["id"] != exclude_id
        for u in store.list(USERS)
    )


def authenticate(store, username, password):
    # passwords are stored and compared as plain strings
    wanted = text_field(username, "username").lower()
    for doc in store.list(USERS):
        if doc.get("username", "").lower() == wanted and doc.get("password") == password:
            return User.from_doc(doc)
    return None


# ---------------- users ----------------

def list_users(store):
    return [User.from_doc(d) for d in store.list(USERS)]


def get_user(store, user_id):
    return User.from_doc(store.get(USERS, user_id))


def add_user(store, name, username, password, role=DRIVER, phone=None):
    name = text_field(name, "name")
    username = text_field(username, "username")
    if not name or not username or not _password_given(password):
        raise InvalidInput("name, username and password are required")
    if role not in ROLES:
        raise InvalidInput(f"unknown role {role!r}")
    if _username_taken(store, username):
        raise DuplicateUsername(f"username '{username}' already exists")

    user = User(name=name, username=username, password=password, role=role,
                phone=text_field(phone, "phone") or None)
    user.id = store.create(USERS, user.to_doc(with_id=False))
    log.info("User %s (%s) added", user.username, user.role)
    return user


def update_user(store, user_id, name=None, username=None, role=None, phone=None, password=None):
    user = get_user(store, user_id)
    if name is not None:
        name = text_field(name, "name")
        if not name:
            raise InvalidInput("name cannot be blank")
        user.name = name
    if username is not None:
        username = text_field(username, "username")
        if not username:
            raise InvalidInput("username cannot be blank")
        if _username_taken(store, username, exclude_id=user_id):
            raise DuplicateUsername(f"username '{username}' already exists")
        user.username = username
    if role is not None:
        if role not in ROLES:
            raise InvalidInput(f"unknown role {role!r}")
        user.role = role
    if phone is not None:
        user.phone = text_field(phone, "phone") or None
    # blank password keeps the current one
    if _password_given(password):
        user.password = password

    store.update(USERS, user_id, user.to_doc(with_id=False), replace=True)
    return user


def delete_user(store, actor, user_id):
    if actor.id == user_id:
        raise SelfDeletionForbidden("you cannot delete your own account")
    store.delete(USERS, user_id)
    log.info("User %s deleted by %s", user_id, actor.username)


# ---------------- vehicles ----------------

def list_vehicles(store):
    return [Vehicle.from_doc(d) for d in store.list(VEHICLES)]


def get_vehicle(store, vehicle_id):
    return Vehicle.from_doc(store.get(VEHICLES, vehicle_id))


def add_vehicle(store, plate_number, model, type=""):
    plate_number = text_field(plate_number, "plate number").upper()
    model = text_field(model, "model")
    if not plate_number or not model:
        raise InvalidInput("plate number and model are required")

    vehicle = Vehicle(plate_number=plate_number, model=model,
                      type=text_field(type, "type") or DEFAULT_VEHICLE_TYPE)
    vehicle.id = store.create(VEHICLES, vehicle.to_doc(with_id=False))
    log.info("Vehicle %s added", vehicle.plate_number)
    return vehicle


def update_vehicle(store, vehicle_id, plate_number=None, model=None, type=None):
    vehicle = get_vehicle(store, vehicle_id)
    if plate_number is not None:
        plate_number = text_field(plate_number, "plate number").upper()
        if not plate_number:
            raise InvalidInput("plate number cannot be blank")
        vehicle.plate_number = plate_number
    if model is not None:
        model = text_field(model, "model")
        if not model:
            raise InvalidInput("model cannot be blank")
        vehicle.model = model
    if type is not None:
        vehicle.type = text_field(type, "type") or DEFAULT_VEHICLE_TYPE

    store.update(VEHICLES, vehicle_id, vehicle.to_doc(with_id=False), replace=True)
    return vehicle


def delete_vehicle(store, vehicle_id):
    store.delete(VEHICLES, vehicle_id)
