import logging

from .models import HEAD_DRIVER, USERS

log = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "password123"


def ensure_admin_exists(store, username=DEFAULT_ADMIN_USERNAME, password=DEFAULT_ADMIN_PASSWORD):
    """Create a default head driver when none exists. Returns the new id, if any."""
    if store.find(USERS, role=HEAD_DRIVER):
        return None
    admin_id = store.create(USERS, {
        "name": "Admin",
        "username": username,
        "password": password,
        "role": HEAD_DRIVER,
    })
    log.info("%s: default admin '%s' created", store.mode, username)
    return admin_id
