"""
core/errors.py -- Error taxonomy shared by the stores, the auth layer and the API.

Each class maps to exactly one HTTP status in api/main.py so a client can tell
an authentication failure from a data failure:

  Unauthenticated     401  no credential presented
  Forbidden           403  credential presented but not verifiable
  InvalidCredentials  401  login failed (unknown user or wrong password)
  LoginPayloadError   401  malformed login body -- reported exactly like
                           InvalidCredentials so the response does not say
                           which field was wrong
  ConflictError       409  uniqueness violation on a plain create path
  StorageError        500  any other persistence failure

Contact lookups never raise for a missing name; absence is modelled as None.

Layer rule: no imports from api/, auth/, or records/.
"""


class PickupLogError(Exception):
    """Base class for every domain error raised by this service."""


class Unauthenticated(PickupLogError):
    """No bearer credential accompanied a protected request."""


class Forbidden(PickupLogError):
    """A bearer credential was presented but failed verification."""


class InvalidCredentials(PickupLogError):
    """Username/password pair did not authenticate."""


class LoginPayloadError(InvalidCredentials):
    """Login body was missing fields or had the wrong shape."""


class ConflictError(PickupLogError):
    """A unique key (e.g. username) already exists."""


class StorageError(PickupLogError):
    """The persistent store failed to complete an operation."""
