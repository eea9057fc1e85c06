"""Import all models so Base.metadata and the mapper registry know about them."""
from reservio.models.user import User, Role  # noqa: F401
from reservio.models.event import Event, EventStatus  # noqa: F401
from reservio.models.registration import Registration, RegistrationStatus  # noqa: F401
