"""API route handlers."""

from huddle.api.routes import health as health
from huddle.api.routes import messages as messages
from huddle.api.routes import users as users
