"""Help request routes package.

- crud: create, fetch and list requests
- workflow: claim and cancel
- helpers: shared lookups and access checks
"""

from flask import Blueprint

requests_bp = Blueprint('help_requests', __name__)

from homepro.routes.help_requests import crud  # noqa: E402,F401
from homepro.routes.help_requests import workflow  # noqa: E402,F401
