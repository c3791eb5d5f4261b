"""Static catalogues shared by routes and services."""

from homepro.constants.categories import (
    CATEGORIES,
    VALID_CATEGORIES,
    DEFAULT_PRICE_CENTS,
    get_base_price,
    normalize_category,
)
from homepro.constants.session import (
    SAFETY_CHECKLIST_ITEMS,
    SESSION_OUTCOMES,
    MAX_SESSION_MINUTES,
    missing_safety_items,
)
