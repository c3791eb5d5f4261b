"""Request categories and their session prices.

Must stay in sync with:
  frontend: src/config/app_config.ts
"""

# Prices are in cents
DEFAULT_PRICE_CENTS = 4999

CATEGORIES = {
    'plumbing': {'label': 'Plumbing', 'base_price': 4999},
    'electrical': {'label': 'Electrical', 'base_price': 4999},
    'hvac': {'label': 'HVAC', 'base_price': 5999},
    'appliance': {'label': 'Appliance', 'base_price': 3999},
    'other': {'label': 'Other', 'base_price': 3999},
}

VALID_CATEGORIES = set(CATEGORIES)


def normalize_category(category):
    """Return the canonical category key, or None if it is not one we offer."""
    if not category or not isinstance(category, str):
        return None
    key = category.strip().lower()
    return key if key in VALID_CATEGORIES else None


def get_base_price(category):
    """Session price in cents for a category."""
    entry = CATEGORIES.get(category)
    if not entry:
        return DEFAULT_PRICE_CENTS
    return entry['base_price']
