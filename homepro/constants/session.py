"""Session constants: safety checklist and outcomes."""

MAX_SESSION_MINUTES = 60

# Confirmed with the customer before a video session can start
SAFETY_CHECKLIST_ITEMS = {
    'power': 'Is the power turned OFF at the breaker?',
    'water': 'Is the water supply shut off (if applicable)?',
    'ventilation': 'Is the area well-ventilated?',
    'ppe': 'Is the customer wearing safety gear if needed?',
    'stable': 'Is the customer on stable footing?',
}

SESSION_OUTCOMES = ('resolved', 'unresolved', 'escalated')


def missing_safety_items(confirmed):
    """Return the checklist ids not present in ``confirmed``, in display order."""
    confirmed = set(confirmed or [])
    return [item for item in SAFETY_CHECKLIST_ITEMS if item not in confirmed]
