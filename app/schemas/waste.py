from typing import Literal

WASTE_CATEGORY = "waste"
REDUCTION_CATEGORY = "reduction"

WASTE_REASONS = [
    {"value": "spoilage", "label": "Spoilage", "description": "Went bad in storage"},
    {"value": "expired", "label": "Expired", "description": "Past expiration date"},
    {"value": "damaged", "label": "Damaged", "description": "Physical damage during shipping/storage"},
    {"value": "over-prep", "label": "Over-Preparation", "description": "Made too much, had to discard"},
    {"value": "prep-waste", "label": "Prep Waste", "description": "Trim, peels, unusable parts"},
    {"value": "poor-quality", "label": "Poor Quality", "description": "Didn't meet quality standards"},
    {"value": "short-life", "label": "Short Life", "description": "Delivered too close to expiration"},
]

REDUCTION_REASONS = [
    {"value": "usage", "label": "Usage", "description": "Used for cooking (normal consumption)"},
    {"value": "donation", "label": "Donation", "description": "Donated to charity"},
    {"value": "discontinued", "label": "Discontinued", "description": "Menu item discontinued"},
]

WASTE_CATEGORIES = [
    {
        "value": WASTE_CATEGORY,
        "label": "Waste",
        "description": "Items that were thrown away (spoilage, damage, expiration, etc.)",
    },
    {
        "value": REDUCTION_CATEGORY,
        "label": "Reduction",
        "description": "Items removed but not wasted (usage, donation, discontinuation)",
    },
]

RemovalReason = Literal[
    "spoilage", "expired", "damaged", "over-prep", "prep-waste", "poor-quality", "short-life",
    "usage", "donation", "discontinued",
]

_WASTE_REASON_VALUES = {reason["value"] for reason in WASTE_REASONS}


def category_for_reason(reason: str) -> str:
    return WASTE_CATEGORY if reason in _WASTE_REASON_VALUES else REDUCTION_CATEGORY
