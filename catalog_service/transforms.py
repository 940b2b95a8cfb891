"""Reshapes catalog rows into the payloads the frontend expects."""

import re
from collections import Counter
from typing import Dict, Iterable, List, Optional

DEFAULT_MIN_GUESTS = 50
DEFAULT_MAX_GUESTS = 500

# Indian numbering shorthands used in budget strings
_MULTIPLIERS = {
    "k": 1_000,
    "l": 100_000,
    "lakh": 100_000,
    "lakhs": 100_000,
    "lac": 100_000,
    "cr": 10_000_000,
    "crore": 10_000_000,
    "crores": 10_000_000,
}

_AMOUNT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Z]*)")


def parse_currency(text: Optional[str]) -> int:
    """
    Parses a rupee amount such as "₹50,000", "₹2L" or "₹15L - ₹50L".

    Ranges resolve to their lower bound. Anything without digits is 0.
    """
    if not text:
        return 0

    cleaned = str(text).replace("₹", "").replace(",", "")
    match = _AMOUNT_RE.search(cleaned)
    if not match:
        return 0

    amount = float(match.group(1))
    suffix = match.group(2).lower()
    amount *= _MULTIPLIERS.get(suffix, 1)
    return int(round(amount))


def slugify(name: Optional[str]) -> str:
    """'Corporate Event' -> 'corporate-event'."""
    if not name:
        return ""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


def transform_event(event) -> Dict:
    return {
        "id": event.id,
        "name": event.name,
        "slug": slugify(event.name),
        "description": event.description,
        "icon": event.icon,
        "features": event.features or [],
        "avg_budget": event.avg_budget,
        "base_price": parse_currency(event.avg_budget),
        "duration": event.duration,
        "team_size": event.team_size,
        "min_guests": event.min_guests if event.min_guests is not None else DEFAULT_MIN_GUESTS,
        "max_guests": event.max_guests if event.max_guests is not None else DEFAULT_MAX_GUESTS,
    }


def transform_service(service) -> Dict:
    return {
        "id": service.id,
        "event_id": service.event_id,
        "name": service.name,
        "description": service.description,
        "price": service.price,
        "price_label": service.price_label,
        "base_price": parse_currency(service.price),
        "category": service.category,
    }


def transform_package(package) -> Dict:
    return {
        "id": package.id,
        "event_id": package.event_id,
        "name": package.name,
        "description": package.description,
        "price": package.price,
        "base_price": parse_currency(package.price),
        "features": package.features or [],
        "services": package.service_ids or [],
    }


def count_event_types(event_types: Iterable[str]) -> List[Dict]:
    """
    Counts story event types, most frequent first.
    Ties keep the order in which the type was first seen.
    """
    counts = Counter(t for t in event_types if t)
    return [
        {
            "name": name,
            "count": count,
            "image": f"/event-images/{slugify(name)}.png",
        }
        for name, count in counts.most_common()
    ]


def transform_vendor(vendor) -> Dict:
    images = vendor.portfolio_images or []
    return {
        "id": vendor.id,
        "name": vendor.name,
        "business_name": vendor.name,
        "category": vendor.category,
        "rating": vendor.rating or 0,
        "events": vendor.events_count or 0,
        "price": vendor.price or "Contact for pricing",
        "priceLabel": vendor.price_label or "Custom Quote",
        "responseTime": vendor.response_time or "Within 24 hours",
        "badge": vendor.badge or "New",
        "image": vendor.image or "/api/placeholder/400/300",
        "description": vendor.description,
        "features": vendor.features or [],
        "location": vendor.location or "Multiple Locations",
        "experience": vendor.experience or "Not specified",
        "teamSize": vendor.team_size,
        "availability": vendor.availability,
        "email": vendor.email,
        "phone": vendor.phone,
        "serviceAreas": vendor.service_areas or [],
        "servicesOffered": vendor.services_offered or [],
        "portfolio": [
            {
                "id": index,
                "title": f"Portfolio Image {index + 1}",
                "description": "Portfolio image",
                "image_url": url,
                "category": "portfolio",
            }
            for index, url in enumerate(images)
        ],
        "createdAt": vendor.created_at.isoformat() if vendor.created_at else None,
        "updatedAt": vendor.updated_at.isoformat() if vendor.updated_at else None,
    }
