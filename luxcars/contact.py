from __future__ import annotations
"""Lead capture payload (``POST /rest/contact_form``)."""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


class ContactValidationError(ValueError):
    pass


@dataclass
class ContactSubmission:
    name: str
    phone_number: str
    email: Optional[str] = None
    car_name: Optional[str] = None
    location: Optional[str] = None
    is_sell: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def row_params(self):
        return (self.name, self.phone_number, self.email, self.car_name, self.location, 1 if self.is_sell else 0)


def validate_contact(payload: Any) -> ContactSubmission:
    if not isinstance(payload, dict):
        payload = {}
    name = payload.get('name')
    phone = payload.get('phone_number')
    if not name or not phone:
        raise ContactValidationError('Name and phone number are required')
    return ContactSubmission(
        name=name,
        phone_number=phone,
        email=payload.get('email') or None,
        car_name=payload.get('car_name') or None,
        location=payload.get('location') or None,
        is_sell=bool(payload.get('is_sell')),
    )


INSERT_CONTACT_SQL = (
    'INSERT INTO contact_form (name, phone_number, email, car_name, location, is_sell) '
    'VALUES (?, ?, ?, ?, ?, ?)'
)

__all__ = ["ContactSubmission", "ContactValidationError", "validate_contact", "INSERT_CONTACT_SQL"]
