from __future__ import annotations
"""Result shapes returned by the used-car inventory API."""
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, Any, Dict, List


@dataclass
class UsedCar:
    id: int
    used_car_id: int
    used_car_sku_id: str = ''
    price: int = 0
    formatted_price: str = ''
    msp: Optional[int] = None
    myear: Optional[int] = None
    model: str = ''
    variant_name: Optional[str] = None
    oem: str = ''
    km: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission_type: Optional[str] = None
    city: str = ''
    city_id: Optional[int] = None
    locality: Optional[str] = None
    location: Optional[str] = None
    body_type: Optional[str] = None
    owner: Optional[int] = None
    owner_slug: Optional[str] = None
    dealer_id: int = 0
    active: int = 1
    inventory_status: int = 1
    inventory_type_label: Optional[str] = None
    car_type: Optional[str] = None
    corporate_id: Optional[int] = None
    store_id: Optional[str] = None
    utype: Optional[str] = None
    vlink: Optional[str] = None
    from_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # joined from car_images
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UsedCar":
        names = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in names}
        data.setdefault('id', row.get('used_car_id'))
        data.setdefault('used_car_id', row.get('id'))
        return cls(**data)

    @property
    def title(self) -> str:
        parts = [str(p) for p in (self.myear, self.oem, self.model, self.variant_name) if p]
        return ' '.join(parts)

    @property
    def cover_image(self) -> Optional[str]:
        if self.images:
            return self.images[0]
        return self.image_url

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FetchCarsOptions:
    limit: int = 24
    offset: int = 0
    sort_by: Optional[str] = None
    order: Optional[str] = None
    city: Optional[str] = None
    oem: Optional[str] = None
    model: Optional[str] = None
    body_type: Optional[str] = None
    fuel_type: Optional[str] = None


@dataclass
class FetchCarsResult:
    success: bool
    results: List[UsedCar] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> Optional[int]:
        v = self.meta.get('total')
        return v if isinstance(v, int) else None


@dataclass
class FilterOptions:
    oems: List[str] = field(default_factory=list)
    cities: List[str] = field(default_factory=list)
    body_types: List[str] = field(default_factory=list)
    fuel_types: List[str] = field(default_factory=list)
