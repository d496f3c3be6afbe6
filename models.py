from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from zone_time import local_date_of, parse_utc_iso, to_local, utc_iso_z


# -----------------------------
# Domain model
# -----------------------------
@dataclass(frozen=True)
class Resource:
    resource_id: str
    name: str
    description: str
    created_at: datetime  # aware, UTC

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.resource_id,
            "name": self.name,
            "description": self.description,
            "created_at": utc_iso_z(self.created_at),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Resource":
        return cls(
            resource_id=doc["id"],
            name=doc["name"],
            description=doc.get("description") or "",
            created_at=parse_utc_iso(doc["created_at"]),
        )


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    resource_id: str
    calendar_date: str     # facility-local, YYYY-MM-DD
    local_start_time: str  # facility-local, HH:mm
    duration_minutes: int
    start_utc: datetime    # aware, UTC
    end_utc: datetime      # aware, UTC, exclusive
    customer_name: str
    service_id: str
    service_label: str
    time_zone: str
    created_at: datetime
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.reservation_id,
            "resource_id": self.resource_id,
            "calendar_date": self.calendar_date,
            "local_start_time": self.local_start_time,
            "duration_minutes": self.duration_minutes,
            "start": utc_iso_z(self.start_utc),
            "end": utc_iso_z(self.end_utc),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "service_id": self.service_id,
            "service_label": self.service_label,
            "time_zone": self.time_zone,
            "created_at": utc_iso_z(self.created_at),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any], default_zone: str) -> "Reservation":
        start = parse_utc_iso(doc["start"])
        end = parse_utc_iso(doc["end"])
        zone = doc.get("time_zone") or default_zone
        # Older documents may lack the cached local fields.
        calendar_date = doc.get("calendar_date") or local_date_of(start, zone)
        local_start_time = doc.get("local_start_time") or to_local(start, zone).strftime("%H:%M")
        duration = doc.get("duration_minutes")
        if duration is None:
            duration = int((end - start).total_seconds() // 60)
        service_id = doc.get("service_id") or ""
        return cls(
            reservation_id=doc["id"],
            resource_id=doc["resource_id"],
            calendar_date=calendar_date,
            local_start_time=local_start_time,
            duration_minutes=int(duration),
            start_utc=start,
            end_utc=end,
            customer_name=doc.get("customer_name") or "",
            service_id=service_id,
            service_label=doc.get("service_label") or service_id,
            time_zone=zone,
            created_at=parse_utc_iso(doc.get("created_at") or doc["start"]),
            customer_phone=doc.get("customer_phone"),
            customer_email=doc.get("customer_email"),
        )


@dataclass(frozen=True)
class AppSettings:
    admin_email: str = ""
    smtp_password: str = ""

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> "AppSettings":
        doc = doc or {}
        return cls(
            admin_email=doc.get("admin_email") or "",
            smtp_password=doc.get("smtp_password") or "",
        )


@dataclass(frozen=True)
class Slot:
    start_time: str  # facility-local HH:mm
    end_time: str
    start_utc: datetime
    end_utc: datetime
    available: bool


# -----------------------------
# API models (transport layer)
# -----------------------------
class CreateReservationIn(BaseModel):
    # Shape only; content rules live in validation.validate_booking.
    resource_id: Optional[str] = None
    calendar_date: Optional[str] = None
    local_start_time: Optional[str] = None
    duration_minutes: Optional[Union[int, float, str]] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service_id: Optional[str] = None
    service_label: Optional[str] = None


class ReservationOut(BaseModel):
    reservation_id: str
    resource_id: str
    calendar_date: str
    local_start_time: str
    duration_minutes: int
    start: str  # ISO-8601 UTC with Z
    end: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service_id: str
    service_label: str
    time_zone: str
    created_at: str

    @classmethod
    def from_reservation(cls, r: Reservation) -> "ReservationOut":
        return cls(
            reservation_id=r.reservation_id,
            resource_id=r.resource_id,
            calendar_date=r.calendar_date,
            local_start_time=r.local_start_time,
            duration_minutes=r.duration_minutes,
            start=utc_iso_z(r.start_utc),
            end=utc_iso_z(r.end_utc),
            customer_name=r.customer_name,
            customer_phone=r.customer_phone,
            customer_email=r.customer_email,
            service_id=r.service_id,
            service_label=r.service_label,
            time_zone=r.time_zone,
            created_at=utc_iso_z(r.created_at),
        )


class PublicReservationOut(BaseModel):
    """What any client may see about someone else's booking: timing only."""

    reservation_id: str
    resource_id: str
    calendar_date: str
    local_start_time: str
    duration_minutes: int
    start: str
    end: str

    @classmethod
    def from_reservation(cls, r: Reservation) -> "PublicReservationOut":
        return cls(
            reservation_id=r.reservation_id,
            resource_id=r.resource_id,
            calendar_date=r.calendar_date,
            local_start_time=r.local_start_time,
            duration_minutes=r.duration_minutes,
            start=utc_iso_z(r.start_utc),
            end=utc_iso_z(r.end_utc),
        )


class CreateResourceIn(BaseModel):
    name: str = ""
    description: Optional[str] = None


class ResourceOut(BaseModel):
    resource_id: str
    name: str
    description: str
    created_at: str

    @classmethod
    def from_resource(cls, r: Resource) -> "ResourceOut":
        return cls(
            resource_id=r.resource_id,
            name=r.name,
            description=r.description,
            created_at=utc_iso_z(r.created_at),
        )


class SlotOut(BaseModel):
    start_time: str
    end_time: str
    start: str
    end: str
    available: bool

    @classmethod
    def from_slot(cls, s: Slot) -> "SlotOut":
        return cls(
            start_time=s.start_time,
            end_time=s.end_time,
            start=utc_iso_z(s.start_utc),
            end=utc_iso_z(s.end_utc),
            available=s.available,
        )


class PurgeIn(BaseModel):
    before: Optional[str] = None  # YYYY-MM-DD, defaults to facility-local today


class PurgeOut(BaseModel):
    removed_count: int


class SettingsIn(BaseModel):
    admin_email: Optional[str] = None
    smtp_password: Optional[str] = None


class SettingsOut(BaseModel):
    admin_email: str
    smtp_password_set: bool

    @classmethod
    def from_settings(cls, s: AppSettings) -> "SettingsOut":
        return cls(admin_email=s.admin_email, smtp_password_set=bool(s.smtp_password))


class StatusOut(BaseModel):
    ok: bool = True
    env: str
    timezone: str


def reservations_out(items: List[Reservation]) -> List[ReservationOut]:
    return [ReservationOut.from_reservation(r) for r in items]
