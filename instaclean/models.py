from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from instaclean import db
from instaclean.status import BookingStatus, CONTACT_METHODS, STATUS_VALUES

ROLES = ("CUSTOMER", "ADMIN", "STAFF")
PRIVILEGED_ROLES = ("ADMIN", "STAFF")


def _money(value):
    return float(value) if value is not None else None


def _iso(value):
    return value.isoformat() if value is not None else None


# Table: users
class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(30))
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(*ROLES, name='user_role'), nullable=False, default='CUSTOMER')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    bookings = db.relationship('Booking', foreign_keys='Booking.user_id', backref='user', lazy=True)

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "phone": self.phone}

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update(role=self.role, createdAt=_iso(self.created_at))
        return data


# Table: services
class Service(db.Model):
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    price_unit = db.Column(db.String(30), nullable=False, default='per hour')
    duration = db.Column(db.Integer, nullable=False)  # minutes
    image = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    bookings = db.relationship('Booking', backref='service', lazy='dynamic')

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "basePrice": _money(self.base_price),
            "priceUnit": self.price_unit,
            "duration": self.duration,
            "image": self.image,
            "isActive": self.is_active,
        }


# Table: property_types
class PropertyType(db.Model):
    __tablename__ = 'property_types'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    bookings = db.relationship('Booking', backref='property_type', lazy='dynamic')

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class AccountHolder:
    """Booking owned by a registered account."""
    user_id: int


@dataclass(frozen=True)
class GuestContact:
    """Booking made without an account, identified by its contact details."""
    name: str
    phone: str
    email: Optional[str] = None


BookingIdentity = Union[AccountHolder, GuestContact]


# Table: bookings
class Booking(db.Model):
    __tablename__ = 'bookings'
    __table_args__ = (
        # exactly one identification mode: an account OR guest contact fields
        db.CheckConstraint(
            "(user_id IS NOT NULL AND guest_name IS NULL AND guest_phone IS NULL AND guest_email IS NULL)"
            " OR (user_id IS NULL AND guest_name IS NOT NULL AND guest_phone IS NOT NULL)",
            name='ck_bookings_identity',
        ),
        db.CheckConstraint(
            "(status = 'COMPLETED') = (completed_at IS NOT NULL)",
            name='ck_bookings_completed_at',
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    booking_number = db.Column(db.String(40), unique=True, nullable=False, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    guest_name = db.Column(db.String(100))
    guest_email = db.Column(db.String(120))
    guest_phone = db.Column(db.String(30))

    service_id = db.Column(db.Integer, db.ForeignKey('services.id'), nullable=False)
    property_type_id = db.Column(db.Integer, db.ForeignKey('property_types.id'), nullable=False)
    property_size = db.Column(db.String(100))

    scheduled_date = db.Column(db.Date, nullable=False, index=True)
    scheduled_time = db.Column(db.String(20), nullable=False)
    # frozen at creation: later catalog edits never reach existing bookings
    estimated_duration = db.Column(db.Integer, nullable=False)

    address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    zip_code = db.Column(db.String(20))
    special_instructions = db.Column(db.Text)

    estimated_price = db.Column(db.Numeric(10, 2), nullable=False)
    final_price = db.Column(db.Numeric(10, 2))

    status = db.Column(db.Enum(*STATUS_VALUES, name='booking_status'), nullable=False,
                       default=BookingStatus.PENDING.value, index=True)
    assigned_staff_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    contact_method = db.Column(db.Enum(*CONTACT_METHODS, name='contact_method'), nullable=False, default='EMAIL')

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = db.Column(db.DateTime)

    assigned_staff = db.relationship('User', foreign_keys=[assigned_staff_id])

    @property
    def identity(self) -> BookingIdentity:
        if self.user_id is not None:
            return AccountHolder(self.user_id)
        return GuestContact(name=self.guest_name, phone=self.guest_phone, email=self.guest_email)

    @identity.setter
    def identity(self, value: BookingIdentity):
        if isinstance(value, AccountHolder):
            self.user_id = value.user_id
            self.guest_name = self.guest_phone = self.guest_email = None
        elif isinstance(value, GuestContact):
            self.user_id = None
            self.guest_name, self.guest_phone, self.guest_email = value.name, value.phone, value.email
        else:
            raise TypeError(f"Unsupported booking identity: {value!r}")

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def contact_email(self) -> Optional[str]:
        if self.user is not None:
            return self.user.email
        return self.guest_email

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bookingNumber": self.booking_number,
            "userId": self.user_id,
            "guestName": self.guest_name,
            "guestEmail": self.guest_email,
            "guestPhone": self.guest_phone,
            "serviceId": self.service_id,
            "propertyTypeId": self.property_type_id,
            "propertySize": self.property_size,
            "scheduledDate": _iso(self.scheduled_date),
            "scheduledTime": self.scheduled_time,
            "estimatedDuration": self.estimated_duration,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "specialInstructions": self.special_instructions,
            "estimatedPrice": _money(self.estimated_price),
            "finalPrice": _money(self.final_price),
            "status": self.status,
            "assignedStaffId": self.assigned_staff_id,
            "contactMethod": self.contact_method,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "completedAt": _iso(self.completed_at),
            "service": self.service.to_dict() if self.service else None,
            "propertyType": self.property_type.to_dict() if self.property_type else None,
            "user": self.user.to_summary() if self.user else None,
            "assignedStaff": self.assigned_staff.to_summary() if self.assigned_staff else None,
        }
