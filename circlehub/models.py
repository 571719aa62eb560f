# models.py
import uuid
from datetime import date, datetime, timezone

from .database import db

USER_ROLES = ("user", "facilitator", "admin")
APPLICATION_STATUSES = ("pending", "approved", "rejected")
EVENT_TYPES = ("workshop", "group_session", "retreat")
RESOURCE_TYPES = ("article", "link")
RESOURCE_CATEGORIES = (
    "Authentic Relating",
    "Circling",
    "Communication",
    "Community Building",
    "Personal Growth",
    "Practice Guides",
    "Theory & Philosophy",
    "Other",
)
COST_LEVELS = ("free", "low", "medium", "high")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class User(db.Model):
    """Identity record; the public-facing data lives on Profile."""
    __tablename__ = 'users'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    email_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    profile = db.relationship("Profile", back_populates="user", uselist=False)


class Profile(db.Model):
    __tablename__ = 'profiles'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), unique=True, nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(40), nullable=True)
    role = db.Column(db.Enum(*USER_ROLES, name="user_role"), default="user", nullable=False)
    bio = db.Column(db.Text, nullable=True)
    # Public facilitator directory fields
    title = db.Column(db.String(200), nullable=True)
    public_bio = db.Column(db.Text, nullable=True)
    approach = db.Column(db.Text, nullable=True)
    languages = db.Column(db.JSON, nullable=True)
    work_types = db.Column(db.JSON, nullable=True)
    years_experience = db.Column(db.Integer, nullable=True)
    website = db.Column(db.String(255), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    is_public_profile = db.Column(db.Boolean, default=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = db.relationship("User", back_populates="profile")

    PUBLIC_FIELDS = ("user_id", "full_name", "title", "public_bio", "approach", "languages",
                     "work_types", "years_experience", "website", "contact_email", "image_url")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "bio": self.bio,
            "title": self.title,
            "public_bio": self.public_bio,
            "approach": self.approach,
            "languages": self.languages or [],
            "work_types": self.work_types or [],
            "years_experience": self.years_experience,
            "website": self.website,
            "contact_email": self.contact_email,
            "is_public_profile": self.is_public_profile,
            "image_url": self.image_url,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_public_dict(self):
        data = {key: getattr(self, key) for key in self.PUBLIC_FIELDS}
        data["languages"] = self.languages or []
        data["work_types"] = self.work_types or []
        # Fall back to the account email like the directory always has
        data["contact_email"] = self.contact_email or self.email
        return data


class Event(db.Model):
    __tablename__ = 'events'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(40), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(20), nullable=False)  # workshop / group_session / retreat
    max_participants = db.Column(db.Integer, default=20, nullable=False)
    price = db.Column(db.Integer, default=0, nullable=False)
    facilitator_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    registrations = db.relationship("EventRegistration", back_populates="event",
                                    cascade="all, delete-orphan")

    @property
    def is_past(self) -> bool:
        return self.date < date.today()

    def to_dict(self, current_participants=None):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": _iso(self.date),
            "time": self.time,
            "location": self.location,
            "type": self.type,
            "max_participants": self.max_participants,
            "price": self.price,
            "facilitator_id": self.facilitator_id,
            "image_url": self.image_url,
            "is_past": self.is_past,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if current_participants is not None:
            data["current_participants"] = current_participants
        return data


class EventRegistration(db.Model):
    __tablename__ = 'event_registrations'
    __table_args__ = (
        # One active (non-cancelled) registration per user and event
        db.Index(
            "uq_event_registrations_active",
            "event_id", "user_id",
            unique=True,
            sqlite_where=db.text("cancelled_at IS NULL"),
            postgresql_where=db.text("cancelled_at IS NULL"),
        ),
    )
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    event_id = db.Column(db.String(36), db.ForeignKey('events.id', ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    registered_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    event = db.relationship("Event", back_populates="registrations")

    @property
    def is_active(self) -> bool:
        return self.cancelled_at is None

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "registered_at": _iso(self.registered_at),
            "cancelled_at": _iso(self.cancelled_at),
        }


class ReviewFields:
    """Columns shared by every table that goes through admin review."""
    status = db.Column(db.Enum(*APPLICATION_STATUSES, name="application_status"),
                       default="pending", nullable=False)
    submitted_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reviewed_by = db.Column(db.String(36), nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)

    def review_dict(self):
        return {
            "status": self.status,
            "submitted_at": _iso(self.submitted_at),
            "reviewed_at": _iso(self.reviewed_at),
            "reviewed_by": self.reviewed_by,
            "admin_notes": self.admin_notes,
        }


class Resource(db.Model):
    __tablename__ = 'resources'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    author_id = db.Column(db.String(36), nullable=False)
    author_name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(20), nullable=False)  # article / link
    category = db.Column(db.String(60), nullable=False)
    description = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=True)
    url = db.Column(db.String(500), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    image_url = db.Column(db.String(500), nullable=True)
    source_submission_id = db.Column(db.String(36), unique=True, nullable=True)
    publish_date = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def owner_id(self):
        return self.author_id

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "type": self.type,
            "category": self.category,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "tags": self.tags or [],
            "image_url": self.image_url,
            "source_submission_id": self.source_submission_id,
            "publish_date": _iso(self.publish_date),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class ResourceSubmission(ReviewFields, db.Model):
    __tablename__ = 'resource_submissions'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(60), nullable=False)
    description = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=True)
    url = db.Column(db.String(500), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "type": self.type,
            "category": self.category,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "tags": self.tags or [],
            "image_url": self.image_url,
        }
        data.update(self.review_dict())
        return data


class Venue(db.Model):
    __tablename__ = 'venues'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    author_id = db.Column(db.String(36), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    hosting_capacity = db.Column(db.Integer, nullable=False)
    contact_information = db.Column(db.String(500), nullable=False)
    cost_level = db.Column(db.String(10), nullable=False)  # free / low / medium / high
    notes = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    source_submission_id = db.Column(db.String(36), unique=True, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def owner_id(self):
        return self.author_id

    def to_dict(self):
        return {
            "id": self.id,
            "author_id": self.author_id,
            "name": self.name,
            "location": self.location,
            "hosting_capacity": self.hosting_capacity,
            "contact_information": self.contact_information,
            "cost_level": self.cost_level,
            "notes": self.notes,
            "image_url": self.image_url,
            "source_submission_id": self.source_submission_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class VenueSubmission(ReviewFields, db.Model):
    __tablename__ = 'venue_submissions'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    hosting_capacity = db.Column(db.Integer, nullable=False)
    contact_information = db.Column(db.String(500), nullable=False)
    cost_level = db.Column(db.String(10), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "location": self.location,
            "hosting_capacity": self.hosting_capacity,
            "contact_information": self.contact_information,
            "cost_level": self.cost_level,
            "notes": self.notes,
            "image_url": self.image_url,
        }
        data.update(self.review_dict())
        return data


class FacilitatorApplication(ReviewFields, db.Model):
    __tablename__ = 'facilitator_applications'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    experience_description = db.Column(db.Text, nullable=False)
    title = db.Column(db.String(200), nullable=True)
    public_bio = db.Column(db.Text, nullable=True)
    approach = db.Column(db.Text, nullable=True)
    years_experience = db.Column(db.Integer, nullable=True)
    certifications = db.Column(db.Text, nullable=True)
    work_types = db.Column(db.JSON, nullable=True)
    preferred_practice_types = db.Column(db.JSON, nullable=True)
    languages = db.Column(db.JSON, nullable=True)
    availability = db.Column(db.Text, nullable=True)
    contact_references = db.Column(db.Text, nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    def to_dict(self):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "experience_description": self.experience_description,
            "title": self.title,
            "public_bio": self.public_bio,
            "approach": self.approach,
            "years_experience": self.years_experience,
            "certifications": self.certifications,
            "work_types": self.work_types or [],
            "preferred_practice_types": self.preferred_practice_types or [],
            "languages": self.languages or [],
            "availability": self.availability,
            "contact_references": self.contact_references,
            "contact_email": self.contact_email,
            "website": self.website,
        }
        data.update(self.review_dict())
        return data
