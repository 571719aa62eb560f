"""Event signups.

A registration is active until ``cancelled_at`` is set; cancelled rows are
kept and simply stop counting. With ``ENFORCE_EVENT_CAPACITY`` on, the
seat check and the insert are one statement, so two people racing for the
last seat cannot both get it.
"""
from typing import Dict, Iterable, List

from flask import current_app
from sqlalchemy import func, insert, literal, select
from sqlalchemy.exc import IntegrityError

from .database import db
from .errors import AlreadyRegistered, EventFull, NotFound, PermissionDenied, ValidationError
from .models import Event, EventRegistration, Profile, new_id, utcnow


def _active():
    return EventRegistration.cancelled_at.is_(None)


def get_event(event_id: str) -> Event:
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found.")
    return event


def current_participants(event_id: str) -> int:
    return db.session.execute(
        select(func.count(EventRegistration.id))
        .where(EventRegistration.event_id == event_id, _active())
    ).scalar_one()


def participant_counts(event_ids: Iterable[str]) -> Dict[str, int]:
    event_ids = list(event_ids)
    counts = {event_id: 0 for event_id in event_ids}
    if not event_ids:
        return counts
    rows = db.session.execute(
        select(EventRegistration.event_id, func.count(EventRegistration.id))
        .where(EventRegistration.event_id.in_(event_ids), _active())
        .group_by(EventRegistration.event_id)
    ).all()
    counts.update({event_id: count for event_id, count in rows})
    return counts


def active_registration(event_id: str, user_id: str):
    return EventRegistration.query.filter(
        EventRegistration.event_id == event_id,
        EventRegistration.user_id == user_id,
        _active(),
    ).first()


def _insert_if_seat_free(event: Event, registration_id: str, user_id: str) -> bool:
    taken = (
        select(func.count(EventRegistration.id))
        .where(EventRegistration.event_id == event.id, _active())
        .correlate(None)
        .scalar_subquery()
    )
    row = select(
        literal(registration_id),
        literal(event.id),
        literal(user_id),
        literal(utcnow(), EventRegistration.__table__.c.registered_at.type),
    ).where(taken < event.max_participants)
    stmt = insert(EventRegistration.__table__).from_select(
        ["id", "event_id", "user_id", "registered_at"], row
    )
    return db.session.execute(stmt).rowcount == 1


def register(event_id: str, user_id: str) -> EventRegistration:
    event = get_event(event_id)
    if event.is_past:
        raise ValidationError("This event has already taken place.")
    if active_registration(event_id, user_id):
        raise AlreadyRegistered("You are already registered for this event.")

    registration_id = new_id()
    try:
        if current_app.config["ENFORCE_EVENT_CAPACITY"]:
            inserted = _insert_if_seat_free(event, registration_id, user_id)
        else:
            # Legacy behaviour: no seat check at write time
            db.session.add(EventRegistration(id=registration_id, event_id=event_id,
                                             user_id=user_id, registered_at=utcnow()))
            db.session.flush()
            inserted = True
        if inserted:
            db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AlreadyRegistered("You are already registered for this event.")
    except Exception:
        db.session.rollback()
        raise

    if not inserted:
        db.session.rollback()
        current_app.logger.info("[EVENTS] %s refused for %s: event full", user_id, event_id)
        raise EventFull("This event is full.")

    current_app.logger.info("[EVENTS] %s registered for %s", user_id, event_id)
    return db.session.get(EventRegistration, registration_id)


def cancel(registration_id: str, user_id: str) -> EventRegistration:
    registration = db.session.get(EventRegistration, registration_id)
    if registration is None:
        raise NotFound("Registration not found.")
    if registration.user_id != user_id:
        raise PermissionDenied("You can only cancel your own registrations.")
    if registration.cancelled_at is None:
        registration.cancelled_at = utcnow()
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        current_app.logger.info("[EVENTS] registration %s cancelled", registration_id)
    return registration


def list_participants(event_id: str) -> List[dict]:
    get_event(event_id)
    rows = db.session.execute(
        select(EventRegistration, Profile.full_name, Profile.email)
        .outerjoin(Profile, Profile.user_id == EventRegistration.user_id)
        .where(EventRegistration.event_id == event_id, _active())
        .order_by(EventRegistration.registered_at.asc())
    ).all()
    participants = []
    for registration, full_name, email in rows:
        data = registration.to_dict()
        data["full_name"] = full_name
        data["email"] = email
        participants.append(data)
    return participants


def list_for_user(user_id: str) -> List[dict]:
    """Active registrations with event details; upcoming first, then past."""
    rows = db.session.execute(
        select(EventRegistration, Event, Profile.full_name)
        .join(Event, Event.id == EventRegistration.event_id)
        .outerjoin(Profile, Profile.user_id == Event.facilitator_id)
        .where(EventRegistration.user_id == user_id, _active())
    ).all()

    items = []
    for registration, event, facilitator_name in rows:
        items.append({
            "registration_id": registration.id,
            "registered_at": registration.to_dict()["registered_at"],
            "event_id": event.id,
            "title": event.title,
            "date": event.date.isoformat(),
            "time": event.time,
            "location": event.location,
            "type": event.type,
            "facilitator_name": facilitator_name or "Unknown",
            "is_past": event.is_past,
        })
    upcoming = sorted((i for i in items if not i["is_past"]), key=lambda i: (i["date"], i["time"]))
    past = sorted((i for i in items if i["is_past"]), key=lambda i: (i["date"], i["time"]), reverse=True)
    return upcoming + past
