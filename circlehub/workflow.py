"""Review workflow shared by every kind of user submission.

A submission row starts ``pending`` and moves exactly once, to
``approved`` or ``rejected``, by an admin action. Approving also publishes:
either a row in the domain's published table or some other side effect
(for facilitator applications, a role change). Both steps are applied in a
single transaction, so an approval is either fully visible or the
submission is still pending.

Domains are described by ``SubmissionDomain``; the concrete ones live in
``submissions.py``.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from flask import current_app
from sqlalchemy import select, update

from . import signals
from .database import db
from .errors import AlreadyReviewed, NotFound, PermissionDenied, ValidationError
from .models import Profile, utcnow
from .permissions import can_publish_directly

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
REVIEW_ACTIONS = {"approve": APPROVED, "reject": REJECTED}


@dataclass
class SubmissionDomain:
    name: str
    label: str
    submission_model: type
    clean: Callable[[dict], dict]
    # Builds the published row from (values, author_id, author_name); None when
    # approval has no published counterpart
    make_published: Optional[Callable[[dict, str, str], db.Model]] = None
    published_model: Optional[type] = None
    published_fields: tuple = ()
    # Extra approval side effect, run inside the approval transaction
    on_approve: Optional[Callable[[db.Model], None]] = None
    # Raises if the author may not submit right now
    check_submitter: Optional[Callable[[Profile], None]] = None

    @property
    def publishes(self) -> bool:
        return self.make_published is not None


def _author_profile(author_id: str) -> Profile:
    profile = Profile.query.filter_by(user_id=author_id).first()
    if profile is None:
        raise NotFound("Author profile not found.")
    return profile


def _emit(signal, domain: SubmissionDomain, submission, **extra):
    signal.send(current_app._get_current_object(), domain=domain.name,
                submission=submission.to_dict(), **extra)


def submit(domain: SubmissionDomain, payload: dict, author_id: str):
    """Queue a new submission for review."""
    profile = _author_profile(author_id)
    if domain.check_submitter is not None:
        domain.check_submitter(profile)
    values = domain.clean(payload or {})

    submission = domain.submission_model(user_id=author_id, status=PENDING,
                                         submitted_at=utcnow(), **values)
    db.session.add(submission)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("[REVIEW] New %s submission %s from %s", domain.name, submission.id, author_id)
    _emit(signals.submission_created, domain, submission)
    return submission


def publish_directly(domain: SubmissionDomain, payload: dict, author_id: str):
    """Skip the review queue; only facilitators and admins may do this."""
    if not domain.publishes:
        raise ValidationError(f"{domain.label} cannot be published directly.")
    profile = _author_profile(author_id)
    if not can_publish_directly(profile.role):
        raise PermissionDenied("Only facilitators and admins can publish directly.")
    values = domain.clean(payload or {})

    published = domain.make_published(values, author_id, profile.full_name)
    db.session.add(published)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info("[REVIEW] %s published %s %s directly", author_id, domain.name, published.id)
    return published


def list_submissions(domain: SubmissionDomain, status: Optional[str] = PENDING) -> List[dict]:
    """Submissions newest first, each with the submitter's name and email.

    ``status=None`` lists every submission regardless of state.
    """
    model = domain.submission_model
    query = (
        select(model, Profile.full_name, Profile.email)
        .outerjoin(Profile, Profile.user_id == model.user_id)
        .order_by(model.submitted_at.desc())
    )
    if status is not None:
        query = query.where(model.status == status)

    items = []
    for submission, full_name, email in db.session.execute(query).all():
        data = submission.to_dict()
        data["submitter"] = {"full_name": full_name, "email": email}
        items.append(data)
    return items


def list_pending(domain: SubmissionDomain) -> List[dict]:
    return list_submissions(domain, PENDING)


def _get_submission(domain: SubmissionDomain, submission_id: str):
    submission = db.session.get(domain.submission_model, submission_id)
    if submission is None:
        raise NotFound(f"{domain.label} submission not found.")
    return submission


def _publish(domain: SubmissionDomain, submission):
    values = {field: getattr(submission, field) for field in domain.published_fields}
    author = Profile.query.filter_by(user_id=submission.user_id).first()
    author_name = author.full_name if author and author.full_name else "Anonymous"
    published = domain.make_published(values, submission.user_id, author_name)
    published.source_submission_id = submission.id
    db.session.add(published)
    db.session.flush()
    return published


def _finish_review(domain: SubmissionDomain, submission_id: str, new_status: str,
                   reviewer_id: str, notes: Optional[str]):
    model = domain.submission_model
    submission = _get_submission(domain, submission_id)
    if submission.status != PENDING:
        raise AlreadyReviewed(f"This submission has already been {submission.status}.")

    published = None
    try:
        # Only a still-pending row is claimed; a concurrent reviewer gets 0 rows
        claimed = db.session.execute(
            update(model)
            .where(model.id == submission_id, model.status == PENDING)
            .values(status=new_status, reviewed_by=reviewer_id,
                    reviewed_at=utcnow(), admin_notes=notes)
        ).rowcount == 1
        if claimed and new_status == APPROVED:
            if domain.publishes:
                published = _publish(domain, submission)
            if domain.on_approve is not None:
                domain.on_approve(submission)
        if claimed:
            db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("[REVIEW] %s of %s %s rolled back: %s",
                                 new_status, domain.name, submission_id, e)
        raise

    if not claimed:
        db.session.rollback()
        raise AlreadyReviewed("This submission was already reviewed by another admin.")

    db.session.refresh(submission)
    current_app.logger.info("[REVIEW] %s %s %s by %s", domain.name, submission_id, new_status, reviewer_id)
    action = "approve" if new_status == APPROVED else "reject"
    _emit(signals.submission_reviewed, domain, submission, action=action)
    return submission, published


def approve(domain: SubmissionDomain, submission_id: str, reviewer_id: str, notes: Optional[str] = None):
    """Approve and publish; returns ``(submission, published_row_or_None)``."""
    return _finish_review(domain, submission_id, APPROVED, reviewer_id, notes)


def reject(domain: SubmissionDomain, submission_id: str, reviewer_id: str, notes: Optional[str] = None):
    submission, _ = _finish_review(domain, submission_id, REJECTED, reviewer_id, notes)
    return submission


def review(domain: SubmissionDomain, submission_id: str, action: str,
           reviewer_id: str, notes: Optional[str] = None):
    if action not in REVIEW_ACTIONS:
        raise ValidationError("Invalid action specified.")
    if action == "approve":
        submission, _ = approve(domain, submission_id, reviewer_id, notes)
        return submission
    return reject(domain, submission_id, reviewer_id, notes)


def list_for_user(domains, user_id: str) -> Dict[str, List[dict]]:
    """A user's own submissions per domain, newest first."""
    result = {}
    for domain in domains:
        model = domain.submission_model
        rows = model.query.filter_by(user_id=user_id).order_by(model.submitted_at.desc()).all()
        result[domain.name] = [row.to_dict() for row in rows]
    return result
