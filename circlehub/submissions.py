"""The three things users can submit for admin review."""
from sqlalchemy import update

from .database import db
from .errors import Conflict, NotFound, PermissionDenied
from .models import (
    FacilitatorApplication,
    Profile,
    Resource,
    ResourceSubmission,
    Venue,
    VenueSubmission,
)
from .validation import clean_application, clean_resource, clean_venue
from .workflow import PENDING, SubmissionDomain

RESOURCE_FIELDS = ("title", "type", "category", "description", "content", "url", "tags", "image_url")
VENUE_FIELDS = ("name", "location", "hosting_capacity", "contact_information", "cost_level", "notes", "image_url")


def _make_resource(values: dict, author_id: str, author_name: str) -> Resource:
    values = dict(values)
    # Articles carry content, links carry a url, never both
    if values.get("type") == "article":
        values["url"] = None
    else:
        values["content"] = None
    return Resource(author_id=author_id, author_name=author_name or "Anonymous", **values)


def _make_venue(values: dict, author_id: str, author_name: str) -> Venue:
    return Venue(author_id=author_id, **values)


def _check_applicant(profile: Profile):
    if profile.role != "user":
        raise PermissionDenied("Only community members without a facilitator role can apply.")
    pending = FacilitatorApplication.query.filter_by(user_id=profile.user_id, status=PENDING).first()
    if pending:
        raise Conflict("You already have an application awaiting review.")


def _promote_applicant(application: FacilitatorApplication):
    # Role only; the application's profile details are for the admin to read
    promoted = db.session.execute(
        update(Profile)
        .where(Profile.user_id == application.user_id)
        .values(role="facilitator")
    ).rowcount
    if not promoted:
        raise NotFound("Applicant profile not found.")


RESOURCES = SubmissionDomain(
    name="resources",
    label="Resource",
    submission_model=ResourceSubmission,
    clean=clean_resource,
    make_published=_make_resource,
    published_model=Resource,
    published_fields=RESOURCE_FIELDS,
)

VENUES = SubmissionDomain(
    name="venues",
    label="Venue",
    submission_model=VenueSubmission,
    clean=clean_venue,
    make_published=_make_venue,
    published_model=Venue,
    published_fields=VENUE_FIELDS,
)

FACILITATOR_APPLICATIONS = SubmissionDomain(
    name="facilitator_applications",
    label="Facilitator application",
    submission_model=FacilitatorApplication,
    clean=clean_application,
    on_approve=_promote_applicant,
    check_submitter=_check_applicant,
)

DOMAINS = {domain.name: domain for domain in (RESOURCES, VENUES, FACILITATOR_APPLICATIONS)}


def get_domain(name: str) -> SubmissionDomain:
    domain = DOMAINS.get(name)
    if domain is None:
        raise NotFound(f"Unknown submission type: {name}")
    return domain
