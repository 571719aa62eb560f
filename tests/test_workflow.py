"""
Tests for the shared submission workflow.

Covers:
1. Submissions start pending and move exactly once
2. Approval publishes in the same transaction, or not at all
3. Facilitator applications change the role and nothing else
4. Direct publishing is limited to facilitators and admins
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from circlehub import signals, workflow
from circlehub.database import db
from circlehub.errors import AlreadyReviewed, Conflict, NotFound, PermissionDenied, ValidationError
from circlehub.models import (
    FacilitatorApplication,
    Profile,
    Resource,
    ResourceSubmission,
    Venue,
    VenueSubmission,
)
from circlehub.submissions import FACILITATOR_APPLICATIONS, RESOURCES, VENUES, get_domain

ARTICLE = {
    "title": "Intro to Circling",
    "type": "article",
    "category": "Circling",
    "description": "A short primer",
    "content": "Circling is a relational practice...",
    "url": "https://example.com/ignored",
    "tags": ["circling", "basics"],
}

LINK = {
    "title": "Authentic Relating Games",
    "type": "link",
    "category": "Authentic Relating",
    "description": "A list of games",
    "content": "ignored for links",
    "url": "https://example.com/games",
    "tags": "games, practice",
}

VENUE = {
    "name": "Garden Studio",
    "location": "12 Elm Street",
    "hosting_capacity": 25,
    "contact_information": "studio@example.com",
    "cost_level": "Low",
}


# =============================================================================
# Submitting
# =============================================================================

def test_submission_starts_pending(make_user):
    """A user's resource lands in the review queue, not the public table."""
    user = make_user()
    submission = workflow.submit(RESOURCES, ARTICLE, user.id)

    assert submission.status == "pending"
    assert submission.submitted_at is not None
    assert submission.reviewed_at is None
    assert ResourceSubmission.query.count() == 1
    assert Resource.query.count() == 0


def test_submit_rejects_invalid_payload(make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        workflow.submit(RESOURCES, dict(ARTICLE, tags=[]), user.id)
    with pytest.raises(ValidationError):
        workflow.submit(VENUES, dict(VENUE, hosting_capacity=0), user.id)
    assert ResourceSubmission.query.count() == 0
    assert VenueSubmission.query.count() == 0


def test_submit_emits_signal(app, make_user):
    user = make_user()
    received = []

    def receiver(sender, domain, submission, **extra):
        received.append((domain, submission["id"]))

    with signals.submission_created.connected_to(receiver, sender=app):
        submission = workflow.submit(VENUES, VENUE, user.id)

    assert received == [("venues", submission.id)]


def test_unknown_domain():
    with pytest.raises(NotFound):
        get_domain("bookings")


# =============================================================================
# Approving and rejecting
# =============================================================================

def test_approve_article_copies_content_only(make_user):
    """Approving an article publishes one row with content and no url."""
    user = make_user(full_name="Maya Writer")
    admin = make_user("admin")
    submission = workflow.submit(RESOURCES, ARTICLE, user.id)

    approved, published = workflow.approve(RESOURCES, submission.id, admin.id)

    assert approved.status == "approved"
    assert approved.reviewed_by == admin.id
    assert approved.reviewed_at is not None
    assert Resource.query.count() == 1
    assert published.content == ARTICLE["content"]
    assert published.url is None
    assert published.author_id == user.id
    assert published.author_name == "Maya Writer"
    assert published.source_submission_id == submission.id


def test_approve_link_copies_url_only(make_user):
    user = make_user()
    admin = make_user("admin")
    submission = workflow.submit(RESOURCES, LINK, user.id)

    _, published = workflow.approve(RESOURCES, submission.id, admin.id)

    assert published.url == "https://example.com/games"
    assert published.content is None
    assert published.tags == ["games", "practice"]


def test_status_moves_only_once(make_user):
    """A reviewed submission can be neither re-approved nor rejected."""
    user = make_user()
    admin = make_user("admin")
    submission = workflow.submit(RESOURCES, ARTICLE, user.id)
    workflow.approve(RESOURCES, submission.id, admin.id)

    with pytest.raises(AlreadyReviewed):
        workflow.approve(RESOURCES, submission.id, admin.id)
    with pytest.raises(AlreadyReviewed):
        workflow.reject(RESOURCES, submission.id, admin.id, "too late")

    assert db.session.get(ResourceSubmission, submission.id).status == "approved"
    assert Resource.query.count() == 1


def test_reject_venue_with_notes(make_user):
    """Rejecting records the notes and publishes nothing."""
    user = make_user()
    admin = make_user("admin")
    submission = workflow.submit(VENUES, VENUE, user.id)

    rejected = workflow.reject(VENUES, submission.id, admin.id, "needs more detail")

    assert rejected.status == "rejected"
    assert rejected.admin_notes == "needs more detail"
    assert rejected.reviewed_at is not None
    assert Venue.query.count() == 0


def test_failed_publish_leaves_submission_pending(make_user):
    """If publishing fails the status change is rolled back with it."""
    user = make_user()
    admin = make_user("admin")
    submission = workflow.submit(VENUES, VENUE, user.id)

    def broken_publish(values, author_id, author_name):
        raise RuntimeError("storage unavailable")

    broken = replace(VENUES, make_published=broken_publish)
    with pytest.raises(RuntimeError):
        workflow.approve(broken, submission.id, admin.id)

    reloaded = db.session.get(VenueSubmission, submission.id)
    assert reloaded.status == "pending"
    assert reloaded.reviewed_at is None
    assert Venue.query.count() == 0

    # A later attempt with a working publisher succeeds
    _, venue = workflow.approve(VENUES, submission.id, admin.id)
    assert venue.source_submission_id == submission.id
    assert venue.cost_level == "low"


def test_review_dispatches_on_action(make_user):
    user = make_user()
    admin = make_user("admin")
    submission = workflow.submit(VENUES, VENUE, user.id)

    with pytest.raises(ValidationError):
        workflow.review(VENUES, submission.id, "archive", admin.id)

    reviewed = workflow.review(VENUES, submission.id, "approve", admin.id)
    assert reviewed.status == "approved"
    assert Venue.query.count() == 1


def test_review_of_missing_submission(make_user):
    admin = make_user("admin")
    with pytest.raises(NotFound):
        workflow.approve(RESOURCES, "does-not-exist", admin.id)


# =============================================================================
# Facilitator applications
# =============================================================================

def test_approving_application_changes_role_only(make_user):
    user = make_user(full_name="Sam Applicant", phone="555-0100", bio="Hello", title="Coach")
    admin = make_user("admin")
    before = Profile.query.filter_by(user_id=user.id).first().to_dict()

    application = workflow.submit(FACILITATOR_APPLICATIONS, {
        "experience_description": "Five years of circling",
        "title": "Lead Facilitator",
        "languages": ["English", "Spanish"],
    }, user.id)
    _, published = workflow.approve(FACILITATOR_APPLICATIONS, application.id, admin.id)

    assert published is None
    after = Profile.query.filter_by(user_id=user.id).first().to_dict()
    assert after["role"] == "facilitator"
    for key in ("full_name", "email", "phone", "bio", "title", "public_bio",
                "languages", "work_types", "is_public_profile", "image_url"):
        assert after[key] == before[key], key


def test_only_plain_users_may_apply(make_user):
    facilitator = make_user("facilitator")
    with pytest.raises(PermissionDenied):
        workflow.submit(FACILITATOR_APPLICATIONS, {"experience_description": "lots"}, facilitator.id)


def test_one_pending_application_at_a_time(make_user):
    user = make_user()
    workflow.submit(FACILITATOR_APPLICATIONS, {"experience_description": "some"}, user.id)
    with pytest.raises(Conflict):
        workflow.submit(FACILITATOR_APPLICATIONS, {"experience_description": "more"}, user.id)
    assert FacilitatorApplication.query.count() == 1


def test_application_requires_experience(make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        workflow.submit(FACILITATOR_APPLICATIONS, {"title": "Coach"}, user.id)


# =============================================================================
# Publishing directly
# =============================================================================

@pytest.mark.parametrize("role", ["facilitator", "admin"])
def test_privileged_roles_publish_directly(make_user, role):
    author = make_user(role, full_name="Jo Guide")
    resource = workflow.publish_directly(RESOURCES, LINK, author.id)

    assert resource.author_name == "Jo Guide"
    assert resource.source_submission_id is None
    assert Resource.query.count() == 1
    assert ResourceSubmission.query.count() == 0


def test_user_cannot_publish_directly(make_user):
    user = make_user()
    with pytest.raises(PermissionDenied):
        workflow.publish_directly(RESOURCES, ARTICLE, user.id)
    assert Resource.query.count() == 0


def test_applications_have_no_direct_publish(make_user):
    admin = make_user("admin")
    with pytest.raises(ValidationError):
        workflow.publish_directly(FACILITATOR_APPLICATIONS, {"experience_description": "x"}, admin.id)


# =============================================================================
# Listing
# =============================================================================

def test_list_submissions_newest_first_with_submitter(make_user):
    alice = make_user(full_name="Alice")
    bob = make_user(full_name="Bob")
    older = workflow.submit(VENUES, VENUE, alice.id)
    newer = workflow.submit(VENUES, dict(VENUE, name="Loft"), bob.id)
    older.submitted_at = newer.submitted_at - timedelta(hours=1)
    db.session.commit()

    items = workflow.list_pending(VENUES)

    assert [i["id"] for i in items] == [newer.id, older.id]
    assert items[0]["submitter"] == {"full_name": "Bob", "email": bob.email}


def test_list_submissions_filters_by_status(make_user):
    user = make_user()
    admin = make_user("admin")
    first = workflow.submit(VENUES, VENUE, user.id)
    workflow.submit(VENUES, dict(VENUE, name="Loft"), user.id)
    workflow.reject(VENUES, first.id, admin.id)

    assert len(workflow.list_submissions(VENUES)) == 1
    assert [i["id"] for i in workflow.list_submissions(VENUES, "rejected")] == [first.id]
    assert len(workflow.list_submissions(VENUES, None)) == 2


def test_list_for_user_groups_by_domain(make_user):
    user = make_user()
    other = make_user()
    workflow.submit(RESOURCES, ARTICLE, user.id)
    workflow.submit(VENUES, VENUE, other.id)

    mine = workflow.list_for_user([RESOURCES, VENUES, FACILITATOR_APPLICATIONS], user.id)

    assert len(mine["resources"]) == 1
    assert mine["venues"] == []
    assert mine["facilitator_applications"] == []
