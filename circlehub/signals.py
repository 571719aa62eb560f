"""Application signals.

Receivers are connected in ``create_app``; senders pass the Flask app so a
receiver can reach its config and logger.
"""
from blinker import Namespace

_signals = Namespace()

# kwargs: user_id, role
user_signed_in = _signals.signal("user-signed-in")
# kwargs: user_id
user_signed_out = _signals.signal("user-signed-out")
# kwargs: profile (dict snapshot), changed (list of field names)
profile_updated = _signals.signal("profile-updated")
# kwargs: domain (name), submission (dict snapshot)
submission_created = _signals.signal("submission-created")
# kwargs: domain (name), submission (dict snapshot), action ("approve" / "reject")
submission_reviewed = _signals.signal("submission-reviewed")
