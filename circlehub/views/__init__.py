from flask import request


def payload() -> dict:
    """JSON body, falling back to submitted form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    form = {}
    for key in request.form:
        values = request.form.getlist(key)
        form[key] = values if len(values) > 1 else values[0]
    return form


def flag(value) -> bool:
    return value in [True, "True", "true", "1", 1, "on", "yes"]


def register_blueprints(app):
    from . import admin, auth, events, facilitators, media, pages, profile, resources, venues

    for module in (pages, auth, events, facilitators, resources, venues, profile, admin, media):
        app.register_blueprint(module.bp)
