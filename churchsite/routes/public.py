"""
Public Routes - pages of the public site, prayer wall and language switcher
"""

from flask import Blueprint, render_template, request, redirect, session, current_app, send_from_directory, make_response
import structlog

from churchsite.api_responses import success_response, not_found_response, handle_api_errors
from churchsite.constants import (
    COLLECTIONS,
    DEFAULT_LOCALE,
    DOCUMENTS,
    LIVE_STREAM_FIELDS,
    PRAYERS_KEY,
    SUPPORTED_LOCALES,
)
from churchsite.i18n import LOCALE_COOKIE
from churchsite.locale_sync import (
    ACTION_CREATE,
    ACTION_UPDATE,
    LocaleKey,
    find_record,
    localize_collection,
    localize_document,
)
from churchsite.utils import EPOCH, generate_record_id, now_utc, parse_iso_datetime

logger = structlog.get_logger('public')

public_bp = Blueprint("public", __name__)


def current_locale():
    return current_app.i18n.get_locale()


def localized_collection(base):
    """Canonical records overlaid with the visitor's locale, if not English"""
    store = current_app.content_store
    canonical_key, translated_key = LocaleKey.pair(base)
    canonical = store.get(canonical_key.storage_key, [])
    if current_locale() == DEFAULT_LOCALE:
        return localize_collection(canonical, None)
    text_fields = COLLECTIONS.get(base, {}).get("text")
    return localize_collection(canonical, store.get(translated_key.storage_key, []), text_fields)


def localized_document(base):
    store = current_app.content_store
    canonical_key, translated_key = LocaleKey.pair(base)
    canonical = store.get(canonical_key.storage_key, {})
    if current_locale() == DEFAULT_LOCALE:
        return localize_document(canonical, None)
    text_fields = DOCUMENTS.get(base, {}).get("text")
    return localize_document(canonical, store.get(translated_key.storage_key, {}), text_fields)


def page_title(key):
    return current_app.i18n.t(f"page.{key}")


@public_bp.route("/")
def home():
    home_doc = localized_document("home")
    limit = current_app.config["SITE_SETTINGS"].get("site", {}).get("home_events", 3)
    events = localized_collection("events")[:limit]
    admin_settings = current_app.admin_settings.get_settings()
    live_stream = {field: admin_settings.get(field) for field in LIVE_STREAM_FIELDS}
    return render_template(
        "public/home.html", title=page_title("home"), home=home_doc, events=events, live_stream=live_stream
    )


@public_bp.route("/about")
def about():
    return render_template(
        "public/about.html",
        title=page_title("about"),
        about=localized_document("about"),
        team=localized_collection("team"),
    )


@public_bp.route("/services")
def services():
    return render_template("public/collection.html", title=page_title("services"), records=localized_collection("services"))


@public_bp.route("/events")
def events():
    return render_template("public/collection.html", title=page_title("events"), records=localized_collection("events"))


@public_bp.route("/sermons")
def sermons():
    return render_template("public/collection.html", title=page_title("sermons"), records=localized_collection("sermons"))


@public_bp.route("/gallery")
def gallery():
    photos = localized_collection("gallery")
    categories = localized_collection("categories")
    selected = request.args.get("category")
    if selected:
        photos = [p for p in photos if str(p.get("category")) == selected]
    return render_template(
        "public/gallery.html", title=page_title("gallery"), gallery=photos, categories=categories, selected=selected
    )


@public_bp.route("/contact")
def contact():
    return render_template("public/document.html", title=page_title("contact"), document=localized_document("contact"))


@public_bp.route("/donate")
def donate():
    return render_template("public/document.html", title=page_title("donate"), document=localized_document("donate"))


@public_bp.route("/prayers")
def prayers():
    try:
        wall = [p for p in localized_collection(PRAYERS_KEY) if not p.get("confidential")]
        # Newest first; undated prayers sink to the bottom
        wall.sort(key=lambda p: parse_iso_datetime(p.get("date")) or EPOCH, reverse=True)
        return render_template("public/prayers.html", title=page_title("prayers"), prayers=wall)
    except Exception as e:
        logger.error(f"Error in /prayers: {e}", exc_info=True)
        return f"Error: {e}", 500


@public_bp.route("/prayer", methods=["POST"])
def submit_prayer():
    record = {
        "id": generate_record_id(),
        "name": request.form.get("name", ""),
        "message": request.form.get("message", ""),
        "confidential": request.form.get("confidential") == "on",
        "date": now_utc().isoformat(),
        "prayedCount": 0,
    }
    # Visitor text is not translated; both locales hold the same record
    current_app.locale_sync.apply(PRAYERS_KEY, ACTION_CREATE, {"en": record, "ta": dict(record)})
    return redirect("/prayers")


@public_bp.route("/api/pray/<int:prayer_id>", methods=["POST"])
@handle_api_errors
def pray(prayer_id):
    sync = current_app.locale_sync
    prayer = find_record(sync.load(PRAYERS_KEY), prayer_id)
    if prayer is None:
        return not_found_response("Prayer", prayer_id)

    count = prayer.get("prayedCount") or 0
    if request.args.get("action") == "undo":
        count = max(count - 1, 0)
    else:
        count += 1

    fields = {"prayedCount": count}
    sync.apply(PRAYERS_KEY, ACTION_UPDATE, {"en": fields, "ta": dict(fields)}, prayer_id)
    return success_response(newCount=count)


@public_bp.route("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(current_app.config["UPLOAD_DIR"], filename)


@public_bp.route("/lang/<locale>")
def switch_language(locale):
    if locale not in SUPPORTED_LOCALES:
        return redirect("/")

    session["lang"] = locale

    referer = request.headers.get("Referer")
    target = referer if referer and "/lang/" not in referer else "/"
    response = make_response(redirect(target))
    response.set_cookie(LOCALE_COOKIE, locale, max_age=60 * 60 * 24 * 365, samesite="Lax")
    return response
