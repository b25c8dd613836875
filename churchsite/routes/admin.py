"""
Admin Routes - content management for paired collections, singleton pages,
prayer requests and site settings
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort, current_app
from flask_login import login_required
import structlog

from churchsite.constants import COLLECTIONS, DOCUMENTS, LIVE_STREAM_FIELDS, PRAYERS_KEY, TRANSLATED_LOCALE
from churchsite.locale_sync import ACTION_CREATE, ACTION_DELETE, ACTION_UPDATE, LocaleKey, find_record
from churchsite.uploads import save_upload
from churchsite.utils import EPOCH, generate_record_id, parse_iso_datetime

logger = structlog.get_logger('admin')

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def collection_spec(name):
    spec = COLLECTIONS.get(name)
    if spec is None:
        abort(404)
    return spec


def document_spec(name):
    spec = DOCUMENTS.get(name)
    if spec is None:
        abort(404)
    return spec


def build_pair(spec, form, files):
    """
    Split a submitted form into (en, ta) records.

    Text fields come as ``field`` / ``field_ta``; shared fields are copied
    into both records. An upload replaces its field only when a file is sent.
    """
    shared = {}
    for field in spec["shared"]:
        value = form.get(field)
        if value is not None:
            shared[field] = value

    upload = spec.get("upload")
    if upload:
        path = save_upload(files.get(upload["field"]), current_app.config["UPLOAD_DIR"], upload["category"])
        if path:
            shared[upload["field"]] = path
        elif not shared.get(upload["field"]):
            shared.pop(upload["field"], None)

    en = {field: form.get(field, "") for field in spec["text"]}
    ta = {field: form.get(f"{field}_{TRANSLATED_LOCALE}", "") for field in spec["text"]}
    en.update(shared)
    ta.update(shared)
    return en, ta


def report_save(ok, what):
    if not ok:
        flash(f"{what} was saved locally but the remote store did not accept it.", "warning")


@admin_bp.route("/")
def index():
    return redirect(url_for("admin.dashboard"))


@admin_bp.route("/dashboard")
@login_required
def dashboard():
    sync = current_app.locale_sync
    counts = {
        "prayers": len(sync.load(PRAYERS_KEY)),
        "events": len(sync.load("events")),
        "sermons": len(sync.load("sermons")),
    }
    return render_template(
        "admin/dashboard.html", title="Admin Dashboard", counts=counts, collections=COLLECTIONS, documents=DOCUMENTS
    )


# --- PAIRED COLLECTIONS ---


@admin_bp.route("/<collection>")
@login_required
def list_records(collection):
    spec = collection_spec(collection)
    sync = current_app.locale_sync
    records = sync.load(collection)
    translated_ids = {str(r.get("id")) for r in sync.load(collection, TRANSLATED_LOCALE) if isinstance(r, dict)}
    return render_template(
        "admin/collection.html",
        title=f"Manage {spec['title']}",
        collection=collection,
        spec=spec,
        records=[r for r in records if isinstance(r, dict)],
        translated_ids=translated_ids,
    )


@admin_bp.route("/<collection>/new")
@login_required
def new_record(collection):
    spec = collection_spec(collection)
    return render_template(
        "admin/form.html",
        title=f"Add {spec['title']}",
        spec=spec,
        action=url_for("admin.create_record", collection=collection),
        en={},
        ta={},
    )


@admin_bp.route("/<collection>", methods=["POST"])
@login_required
def create_record(collection):
    spec = collection_spec(collection)
    en, ta = build_pair(spec, request.form, request.files)

    upload = spec.get("upload")
    if upload and upload["field"] not in en:
        en[upload["field"]] = ta[upload["field"]] = upload["placeholder"]

    record_id = generate_record_id()
    en["id"] = ta["id"] = record_id
    ok = current_app.locale_sync.apply(collection, ACTION_CREATE, {"en": en, "ta": ta})
    logger.info(f"Created {collection} record {record_id}")
    report_save(ok, spec["title"])
    return redirect(url_for("admin.list_records", collection=collection))


@admin_bp.route("/<collection>/<int:record_id>/edit")
@login_required
def edit_record(collection, record_id):
    spec = collection_spec(collection)
    sync = current_app.locale_sync
    en = find_record(sync.load(collection), record_id)
    if en is None:
        return redirect(url_for("admin.list_records", collection=collection))
    ta = find_record(sync.load(collection, TRANSLATED_LOCALE), record_id) or {}
    return render_template(
        "admin/form.html",
        title=f"Edit {spec['title']}",
        spec=spec,
        action=url_for("admin.update_record", collection=collection, record_id=record_id),
        en=en,
        ta=ta,
    )


@admin_bp.route("/<collection>/<int:record_id>", methods=["POST", "PUT"])
@login_required
def update_record(collection, record_id):
    spec = collection_spec(collection)
    en, ta = build_pair(spec, request.form, request.files)
    ok = current_app.locale_sync.apply(collection, ACTION_UPDATE, {"en": en, "ta": ta}, record_id)
    report_save(ok, spec["title"])
    return redirect(url_for("admin.list_records", collection=collection))


@admin_bp.route("/<collection>/<int:record_id>/delete", methods=["POST", "DELETE"])
@login_required
def delete_record(collection, record_id):
    spec = collection_spec(collection)
    ok = current_app.locale_sync.apply(collection, ACTION_DELETE, record_id=record_id)
    logger.info(f"Deleted {collection} record {record_id}")
    report_save(ok, spec["title"])
    return redirect(url_for("admin.list_records", collection=collection))


# --- SINGLETON PAGES ---


@admin_bp.route("/pages/<name>", methods=["GET", "POST"])
@login_required
def edit_document(name):
    spec = document_spec(name)
    store = current_app.content_store
    canonical_key, translated_key = LocaleKey.pair(name)

    if request.method == "POST":
        en, ta = build_pair(spec, request.form, request.files)
        ok = current_app.locale_sync.save_document_pair(name, en, ta)
        report_save(ok, spec["title"])
        # Show the public page with the changes
        return redirect(url_for(f"public.{name}"))

    en = store.get(canonical_key.storage_key, {})
    ta = store.get(translated_key.storage_key, {})
    return render_template(
        "admin/form.html",
        title=f"Edit {spec['title']}",
        spec=spec,
        action=url_for("admin.edit_document", name=name),
        en=en if isinstance(en, dict) else {},
        ta=ta if isinstance(ta, dict) else {},
    )


# --- PRAYER REQUESTS ---


@admin_bp.route("/prayers")
@login_required
def prayers():
    records = [p for p in current_app.locale_sync.load(PRAYERS_KEY) if isinstance(p, dict)]
    records.sort(key=lambda p: parse_iso_datetime(p.get("date")) or EPOCH, reverse=True)
    return render_template("admin/prayers.html", title="Prayer Requests", prayers=records)


@admin_bp.route("/prayers/<int:record_id>/delete", methods=["POST", "DELETE"])
@login_required
def delete_prayer(record_id):
    ok = current_app.locale_sync.apply(PRAYERS_KEY, ACTION_DELETE, record_id=record_id)
    report_save(ok, "Prayer request")
    return redirect(url_for("admin.prayers"))


# --- SITE SETTINGS ---


@admin_bp.route("/settings", methods=["GET", "POST"])
@login_required
def site_settings():
    store = current_app.admin_settings
    settings = store.get_settings()

    if request.method == "POST":
        settings["liveStreamEnabled"] = request.form.get("liveStreamEnabled") == "on"
        for field in LIVE_STREAM_FIELDS[1:]:
            settings[field] = request.form.get(field, "")

        new_username = request.form.get("username", "").strip()
        new_password = request.form.get("password", "")
        if new_username:
            settings["username"] = new_username
        if new_password:
            settings["password"] = new_password

        if store.save_settings(settings):
            flash("Settings saved.", "success")
        else:
            flash("Settings could not be saved: the admin settings store is unavailable.", "danger")
        return redirect(url_for("admin.site_settings"))

    return render_template("admin/settings.html", title="Site Settings", settings=settings)
