from flask import Blueprint, render_template, redirect, url_for, request, current_app
from flask_login import LoginManager, UserMixin, login_user, login_required, logout_user
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging

# Retrieve main logger
logger = logging.getLogger("main")

login_manager = LoginManager()
login_manager.login_view = "auth.login"

limiter = Limiter(key_func=get_remote_address)

auth_blueprint = Blueprint("auth", __name__, url_prefix="/admin")


class AdminUser(UserMixin):
    """The single site administrator. Credentials live in the admin settings bin."""

    def __init__(self, username):
        self.id = username
        self.username = username


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    if not user_id:
        return None
    return AdminUser(user_id)


@auth_blueprint.route("/login", methods=["GET", "POST"])
@limiter.limit("20 per minute", methods=["POST"])
def login():
    if request.method == "GET":
        return render_template("admin/login.html", title="Admin Login", error=None)

    username = request.form.get("username", "")
    password = request.form.get("password", "")

    # Plaintext comparison against the admin settings document
    if not current_app.admin_settings.check_credentials(username, password):
        logger.warning(f"Incorrect login for user {username}")
        return render_template("admin/login.html", title="Admin Login", error="Invalid Credentials"), 401

    logger.info(f"Successful login for user {username}")
    login_user(AdminUser(username))

    next_url = request.args.get("next", "")
    if next_url.startswith("/") and not next_url.startswith("//"):
        return redirect(next_url)
    return redirect(url_for("admin.dashboard"))


@auth_blueprint.route("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("auth.login"))
