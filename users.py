"""
User registration, login and profile routes
"""
from flask import Blueprint, current_app, jsonify, request

from auth import get_current_user, hash_password, issue_token, login_required, verify_password
from database import get_context
from errors import AuthorizationError
from models import ROLE_USER
from schemas import LoginRequest, RegisterRequest, parse_model

users_bp = Blueprint("users", __name__)


def _identity_with_token(user):
    body = user.to_dict()
    body["token"] = issue_token(user)
    return body


@users_bp.route("/register", methods=["POST"])
def register():
    data = parse_model(RegisterRequest, request.get_json(silent=True), message="All fields are required")
    store = get_context().store

    user = store.create_user(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role or ROLE_USER,
    )
    current_app.logger.info("User registered: %s (id %s)", user.email, user.id)
    return jsonify(_identity_with_token(user)), 201


@users_bp.route("/login", methods=["POST"])
def login():
    data = parse_model(LoginRequest, request.get_json(silent=True), message="Email and password are required")
    user = get_context().store.find_user_by_email(data.email)

    if not user or not verify_password(user.password, data.password):
        raise AuthorizationError("Invalid email or password")

    current_app.logger.info("User logged in: %s", user.email)
    return jsonify(_identity_with_token(user)), 200


@users_bp.route("/profile", methods=["GET"])
@login_required
def profile():
    return jsonify(get_current_user().to_dict()), 200
