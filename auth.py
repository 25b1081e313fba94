"""
Bearer token authentication
Issues JWTs at login and resolves them back to a user on every protected request
"""
import logging

from flask import jsonify
from flask_jwt_extended import JWTManager, create_access_token, current_user, jwt_required
from werkzeug.security import generate_password_hash, check_password_hash

from database import get_context

logger = logging.getLogger(__name__)

jwt = JWTManager()

LOGIN_REQUIRED_MSG = "Please login to continue."
INVALID_TOKEN_MSG = "Not authorized. Invalid or expired token."


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(pw_hash: str, password: str) -> bool:
    return check_password_hash(pw_hash, password)


def issue_token(user) -> str:
    """Signed token carrying the user's id, username and role"""
    return create_access_token(
        identity=str(user.id),
        additional_claims={"username": user.username, "role": user.role},
    )


def login_required(fn):
    """Reject the request unless it carries a valid token for an existing user"""
    return jwt_required()(fn)


def get_current_user():
    return current_user


@jwt.user_lookup_loader
def load_user(jwt_header, jwt_data):
    try:
        user_id = int(jwt_data["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return get_context().store.get_user(user_id)


@jwt.user_lookup_error_loader
def user_not_found(jwt_header, jwt_data):
    return jsonify({"message": "User not found."}), 404


@jwt.unauthorized_loader
def missing_token(reason):
    logger.debug("Missing or malformed Authorization header: %s", reason)
    return jsonify({"message": LOGIN_REQUIRED_MSG}), 401


@jwt.invalid_token_loader
def invalid_token(reason):
    logger.warning("Token validation error: %s", reason)
    return jsonify({"message": INVALID_TOKEN_MSG}), 401


@jwt.expired_token_loader
def expired_token(jwt_header, jwt_data):
    return jsonify({"message": INVALID_TOKEN_MSG}), 401
