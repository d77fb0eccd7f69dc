"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/revoke      (bearer)
- POST /auth/revoke-all  (bearer)
- GET  /auth/me          (bearer)
- GET  /auth/sessions    (bearer)

Views only parse input, call AuthService and shape the response. Errors
raised by the service are rendered by api.errors.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models.schemas.auth import (
    AuthResponseSchema,
    LoginSchema,
    RefreshTokenSchema,
    RevokeTokenSchema,
    SessionOutSchema,
)
from models.schemas.user import UserCreateSchema, UserOutSchema
from utils.decorators import get_auth_service, jwt_required

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
revoke_schema = RevokeTokenSchema()
auth_response_schema = AuthResponseSchema()
session_list_schema = SessionOutSchema(many=True)


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            password: { type: string }
            f_name: { type: string }
            l_name: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Invalid input
      409:
        description: Username or email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    user = get_auth_service().register(
        username=data["username"],
        email=data["email"],
        password=data["password"],
        f_name=data.get("f_name"),
        l_name=data.get("l_name"),
    )
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username_or_email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    result = get_auth_service().login(data["username_or_email"], data["password"])
    return jsonify(auth_response_schema.dump(result)), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access and refresh token (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)
    result = get_auth_service().refresh(data["refresh_token"])
    return jsonify(auth_response_schema.dump(result)), 200


@bp.post("/revoke")
@jwt_required()
def revoke():
    """
    Revoke one of the caller's refresh tokens
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
    responses:
      204:
        description: Revoked
      400:
        description: Empty token
      401:
        description: Unauthorized
      404:
        description: Token not found or already revoked
    """
    payload = request.get_json(silent=True) or {}
    data = revoke_schema.load(payload)
    get_auth_service().revoke(data["token"], user_id=g.current_user_id)
    return ("", 204)


@bp.post("/revoke-all")
@jwt_required()
def revoke_all():
    """
    Revoke every refresh token of the caller
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: Revoked
      401:
        description: Unauthorized
    """
    get_auth_service().revoke_all(g.current_user_id)
    return ("", 204)


@bp.get("/me")
@jwt_required()
def me():
    """
    Current user profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    storage = get_auth_service().storage
    user = storage.find_user_by_id(g.current_user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.get("/sessions")
@jwt_required()
def sessions():
    """
    Active refresh tokens of the caller (secrets are never returned)
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    active = get_auth_service().active_sessions(g.current_user_id)
    return jsonify({"data": session_list_schema.dump(active)}), 200
