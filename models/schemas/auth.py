from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    username_or_email = fields.String(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=validate.Length(max=100))


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True)


class RevokeTokenSchema(Schema):
    token = fields.String(required=True)


class AuthResponseSchema(Schema):
    user_id = fields.String()
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.String()
    expires_in = fields.Integer()


class SessionOutSchema(Schema):
    """An active refresh token, without its secret."""
    id = fields.String()
    created_at = fields.DateTime()
    expires_at = fields.DateTime()
