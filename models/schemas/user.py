from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=validate.Length(max=100))
    f_name = fields.String(allow_none=True, validate=validate.Length(max=50))
    l_name = fields.String(allow_none=True, validate=validate.Length(max=50))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        if isinstance(data, dict) and isinstance(data.get("username"), str):
            data["username"] = data["username"].strip()
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if "@" in value or "." in value:
            raise ValidationError("Username must not contain email-like characters (@ or .).")

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    username = fields.String()
    email = fields.String()
    f_name = fields.String(allow_none=True)
    l_name = fields.String(allow_none=True)
    is_active = fields.Boolean()
    created_at = fields.DateTime()
    last_login_at = fields.DateTime(allow_none=True)
