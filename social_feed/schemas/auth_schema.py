from marshmallow import EXCLUDE, pre_load, validate

from social_feed.extensions.extensions import ma


class SignupSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    email = ma.Email(required=True, error_messages={"invalid": "Please enter a valid email."})
    password = ma.String(required=True, validate=validate.Length(min=5))
    name = ma.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        data = dict(data)
        for key in ("password", "name"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].strip().lower()
        return data


class StatusSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    status = ma.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def strip_status(self, data, **kwargs):
        data = dict(data)
        if isinstance(data.get("status"), str):
            data["status"] = data["status"].strip()
        return data
