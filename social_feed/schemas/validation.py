from marshmallow import ValidationError

from social_feed.errors import ValidationFailed


def field_errors(messages):
    """Flatten marshmallow's {field: [msg, ...]} into a list of field errors."""
    errors = []
    for field, field_messages in sorted(messages.items()):
        if isinstance(field_messages, dict):
            field_messages = [
                msg for nested in field_messages.values() for msg in nested
            ]
        for message in field_messages:
            errors.append({"field": field, "message": message})
    return errors


def load_or_fail(schema, data):
    try:
        return schema.load(data)
    except ValidationError as e:
        raise ValidationFailed(data=field_errors(e.messages)) from e
