from marshmallow import EXCLUDE, pre_load, validate

from social_feed.extensions.extensions import ma
from social_feed.schemas.validation import load_or_fail


MIN_TEXT_LENGTH = 5


class CreatorSummarySchema(ma.Schema):
    id = ma.String()
    name = ma.String()


class PostResponseSchema(ma.Schema):
    id = ma.String()
    title = ma.String()
    content = ma.String()
    image_url = ma.String(data_key="imageUrl")
    creator_id = ma.String(data_key="creatorId")
    creator = ma.Nested(CreatorSummarySchema, allow_none=True)
    created_at = ma.DateTime(data_key="createdAt")
    updated_at = ma.DateTime(data_key="updatedAt")


class PostInputSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    title = ma.String(
        required=True,
        validate=validate.Length(min=MIN_TEXT_LENGTH),
    )
    content = ma.String(
        required=True,
        validate=validate.Length(min=MIN_TEXT_LENGTH),
    )

    @pre_load
    def strip_whitespace(self, data, **kwargs):
        return {
            key: value.strip() if isinstance(value, str) else value
            for key, value in data.items()
        }


post_schema = PostResponseSchema()
posts_schema = PostResponseSchema(many=True)
creator_schema = CreatorSummarySchema()


def validate_post_input(title, content):
    return load_or_fail(PostInputSchema(), {"title": title, "content": content})
