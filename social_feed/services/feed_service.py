import logging

from social_feed.errors import (
    Forbidden,
    MissingImage,
    NotFound,
    StoreError,
    ValidationFailed,
)
from social_feed.repositories import base as store
from social_feed.repositories import post_repository, user_repository
from social_feed.schemas.post_schema import (
    creator_schema,
    post_schema,
    posts_schema,
    validate_post_input,
)
from social_feed.services.broadcast_hub import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
)
from social_feed.services.image_store import ImageStorageError


logger = logging.getLogger(__name__)


DEFAULT_PER_PAGE = 2


def parse_page(raw) -> int:
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


class FeedService:
    """Create, read, update and delete posts, then tell connected clients.

    Every mutation follows the same order: validate input, check existence,
    check ownership, write the post and its owner's ``post_ids`` in one
    transaction, and only then publish on the broadcast hub. Validation and
    authorization failures therefore never leave partial writes behind.
    """

    def __init__(self, hub, image_store, per_page=DEFAULT_PER_PAGE):
        self.hub = hub
        self.image_store = image_store
        self.per_page = per_page

    def list_posts(self, page=1):
        page = parse_page(page)
        skip = (page - 1) * self.per_page

        total_items = post_repository.count_all()
        if skip >= total_items:
            # SQLite rejects offsets beyond its INTEGER range.
            posts = []
        else:
            posts = post_repository.find_page(skip, self.per_page, sort_by_created_at_desc=True)

        return {
            "posts": posts_schema.dump(posts),
            "totalItems": total_items,
        }

    def get_post(self, post_id):
        post = post_repository.find_by_id(post_id)
        if not post:
            raise NotFound()
        return post_schema.dump(post)

    def create_post(self, user_id, title, content, image):
        fields = validate_post_input(title, content)
        if not self.image_store.accepts(image):
            raise MissingImage()
        self.hub.ensure_ready()

        user = user_repository.find_by_id(user_id)
        if not user:
            raise NotFound("Could not find user.")

        image_url = self._store_image(image)
        try:
            post = post_repository.create(
                title=fields["title"],
                content=fields["content"],
                image_url=image_url,
                creator_id=user.id,
            )
            # post_ids is read only after the insert has opened the write transaction.
            user = user_repository.lock_by_id(user.id)
            if not user:
                raise NotFound("Could not find user.")
            user_repository.append_post_id(user, post.id)
            user_repository.save(user)
            store.commit()
        except (StoreError, NotFound):
            store.rollback()
            self.image_store.delete(image_url)
            raise

        creator = creator_schema.dump(user.summary())
        payload = post_schema.dump(post)
        payload["creator"] = creator
        logger.info("Post %s created by user %s", post.id, user.id)

        self.hub.publish(ACTION_CREATE, payload)
        return {"post": payload, "creator": creator}

    def update_post(self, post_id, user_id, title, content, image=None, image_url=None):
        fields = validate_post_input(title, content)

        new_image = image if self.image_store.accepts(image) else None
        if new_image is None and not image_url:
            raise MissingImage("No file picked.")
        self.hub.ensure_ready()

        post = post_repository.find_by_id(post_id)
        if not post:
            raise NotFound()
        if post.creator_id != user_id:
            raise Forbidden()

        old_image_url = post.image_url
        if new_image is None and image_url != old_image_url:
            raise ValidationFailed(data=[{
                "field": "image",
                "message": "Image reference does not match the stored image.",
            }])

        effective_url = self._store_image(new_image) if new_image is not None else old_image_url
        try:
            post.title = fields["title"]
            post.content = fields["content"]
            post.image_url = effective_url
            post_repository.save(post)
            store.commit()
        except StoreError:
            store.rollback()
            if effective_url != old_image_url:
                self.image_store.delete(effective_url)
            raise

        if effective_url != old_image_url:
            self.image_store.delete(old_image_url)

        payload = post_schema.dump(post)
        logger.info("Post %s updated by user %s", post_id, user_id)

        self.hub.publish(ACTION_UPDATE, payload)
        return payload

    def delete_post(self, post_id, user_id):
        self.hub.ensure_ready()

        post = post_repository.find_by_id(post_id)
        if not post:
            raise NotFound()
        if post.creator_id != user_id:
            raise Forbidden()

        # The instance is unusable once the delete commits.
        image_url = post.image_url
        owner_id = post.creator_id

        try:
            post_repository.delete_by_id(post_id)
            owner = user_repository.lock_by_id(owner_id)
            if owner:
                user_repository.remove_post_id(owner, post_id)
                user_repository.save(owner)
            else:
                logger.warning("Owner %s of post %s no longer exists", owner_id, post_id)
            store.commit()
        except StoreError:
            store.rollback()
            raise

        self.image_store.delete(image_url)
        logger.info("Post %s deleted by user %s", post_id, user_id)

        self.hub.publish(ACTION_DELETE, post_id)
        return {"postId": post_id}

    def list_user_posts(self, user_id):
        user = user_repository.find_by_id(user_id)
        if not user:
            raise NotFound("Could not find user.")

        post_ids = list(user.post_ids or [])
        posts_by_id = {post.id: post for post in post_repository.find_by_ids(post_ids)}

        resolved = [posts_by_id[pid] for pid in post_ids if pid in posts_by_id]
        dangling = len(post_ids) - len(resolved)
        if dangling:
            logger.warning("User %s has %d dangling post reference(s)", user_id, dangling)

        return posts_schema.dump(resolved)

    def prune_dangling_post_ids(self) -> int:
        """Drop post ids that no longer resolve from every user's list."""
        removed = 0
        try:
            for user in user_repository.find_all():
                post_ids = list(user.post_ids or [])
                if not post_ids:
                    continue

                existing = post_repository.existing_ids(post_ids)
                kept = [pid for pid in post_ids if pid in existing]
                if len(kept) == len(post_ids):
                    continue

                removed += len(post_ids) - len(kept)
                user.post_ids = kept
                user_repository.save(user)
            store.commit()
        except StoreError:
            store.rollback()
            raise

        if removed:
            logger.info("Pruned %d dangling post reference(s)", removed)
        return removed

    def _store_image(self, image):
        try:
            return self.image_store.save(image)
        except ImageStorageError as e:
            raise StoreError(str(e)) from e
