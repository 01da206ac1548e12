from social_feed.db import db
from social_feed.models.post_model import Post
from social_feed.repositories.base import store_operation


@store_operation
def find_by_id(post_id):
    if not post_id:
        return None
    return db.session.get(Post, post_id)


@store_operation
def find_by_ids(post_ids):
    if not post_ids:
        return []
    return Post.query.filter(Post.id.in_(list(post_ids))).all()


@store_operation
def existing_ids(post_ids):
    if not post_ids:
        return set()
    rows = db.session.query(Post.id).filter(Post.id.in_(list(post_ids))).all()
    return {row[0] for row in rows}


@store_operation
def create(title, content, image_url, creator_id):
    post = Post(
        title=title,
        content=content,
        image_url=image_url,
        creator_id=creator_id,
    )
    db.session.add(post)
    db.session.flush()
    return post


@store_operation
def save(post):
    db.session.add(post)
    db.session.flush()
    return post


@store_operation
def delete_by_id(post_id):
    deleted = Post.query.filter_by(id=post_id).delete(synchronize_session="fetch")
    db.session.flush()
    return deleted > 0


@store_operation
def count_all():
    return Post.query.count()


@store_operation
def find_page(skip, limit, sort_by_created_at_desc=True):
    if sort_by_created_at_desc:
        order = (Post.created_at.desc(), Post.id.desc())
    else:
        order = (Post.created_at.asc(), Post.id.asc())
    return (
        Post.query
        .order_by(*order)
        .offset(skip)
        .limit(limit)
        .all()
    )
