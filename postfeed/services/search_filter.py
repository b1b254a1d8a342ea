"""Case-insensitive title filtering."""

from __future__ import annotations

from typing import Iterable

from postfeed.domain.models import Post


def normalize(text: str) -> str:
    return text.lower()


def filter_posts(posts: Iterable[Post], query: str) -> tuple[Post, ...]:
    """Return the posts whose title contains ``query``, keeping their order.

    An empty query matches everything.
    """

    posts = tuple(posts)
    if not query:
        return posts
    needle = normalize(query)
    return tuple(post for post in posts if needle in normalize(post.title))


__all__ = ["filter_posts", "normalize"]
