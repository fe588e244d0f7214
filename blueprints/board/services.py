# blueprints/board/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update

from models import Account, Comment, Post, Role, utcnow
from blueprints.auth.credentials import Principal
from blueprints.auth.policy import Action, PolicyOptions, Target, enforce
from blueprints.core.errors import NotFoundError
from blueprints.core.rate_gate import RateGate

log = logging.getLogger(__name__)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_cond(term: str):
    if not term:
        return None
    pattern = _like_pattern(term)
    return or_(Post.title.ilike(pattern, escape="\\"), Post.content.ilike(pattern, escape="\\"))


@dataclass
class PostPage:
    posts: List[Post] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    def to_dict(self) -> dict:
        return {
            "posts": [p.to_dict() for p in self.posts],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
        }


class BoardService:
    def __init__(self, session, rate_gate: RateGate, options: PolicyOptions | None = None, *,
                 post_cooldown: int = 60, comment_cooldown: int = 60, pin_notices: bool = True):
        self.session = session
        self.rate_gate = rate_gate
        self.options = options or PolicyOptions()
        self.post_cooldown = post_cooldown
        self.comment_cooldown = comment_cooldown
        self.pin_notices = pin_notices

    # ---------- posts ----------
    def list_posts(self, actor: Principal, page: int = 1, page_size: int = 10, search: str = "") -> PostPage:
        enforce(actor, Action.POST_LIST, None, self.options)
        cond = _search_cond((search or "").strip())
        newest_first = (Post.created_at.desc(), Post.id.desc())

        normal = select(Post)
        if self.pin_notices:
            normal = normal.where(Post.is_notice.is_(False))
        if cond is not None:
            normal = normal.where(cond)

        total = self.session.execute(select(func.count()).select_from(normal.subquery())).scalar_one()
        rows = self.session.execute(
            normal.order_by(*newest_first).offset((page - 1) * page_size).limit(page_size)
        ).scalars().all()

        notices: List[Post] = []
        if self.pin_notices and page == 1:
            nq = select(Post).where(Post.is_notice.is_(True))
            if cond is not None:
                nq = nq.where(cond)
            notices = list(self.session.execute(nq.order_by(*newest_first)).scalars())

        return PostPage(posts=notices + list(rows), total=total + len(notices), page=page, limit=page_size)

    def get_post(self, actor: Principal, post_id: int) -> Post:
        """Каждое чтение +1 к просмотрам, включая автора и повторы."""
        enforce(actor, Action.POST_READ, None, self.options)
        result = self.session.execute(
            update(Post).where(Post.id == post_id).values(views=Post.views + 1)
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise NotFoundError("Post not found.")
        self.session.commit()
        return self.session.get(Post, post_id, populate_existing=True)

    def create_post(self, actor: Principal, title: str, content: str) -> Post:
        enforce(actor, Action.POST_CREATE, None, self.options)
        self.rate_gate.check(actor, Post, self.post_cooldown,
                             f"You can only write one post every {self.post_cooldown} seconds.")

        author_email = ""
        if actor.role is not Role.SUPERADMIN:
            author = self.session.execute(
                select(Account).where(Account.user_id == actor.actor_id)
            ).scalar_one_or_none()
            if author is None:
                raise NotFoundError("User not found.")
            author_email = author.email

        now = utcnow()
        post = Post(
            title=title,
            content=content,
            author_id=actor.actor_id,
            author_email=author_email,
            author_role=actor.role.value,
            is_notice=actor.role is Role.SUPERADMIN,
            views=0,
            created_at=now,
            updated_at=now,
        )
        self.session.add(post)
        self.session.commit()
        return post

    def update_post(self, actor: Principal, post_id: int, title: str, content: str) -> Post:
        post = self._post_or_404(post_id)
        enforce(actor, Action.POST_UPDATE, Target(owner_id=post.author_id), self.options)
        post.title = title
        post.content = content
        post.updated_at = utcnow()
        self.session.commit()
        return post

    def delete_post(self, actor: Principal, post_id: int) -> None:
        post = self._post_or_404(post_id)
        enforce(actor, Action.POST_DELETE, Target(owner_id=post.author_id), self.options)
        # пост и его комментарии уходят одной транзакцией
        self.session.execute(delete(Comment).where(Comment.post_id == post.id))
        self.session.delete(post)
        self.session.commit()
        log.info("post %s deleted by %s", post_id, actor.actor_id)

    # ---------- comments ----------
    def list_comments(self, actor: Principal, post_id: int) -> List[Comment]:
        enforce(actor, Action.COMMENT_READ, None, self.options)
        stmt = (select(Comment).where(Comment.post_id == post_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc()))
        return list(self.session.execute(stmt).scalars())

    def create_comment(self, actor: Principal, post_id: int, content: str) -> Comment:
        post = self._post_or_404(post_id)
        enforce(actor, Action.COMMENT_CREATE, Target(owner_id=post.author_id, is_notice=post.is_notice),
                self.options)
        self.rate_gate.check(actor, Comment, self.comment_cooldown,
                             f"You can only write one comment every {self.comment_cooldown} seconds.")
        comment = Comment(
            post_id=post.id,
            content=content,
            author_id=actor.actor_id,
            author_role=actor.role.value,
            created_at=utcnow(),
        )
        self.session.add(comment)
        self.session.commit()
        return comment

    def delete_comment(self, actor: Principal, comment_id: int) -> None:
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found.")
        enforce(actor, Action.COMMENT_DELETE, Target(owner_id=comment.author_id), self.options)
        self.session.delete(comment)
        self.session.commit()

    # ---------- helpers ----------
    def _post_or_404(self, post_id: int) -> Post:
        post: Optional[Post] = self.session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found.")
        return post
