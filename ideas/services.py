# ideas/services.py
"""
Ideas board: posting ideas, commenting, and deleting (own content, or any
idea for admins).
"""
import logging

from django.db.models import Count, Q
from rest_framework.exceptions import ValidationError

from core import constants
from core.exceptions import NotAuthorized, NotFound
from core.permissions import ensure_admin, is_portal_admin
from core.sanitizers import parse_tags, sanitize_text, sanitize_title
from core.services import AdminLogService

from .models import Comment, Idea

logger = logging.getLogger("portal.ideas")


def ideas_queryset():
    return (
        Idea.objects
        .select_related("author")
        .annotate(comment_count=Count("comments"))
    )


def list_ideas(q=None, author=None):
    qs = ideas_queryset()
    if q:
        qs = qs.filter(Q(title__icontains=q) | Q(description__icontains=q))
    if author is not None:
        qs = qs.filter(author=author)
    return qs.order_by("-created_at", "-id")


def get_idea(idea_id):
    try:
        return ideas_queryset().get(pk=idea_id)
    except Idea.DoesNotExist:
        raise NotFound("Idea not found.")


def comments_for(idea):
    return idea.comments.select_related("author").order_by("created_at", "id")


def create_idea(author, data):
    title = sanitize_title(data.get("title"), max_length=200)
    description = sanitize_text(data.get("description"), max_length=10000)

    errors = {}
    if not title:
        errors["title"] = ["This field is required."]
    if not description:
        errors["description"] = ["This field is required."]
    if errors:
        raise ValidationError(errors)

    idea = Idea.objects.create(
        title=title,
        description=description,
        tags=parse_tags(data.get("tags")),
        author=author,
    )
    logger.info(f"Idea posted: idea={idea.id}, author={author.id}")
    return get_idea(idea.id)


def delete_idea(actor, idea_id):
    """
    Authors delete their own ideas; admins may delete any (audited).
    """
    idea = get_idea(idea_id)

    if idea.author_id != actor.id:
        if not is_portal_admin(actor):
            raise NotAuthorized("You can only delete your own ideas.")
        return admin_delete_idea(actor, idea_id)

    idea.delete()
    logger.info(f"Idea deleted by author: idea={idea_id}, author={actor.id}")


def admin_delete_idea(admin, idea_id):
    ensure_admin(admin)
    idea = get_idea(idea_id)

    title = idea.title
    author_id = idea.author_id
    idea.delete()

    AdminLogService.log(
        admin,
        constants.ADMIN_IDEA_DELETE,
        constants.TARGET_IDEA,
        int(idea_id),
        {"title": title, "author": author_id},
    )


def add_comment(author, idea_id, text):
    idea = get_idea(idea_id)
    text = sanitize_text(text, max_length=2000)
    if not text:
        raise ValidationError({"text": ["Comment text is required."]})

    comment = Comment.objects.create(idea=idea, author=author, text=text)
    logger.info(f"Comment added: idea={idea.id}, comment={comment.id}, author={author.id}")
    return comment


def delete_comment(actor, comment_id):
    comment = Comment.objects.filter(pk=comment_id).first()
    if comment is None:
        raise NotFound("Comment not found.")
    if comment.author_id != actor.id:
        raise NotAuthorized("You can only delete your own comments.")

    comment.delete()
    logger.info(f"Comment deleted: comment={comment_id}, author={actor.id}")
