# engagement/events.py
"""
Reaction domain events.

Sent by ``ReactionService`` right after a like, bookmark or comment is
created or removed. Receivers get ``kind`` ("like" | "bookmark" |
"comment") and ``project_id``; ``sender`` is the reaction model class.
"""
from django.dispatch import Signal

reaction_created = Signal()
reaction_deleted = Signal()
