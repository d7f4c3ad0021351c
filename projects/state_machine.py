# projects/state_machine.py
"""
Project lifecycle rules.

draft ⇄ active → finished → published

``active`` is a toggle (re-enterable through activation), ``finished`` is
set by submitting results, ``published`` is a one-way gate that needs
``finished``. Actions are checked against the derived status before the
service applies them.
"""
from typing import Tuple
import logging

from .models import Project

logger = logging.getLogger('collab.projects')


def validate_action_for_status(project: Project, action: str) -> Tuple[bool, str]:
    """
    Validate if an action is allowed given the project's current flags.

    Actions and their requirements:
    - 'publish': project must be finished
    - 'write_logbook': project must be active
    - everything else is allowed in any status
    """
    if action == 'publish':
        if not project.finished:
            return False, "A project can only be published after its results are submitted"
        return True, ""

    elif action == 'write_logbook':
        if not project.active:
            return False, "Logbook entries can only be written for an active project"
        return True, ""

    return True, ""


def apply_flags(project: Project, actor=None, **flags) -> list:
    """
    Set lifecycle flags on an in-memory project and log the transition.

    Returns the names of the fields that actually changed (caller saves).
    ``published`` can never go back to False.
    """
    if flags.get('published') is False and project.published:
        logger.warning(
            f"Refused to unpublish project={project.id}, actor={getattr(actor, 'id', 'unknown')}"
        )
        flags.pop('published')

    old_status = project.status
    changed = []
    for name, value in flags.items():
        if getattr(project, name) != value:
            setattr(project, name, value)
            changed.append(name)

    if changed:
        logger.info(
            f"Project state transition: project={project.id}, "
            f"from={old_status}, to={project.status}, fields={changed}, "
            f"actor={getattr(actor, 'id', 'unknown')}"
        )
    return changed
