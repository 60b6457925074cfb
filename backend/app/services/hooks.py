"""Callbacks run after a finalization commits (e.g. season ranking recompute)."""
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

PostFinalizeHook = Callable[[int], None]

_post_finalize_hooks: List[PostFinalizeHook] = []


def register_post_finalize_hook(hook: PostFinalizeHook) -> None:
    if hook not in _post_finalize_hooks:
        _post_finalize_hooks.append(hook)


def clear_post_finalize_hooks() -> None:
    _post_finalize_hooks.clear()


def run_post_finalize_hooks(tournament_id: int) -> int:
    """Run every hook; a failing hook is logged and does not stop the others. Returns hooks that succeeded."""
    succeeded = 0
    for hook in list(_post_finalize_hooks):
        try:
            hook(tournament_id)
            succeeded += 1
        except Exception as exc:
            logger.exception("Post-finalize hook %r failed for tournament %d: %s", hook, tournament_id, exc)
    return succeeded
