# engagement/throttles.py

from rest_framework.throttling import ScopedRateThrottle


class ReactionCreateThrottle(ScopedRateThrottle):
    """
    Throttle reaction creation per user per project.

    Scope key: 'reaction-create'
    Cache key shape:
      throttle_reaction-create_u<user_id>_p<project_id or none>
    """
    scope = "reaction-create"

    def get_cache_key(self, request, view):
        # Only throttle POST (reaction create)
        if request.method != "POST":
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        project_id = request.data.get("project") or "none"
        return f"throttle_{self.scope}_u{user.id}_p{project_id}"
