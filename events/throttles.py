# events/throttles.py

from rest_framework.throttling import ScopedRateThrottle


class CheckInThrottle(ScopedRateThrottle):
    """
    Throttle attendance-code attempts per user per event.

    Scope key: 'check-in'
    Cache key shape:
      throttle_check-in_u<user_id>_e<event_id or unknown>
    """
    scope = "check-in"

    def get_cache_key(self, request, view):
        if request.method != "POST":
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        event_id = request.data.get("event_id") or "unknown"
        return f"throttle_{self.scope}_u{user.id}_e{event_id}"
