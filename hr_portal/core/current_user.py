# Signed-in user placeholder; drafts are stored per user id.
_current = "default"


def set_user(user_id: str | None):
    global _current
    _current = user_id or "default"


def user_id() -> str:
    return _current
