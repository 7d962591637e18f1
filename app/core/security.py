from fastapi import Header, HTTPException, status


def get_current_member(
    x_user_email: str | None = Header(default=None),
) -> str:
    """
    DEV IDENTITY: pass X-User-Email header to act as that group member.
    Example: X-User-Email: member@local.test
    """
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Email header (dev identity)",
        )
    return x_user_email.strip().lower()
