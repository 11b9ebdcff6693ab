"""
Common utility functions used across multiple routes.
"""

from datetime import date, datetime, timezone
from typing import Optional

from agents.mentor_agent.types import UserSession


def iso_format(dt: datetime) -> str:
    """Format datetime as ISO string with Z suffix."""
    return dt.isoformat() + "Z"


def display_name(session: UserSession) -> str:
    """Get display name from session preferences or email."""
    prefs = session.preferences or {}
    name = None
    if isinstance(prefs, dict):
        name = prefs.get("name") or prefs.get("full_name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    # fallback: email prefix
    return session.email.split("@", 1)[0]


def export_filename(day: Optional[date] = None) -> str:
    """File name for a downloaded conversation."""
    day = day or datetime.now(timezone.utc).date()
    return f"ai-mentor-chat-{day.isoformat()}.md"
