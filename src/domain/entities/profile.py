"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Profile:
    """Identity record for a user (synced from the identity provider)."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def short_name(self) -> str | None:
        """Display name, else the e-mail local part."""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return None
