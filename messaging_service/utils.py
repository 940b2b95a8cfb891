"""Phone number helpers for the messaging service."""

import re
import time
from typing import Optional

# Indian mobile numbers: optional +91 / 91 / 0 prefix, then 10 digits starting with 6-9
PHONE_PATTERN = re.compile(r"^(?:\+91|91|0)?([6-9]\d{9})$")


def normalize_phone(raw: str) -> Optional[str]:
    """Returns the number in +91XXXXXXXXXX form, or None when it is not a valid mobile number."""
    compact = re.sub(r"[\s\-()]", "", raw or "")
    match = PHONE_PATTERN.match(compact)
    if not match:
        return None
    return f"+91{match.group(1)}"


def simulated_message_id() -> str:
    return f"simulated_{int(time.time() * 1000)}"
