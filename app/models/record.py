from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class FinalizedRecord:
    """Structured result of one completed conversation, handed to persistence."""

    timestamp: datetime
    sender_id: str
    display_name: str
    customer_name: str
    category: str
    fields: Mapping[str, str]
    detail: str

    def __post_init__(self):
        # frozen dataclass: copy into a read-only view so callers can't mutate it later
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
