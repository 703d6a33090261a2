"""Cross-origin relay URL building and response unwrapping."""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)


class CorsRelay:
    """
    A public relay that fetches an upstream URL on our behalf.

    Templates use ``{url}`` for a raw URL or ``{encoded_url}`` for a
    percent-encoded one. Some relays (allorigins) wrap the upstream body
    as a JSON string under an envelope key; others pass it through.
    """

    def __init__(self, template: str, envelope: Optional[str] = None):
        self.template = template
        self.envelope = envelope

    @classmethod
    def from_template(cls, template: str) -> "CorsRelay":
        envelope = "contents" if "allorigins" in template else None
        return cls(template, envelope=envelope)

    def wrap(self, url: str) -> str:
        return self.template.format(url=url, encoded_url=quote(url, safe=""))

    def unwrap(self, payload: Any) -> Optional[Any]:
        """Return the upstream JSON document carried by a relay response."""
        if self.envelope is None:
            return payload
        if not isinstance(payload, dict):
            return None
        contents = payload.get(self.envelope)
        if isinstance(contents, str):
            try:
                return json.loads(contents)
            except ValueError:
                logger.warning("Relay envelope did not contain JSON")
                return None
        return contents


def relays_from_templates(templates: list[str]) -> list[CorsRelay]:
    return [CorsRelay.from_template(t) for t in templates]
