import json
from typing import Any, Optional, Sequence


class RecordsDecoder:
    """Turn an upstream JSON body into the list of raw observation records.

    The statistics API answers with a bare array. Some deployments wrap it in
    an object (``envelope``), and error replies come back as an object with a
    message key instead of records.
    """

    def __init__(
        self,
        *,
        envelope: Optional[str] = None,
        error_keys: Sequence[str] = ("Message", "message", "error"),
    ):
        self.envelope = envelope
        self.error_keys = tuple(error_keys)

    def decode(self, text: str) -> list[Any]:
        if not text or not text.strip():
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"body is not JSON: {text[:80]!r}") from exc

        if isinstance(payload, dict):
            if self.envelope and self.envelope in payload:
                payload = payload[self.envelope]
            else:
                for key in self.error_keys:
                    if key in payload and len(payload) == 1:
                        raise ValueError(f"upstream error: {payload[key]}")
        if payload is None:
            return []
        if isinstance(payload, dict):
            return [payload]
        if not isinstance(payload, list):
            raise ValueError(f"expected a list of records, got {type(payload).__name__}")
        return payload
