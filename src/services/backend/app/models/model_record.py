from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime, timezone


def to_iso(value: Any) -> Optional[str]:
    """Normalize a stored timestamp (datetime or string) to an ISO-8601 string"""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return str(value)


def utc_now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


class ModelSummary(BaseModel):
    id: str
    modelUrl: Optional[str] = None
    active: bool = True
    createdAt: Optional[str] = None


class ModelRecord(ModelSummary):
    fileName: Optional[str] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "ModelRecord":
        """Build a record from a stored document of either backend.

        Older documents may keep the URL under ``url`` or lack the ``active``
        flag entirely; a missing flag reads as active. A document without any
        URL is malformed and raises ``ValueError``.
        """
        model_url = data.get("modelUrl") or data.get("url")
        if not model_url:
            raise ValueError(f"Stored model {data.get('id') or doc_id} has no model URL")

        active = data.get("active")
        return cls(
            id=data.get("id") or doc_id,
            modelUrl=model_url,
            active=True if active is None else bool(active),
            fileName=data.get("fileName"),
            createdAt=to_iso(data.get("createdAt")),
        )

    def summary(self) -> ModelSummary:
        return ModelSummary(
            id=self.id,
            modelUrl=self.modelUrl,
            active=self.active,
            createdAt=self.createdAt,
        )


class ModelDraft(BaseModel):
    """Fields supplied by the caller before an id and timestamp are assigned"""
    modelUrl: str
    fileName: Optional[str] = None
