"""Data models for the retrieval pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field


@dataclass
class RetrievalRequest:
    """One page retrieval, built per call and discarded afterwards."""

    url: str
    cookies: str = ""


@dataclass
class RawDocument:
    """Raw markup returned by a fetcher, tagged with the channel it came from."""

    url: str
    markup: str
    channel: str
    status_code: int = 200


@dataclass(frozen=True)
class ExtractedDocument:
    """Bounded structured fields pulled out of a parsed page."""

    title: str = ""
    content: str = ""
    links: tuple[str, ...] = field(default_factory=tuple)
    images: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "links": list(self.links),
            "images": list(self.images),
        }


@dataclass(frozen=True)
class ResultEnvelope:
    """Uniform outcome returned to callers of the retrieval service.

    ``data`` is set exactly when ``success`` is true and ``error`` exactly
    when it is false.  Use :meth:`ok` and :meth:`fail` rather than the
    constructor.
    """

    success: bool
    data: Optional[ExtractedDocument] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success:
            if self.data is None or self.error is not None:
                raise ValueError("a successful envelope carries data and no error")
        elif self.data is not None or self.error is None:
            raise ValueError("a failed envelope carries an error and no data")

    @classmethod
    def ok(cls, data: ExtractedDocument) -> ResultEnvelope:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ResultEnvelope:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON wire shape: ``{success, data}`` or ``{success, error}``."""
        if self.data is not None:
            return {"success": True, "data": self.data.to_dict()}
        return {"success": False, "error": self.error}


# ---------------------------------------------------------------------------
# Delegate wire schema
# ---------------------------------------------------------------------------

class DelegateData(BaseModel):
    title: str = ""
    content: str = ""
    links: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class DelegatePayload(BaseModel):
    """The JSON body a delegate endpoint answers with."""

    success: bool
    data: Optional[DelegateData] = None
    error: Optional[str] = None
