"""Response schemas for the photo functions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .media_models import FinalizeOutcome, UploadTicket


class UploadTicketResponse(BaseModel):
    """Ticket payload; url/path are repeated under their historical aliases."""

    bucket: str
    bucketRelativePath: str
    path: str
    dbPath: str
    url: str
    uploadUrl: str
    token: str | None = None
    uploadMethod: Literal["POST_MULTIPART", "PUT"] = "POST_MULTIPART"
    headers: dict[str, str] = Field(default_factory=dict)
    formFieldName: str = "file"

    @classmethod
    def from_ticket(cls, ticket: UploadTicket) -> "UploadTicketResponse":
        return cls(
            bucket=ticket.bucket,
            bucketRelativePath=ticket.path,
            path=ticket.path,
            dbPath=ticket.path,
            url=ticket.upload_url,
            uploadUrl=ticket.upload_url,
            token=ticket.token,
            uploadMethod=ticket.upload_method,  # type: ignore[arg-type]
            headers=dict(ticket.required_headers),
            formFieldName=ticket.form_field_name,
        )


class MediaSummary(BaseModel):
    fortune_id: str
    bucket: str
    path: str
    updated_at: str


class FinalizeResponse(BaseModel):
    signedUrl: str | None
    replaced: bool
    media: MediaSummary

    @classmethod
    def from_outcome(cls, outcome: FinalizeOutcome) -> "FinalizeResponse":
        return cls(
            signedUrl=outcome.signed_url,
            replaced=outcome.replaced,
            media=MediaSummary(**outcome.record.summary()),
        )


class SignOnlyResponse(BaseModel):
    signedUrl: str | None


class DeleteMediaResponse(BaseModel):
    deleted: bool
