"""
Pydantic models for gateway inputs and results.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Protection(BaseModel):
    """One protection rule for ``MediaWikiGateway.protect``."""

    model_config = ConfigDict(extra="forbid")

    action: str = Field(..., description="The action to protect, e.g. 'edit'")
    group: str = Field(..., description="Group allowed to perform the action")
    expiry: str = Field("never", description="Protection expiry as a GNU timestamp")

    @field_validator("expiry", mode="before")
    @classmethod
    def stringify_expiry(cls, v: object) -> str:
        return str(v)

    @property
    def rule(self) -> str:
        return f"{self.action}={self.group}"


class Contribution(BaseModel):
    """A user contribution (``list=usercontribs`` item).

    Unknown attributes are kept so every attribute of the item survives.
    """

    model_config = ConfigDict(extra="allow")

    user: Optional[str] = Field(None, description="Author")
    pageid: Optional[int] = Field(None, description="Page ID")
    revid: Optional[int] = Field(None, description="Revision ID")
    ns: Optional[int] = Field(None, description="Namespace")
    title: Optional[str] = Field(None, description="Page title")
    timestamp: Optional[str] = Field(None, description="Time of the edit")
    comment: Optional[str] = Field(None, description="Edit summary")
    size: Optional[int] = Field(None, description="Page size after the edit")
