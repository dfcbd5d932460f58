"""Pydantic models for Nextcloud resources."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Note(BaseModel):
    """A note from the Notes app. ``etag`` changes on every modification."""

    model_config = ConfigDict(extra="ignore")

    id: int
    etag: str = ""
    title: str = ""
    content: str = ""
    category: str = ""
    modified: int = 0
    favorite: bool = False
    readonly: bool = False


class Calendar(BaseModel):
    """A CalDAV calendar collection."""

    name: str = Field(..., description="Collection name used in URLs")
    display_name: str = ""
    color: Optional[str] = None
    href: str


class CalendarEvent(BaseModel):
    """A single VEVENT stored as one calendar object resource."""

    uid: str
    summary: str = ""
    start: str = Field(..., description="ISO-8601 date or date-time")
    end: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    href: Optional[str] = None
    etag: Optional[str] = None


class AddressBook(BaseModel):
    """A CardDAV address book collection."""

    name: str
    display_name: str = ""
    href: str


class Contact(BaseModel):
    """A vCard contact."""

    uid: str
    full_name: str
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    organization: Optional[str] = None
    href: Optional[str] = None
    etag: Optional[str] = None


class TableColumn(BaseModel):
    """Column definition in a Nextcloud Tables table."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    type: str = "text"
    subtype: str = ""
    mandatory: bool = False


class Table(BaseModel):
    """A Nextcloud Tables table."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    title: str
    emoji: Optional[str] = None
    owner_display_name: Optional[str] = Field(default=None, alias="ownerDisplayName")
    rows_count: int = Field(default=0, alias="rowsCount")


class TableRow(BaseModel):
    """A row, flattened to ``{column_id: value}``."""

    id: int
    data: dict[int, Any] = Field(default_factory=dict)


class DavResource(BaseModel):
    """A file or directory returned by a WebDAV PROPFIND."""

    path: str
    name: str
    is_directory: bool
    size: Optional[int] = None
    content_type: Optional[str] = None
    last_modified: Optional[str] = None
    etag: Optional[str] = None
