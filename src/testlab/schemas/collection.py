# schemas/collection.py

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from .validation import RequestValidation


class KeyValueRow(BaseModel):
    """A single editable key/value row (header, query param, form field)."""

    id: Optional[str] = Field(default=None, description="Row identifier")
    key: str = Field(default="", description="Row key")
    value: str = Field(default="", description="Row value, may contain {{placeholders}}")
    disabled: bool = Field(default=False, description="Disabled rows are ignored")


class HeaderRow(KeyValueRow):
    pass


class ParamRow(KeyValueRow):
    pass


class FormField(KeyValueRow):
    field_type: Literal["text", "file"] = Field(
        default="text", description="Form field kind; file fields carry a path in value"
    )


class BodyNone(BaseModel):
    mode: Literal["none"] = "none"


class BodyRaw(BaseModel):
    mode: Literal["raw"] = "raw"
    raw: str = Field(default="", description="Raw body text")
    language: Optional[str] = Field(
        default=None, description="Raw language: json, xml, html, text or csv"
    )


class BodyUrlEncoded(BaseModel):
    mode: Literal["urlencoded"] = "urlencoded"
    urlencoded: List[FormField] = Field(default_factory=list)


class BodyFormData(BaseModel):
    mode: Literal["formdata"] = "formdata"
    formdata: List[FormField] = Field(default_factory=list)


class FileReference(BaseModel):
    path: str = Field(..., description="Path of the file sent as the body")
    content_type: Optional[str] = Field(default=None, description="Explicit content type")


class BodyFile(BaseModel):
    mode: Literal["file"] = "file"
    file: FileReference


CollectionBody = Annotated[
    Union[BodyNone, BodyRaw, BodyUrlEncoded, BodyFormData, BodyFile],
    Field(discriminator="mode"),
]


class CollectionRequest(BaseModel):
    """Request template stored in a collection."""

    id: str = Field(..., description="Request identifier")
    name: str = Field(default="", description="Request display name")
    method: str = Field(default="GET", description="HTTP method")
    url: str = Field(default="", description="Request URL, may contain {{placeholders}}")
    query: List[ParamRow] = Field(default_factory=list, description="Query params")
    header: List[HeaderRow] = Field(default_factory=list, description="Headers")
    body: Optional[CollectionBody] = Field(default=None, description="Request body")
    validation: Optional[RequestValidation] = Field(
        default=None, description="Validation attached to the template"
    )
    auth_id: Optional[str] = Field(default=None, description="Auth profile of the request")


class CollectionItem(BaseModel):
    """Folder (has ``item``) or request leaf (has ``request``)."""

    id: str
    name: str = ""
    request: Optional[CollectionRequest] = None
    item: Optional[List["CollectionItem"]] = None


class CollectionInfo(BaseModel):
    id: str
    name: str = ""


class Collection(BaseModel):
    info: CollectionInfo
    item: List[CollectionItem] = Field(default_factory=list)
    filename: Optional[str] = Field(
        default=None, description="Storage filename, usable as the collection key"
    )


CollectionItem.model_rebuild()
