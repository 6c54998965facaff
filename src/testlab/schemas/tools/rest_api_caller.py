# schemas/tools/rest_api_caller.py

from typing import Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, Field

from ..core.base_tool import ToolInput, ToolOutput
from ..auth import Auth

BodyMode = Literal["none", "raw", "urlencoded", "formdata", "file"]


class PreparedRequest(BaseModel):
    """Fully resolved request, ready for the HTTP executor."""

    method: str = Field(..., description="HTTP method, e.g., GET, POST")
    url: str = Field(..., description="Absolute URL without the query string")
    headers: Dict[str, str] = Field(default_factory=dict, description="HTTP headers")
    params: List[Tuple[str, str]] = Field(
        default_factory=list, description="Ordered query parameters"
    )
    body_mode: BodyMode = "none"
    body: Optional[str] = Field(default=None, description="Raw body text")
    form: List[Tuple[str, str]] = Field(
        default_factory=list, description="Resolved urlencoded/formdata text fields"
    )
    form_files: List[Tuple[str, str]] = Field(
        default_factory=list, description="formdata file fields as (name, path)"
    )
    file_path: Optional[str] = Field(default=None, description="Body file for mode 'file'")
    auth: Optional[Auth] = Field(default=None, description="Credential to apply")
    env_vars: Dict[str, str] = Field(
        default_factory=dict, description="Variable table the request was built with"
    )


class ResponseRecord(BaseModel):
    status: int = Field(..., description="HTTP status code")
    status_text: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = Field(default="", description="Text body, or base64 when is_encoded")
    elapsed_time: float = Field(default=0.0, description="Round trip in milliseconds")
    size: int = Field(default=0, description="Raw body size in bytes")
    is_encoded: bool = False


class RestApiCallerInput(ToolInput):
    request: PreparedRequest = Field(..., description="Details of the HTTP request")


class RestApiCallerOutput(ToolOutput):
    response: Optional[ResponseRecord] = Field(
        default=None, description="Response, absent on transport failure"
    )
