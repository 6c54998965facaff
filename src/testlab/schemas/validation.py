# schemas/validation.py

from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

StatusOperator = Literal[
    "equals",
    "not_equals",
    "less_than",
    "less_than_or_equal",
    "greater_than",
    "greater_than_or_equal",
    "between",
    "in",
    "not_in",
    "is_success",
    "is_not_success",
]

HeaderOperator = Literal[
    "exists",
    "not_exists",
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "starts_with",
    "ends_with",
    "matches_regex",
    "in",
    "not_in",
]

BodyOperator = Literal[
    "contains",
    "not_contains",
    "equals",
    "not_equals",
    "starts_with",
    "ends_with",
    "matches_regex",
    "is_json",
    "is_xml",
    "is_html",
    "json_path_exists",
    "json_path_equals",
    "json_path_contains",
]

TimeOperator = Literal[
    "less_than",
    "less_than_or_equal",
    "greater_than",
    "greater_than_or_equal",
    "between",
]

ValidationCategory = Literal["status", "header", "body", "time"]


class ValidationRuleBase(BaseModel):
    id: str = Field(..., description="Rule identifier")
    name: str = Field(default="", description="Rule display name")
    description: Optional[str] = None
    enabled: bool = Field(default=True, description="Disabled rules are not evaluated")


class StatusValidationRule(ValidationRuleBase):
    category: Literal["status"] = "status"
    operator: StatusOperator
    value: Optional[Union[int, str]] = Field(
        default=None, description="Expected status; may be a {{placeholder}}"
    )
    value_max: Optional[Union[int, str]] = Field(
        default=None, description="Upper bound for 'between'"
    )
    values: Optional[List[Union[int, str]]] = Field(
        default=None, description="Candidate statuses for 'in'/'not_in'"
    )


class HeaderValidationRule(ValidationRuleBase):
    category: Literal["header"] = "header"
    header_name: str = Field(..., description="Header looked up case-insensitively")
    operator: HeaderOperator
    value: Optional[str] = None
    values: Optional[List[str]] = Field(
        default=None, description="Candidate values for 'in'/'not_in'"
    )
    case_sensitive: bool = False


class BodyValidationRule(ValidationRuleBase):
    category: Literal["body"] = "body"
    operator: BodyOperator
    value: Optional[str] = None
    json_path: Optional[str] = Field(
        default=None, description="Dotted path such as $.data.items[0].id"
    )
    case_sensitive: bool = False


class TimeValidationRule(ValidationRuleBase):
    category: Literal["time"] = "time"
    operator: TimeOperator
    value: Union[float, str] = Field(..., description="Milliseconds (or lower bound)")
    value_max: Optional[Union[float, str]] = Field(
        default=None, description="Upper bound for 'between'"
    )


ValidationRule = Annotated[
    Union[
        StatusValidationRule,
        HeaderValidationRule,
        BodyValidationRule,
        TimeValidationRule,
    ],
    Field(discriminator="category"),
]


class ValidationRuleRef(BaseModel):
    """Either an inline rule or a reference to a globally stored rule."""

    rule: Optional[ValidationRule] = None
    rule_id: Optional[str] = None

    @model_validator(mode="after")
    def _one_of(self) -> "ValidationRuleRef":
        if self.rule is None and not self.rule_id:
            raise ValueError("Either 'rule' or 'rule_id' must be provided")
        return self


class RequestValidation(BaseModel):
    enabled: bool = True
    rules: List[ValidationRuleRef] = Field(default_factory=list)


class ValidationRuleResult(BaseModel):
    rule_id: str
    rule_name: str = ""
    category: Optional[ValidationCategory] = None
    passed: bool
    message: str
    expected: Optional[str] = None
    actual: Optional[str] = None


class ValidationResult(BaseModel):
    enabled: bool = True
    total_rules: int = 0
    passed_rules: int = 0
    failed_rules: int = 0
    all_passed: bool = True
    results: List[ValidationRuleResult] = Field(default_factory=list)
