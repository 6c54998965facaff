# engine/request_pipeline.py

from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel

from ..common.logger import LoggerFactory, LoggerInterface, LoggerType
from ..domain.ports.http_executor import HttpExecutorInterface
from ..schemas.auth import Auth
from ..schemas.collection import CollectionRequest
from ..schemas.environment import Environment
from ..schemas.run_result import TestStatus, ValidationStatus
from ..schemas.test_suite import TestCaseData
from ..schemas.tools.rest_api_caller import ResponseRecord
from ..schemas.validation import RequestValidation, ValidationResult, ValidationRule
from . import auth_resolver, request_builder, validation_engine, variables
from .variables import Fallback


class RequestOutcome(BaseModel):
    status: TestStatus
    validation_status: ValidationStatus = ValidationStatus.IDLE
    response: Optional[ResponseRecord] = None
    validation_result: Optional[ValidationResult] = None
    error: Optional[str] = None
    started_at: datetime
    completed_at: datetime


class RequestPipeline:
    """Variables -> auth -> build -> HTTP -> validation for one request."""

    def __init__(
        self,
        http_executor: HttpExecutorInterface,
        logger: Optional[LoggerInterface] = None,
    ):
        self.http_executor = http_executor
        self.logger = logger or LoggerFactory.get_logger(
            name="engine.request_pipeline", logger_type=LoggerType.STANDARD
        )

    async def run(
        self,
        template: CollectionRequest,
        *,
        overrides: Optional[TestCaseData] = None,
        environments: Sequence[Environment] = (),
        environment_id: Optional[str] = None,
        auths: Sequence[Auth] = (),
        item_auth_id: Optional[str] = None,
        default_auth_id: Optional[str] = None,
        validation: Optional[RequestValidation] = None,
        global_rules_by_id: Optional[Mapping[str, ValidationRule]] = None,
        fallback: Optional[Fallback] = None,
    ) -> RequestOutcome:
        started_at = datetime.now(timezone.utc)
        overrides = overrides or TestCaseData()

        table = variables.resolve(environments, environment_id, overrides.variables)
        target_url = request_builder.resolve_target_url(template, table, fallback)
        auth = auth_resolver.select(
            request_auth_id=item_auth_id or template.auth_id,
            default_auth_id=default_auth_id,
            case_auth_id=overrides.auth_id,
            all_auths=auths,
            target_url=target_url,
        )

        built = request_builder.build(template, overrides, table, auth, fallback)
        if not built.ok:
            self.logger.warning(f"Request '{template.id}' not sent: {built.error}")
            return RequestOutcome(
                status=TestStatus.FAILED,
                error=built.error,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        sent = await self.http_executor.send(built.request)
        if not sent.success or sent.response is None:
            return RequestOutcome(
                status=TestStatus.FAILED,
                error=sent.error_message or "Request failed",
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        result = validation_engine.evaluate(
            validation, sent.response, global_rules_by_id, table
        )
        if not result.enabled:
            validation_status = ValidationStatus.IDLE
        elif result.all_passed:
            validation_status = ValidationStatus.PASS
        else:
            validation_status = ValidationStatus.FAIL

        return RequestOutcome(
            status=TestStatus.SUCCESS,
            validation_status=validation_status,
            response=sent.response,
            validation_result=result,
            error=None,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )
