# core/base_tool.py

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, Union
from pydantic import BaseModel, ValidationError
import time

from ..schemas.core import ToolInput, ToolOutput
from ..common.logger import LoggerFactory, LoggerType, LogLevel


class BaseTool(ABC):
    """Common shell of the engine's executors (HTTP caller, flow runner,
    suite runner).

    Subclasses implement ``_execute`` against their own input model;
    ``execute`` takes care of input coercion, output wrapping and timing.
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: Type[ToolInput] = ToolInput,
        output_schema: Type[ToolOutput] = ToolOutput,
        config: Optional[Dict[str, Any]] = None,
        verbose: bool = False,
    ):
        """
        Args:
            name: Tool name, also used as the ``tool.<name>`` logger name
            description: Human readable summary
            input_schema: Model ``execute`` validates dict input against
            output_schema: Model results are wrapped into
            config: Tool specific settings (timeouts, TLS, ...)
            verbose: Log at DEBUG instead of INFO
        """
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self.output_schema = output_schema
        self.config = config or {}
        self.verbose = verbose

        self.logger = LoggerFactory.get_logger(
            name=f"tool.{name}",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.DEBUG if verbose else LogLevel.INFO,
        )

    @abstractmethod
    async def _execute(self, input_data: ToolInput) -> Any:
        """Run the tool on already validated input."""
        pass

    def _coerce_input(self, input_data: Union[Dict[str, Any], ToolInput]) -> ToolInput:
        if isinstance(input_data, self.input_schema):
            return input_data
        if isinstance(input_data, BaseModel):
            input_data = input_data.model_dump()
        return self.input_schema.model_validate(input_data)

    def _wrap_output(self, raw_output: Any) -> ToolOutput:
        if isinstance(raw_output, self.output_schema):
            return raw_output
        if isinstance(raw_output, dict):
            return self.output_schema.model_validate(raw_output)
        return self.output_schema(result=raw_output)

    async def execute(self, input_data: Union[Dict[str, Any], ToolInput]) -> ToolOutput:
        """Validate ``input_data``, run the tool and time it.

        Pydantic errors on the way in or out are logged and re-raised;
        executor-level failures are reported inside the output model by the
        subclasses themselves.
        """
        start_time = time.perf_counter()
        try:
            output = self._wrap_output(await self._execute(self._coerce_input(input_data)))
        except ValidationError as e:
            self.logger.error(f"Invalid data for tool {self.name}: {e}")
            raise

        output.execution_time = time.perf_counter() - start_time
        self.logger.debug(f"Tool {self.name} completed in {output.execution_time:.3f}s")
        return output

    async def cleanup(self) -> None:
        """Release clients and cancel work still owned by the tool."""
        pass
