from .base_tool import ToolInput, ToolOutput

__all__ = ["ToolInput", "ToolOutput"]
