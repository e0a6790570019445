from .settings import ToolSettings
from .tool_config import ToolConfig, ConfigError
