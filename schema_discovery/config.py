"""
Configuration management for the Schema Discovery Agent.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class OrchestratorConfig:
    """Configuration for the completion model driving the loop."""
    api_key: str = os.getenv("OPENAI_API_KEY", "")
    base_url: str = os.getenv("OPENAI_BASE_URL", "")
    model: str = os.getenv("ORCHESTRATOR_MODEL", "gpt-4o")
    temperature: float = float(os.getenv("ORCHESTRATOR_TEMPERATURE", "1.0"))
    max_steps: int = int(os.getenv("MAX_ORCHESTRATION_STEPS", "5"))


@dataclass
class ToolConfig:
    """Configuration for the file and analysis tools."""
    sample_files_dir: str = os.getenv("SAMPLE_FILES_DIR", "sample_files")
    schema_model: str = os.getenv("SCHEMA_MODEL", "gpt-4o")
    # Low temperature keeps schema analysis consistent between chunks
    schema_temperature: float = float(os.getenv("SCHEMA_TEMPERATURE", "0.1"))
    max_content_chars: int = int(os.getenv("MAX_TOOL_CONTENT_CHARS", "20000"))


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("SERVER_PORT", "8000"))
    workers: int = int(os.getenv("SERVER_WORKERS", "1"))
    reload: bool = os.getenv("SERVER_RELOAD", "false").lower() == "true"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    orchestrator: OrchestratorConfig
    tools: ToolConfig
    server: ServerConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config(
        orchestrator=OrchestratorConfig(),
        tools=ToolConfig(),
        server=ServerConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
