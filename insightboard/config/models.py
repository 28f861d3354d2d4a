"""Configuration models for InsightBoard."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ParserConfig(BaseModel):
    """Transcript parser selection."""

    mode: str = Field(default="auto", description="auto, mock or llm")
    max_tasks: int = Field(default=100, description="Max tasks kept from one parse")


class LLMConfig(BaseModel):
    """OpenAI task extraction configuration."""

    model: str = Field(default="gpt-4o-mini", description="Chat completion model")
    api_key_env: str = Field(default="OPENAI_API_KEY", description="API key env var name")
    timeout_sec: float = Field(default=60, description="Request timeout")
    max_transcript_chars: int = Field(
        default=120_000,
        description="Transcript characters sent to the model",
    )
    temperature: float = Field(default=0.2, description="Sampling temperature")


class TranscriptConfig(BaseModel):
    """Transcript input limits."""

    max_length: int = Field(default=10_000_000, description="Max transcript characters")


class StorageConfig(BaseModel):
    """Persistence configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data_dir: Path = Field(
        default=Path(".insightboard/data"),
        description="Directory holding transcripts, tasks and jobs",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = Field(default="INFO", description="Log level")
    log_dir: Path = Field(default=Path(".insightboard/logs"), description="Log directory")
    rotation_mb: int = Field(default=10, description="Log rotation size (MB)")
    retention_days: int = Field(default=7, description="Log retention days")


class InsightBoardConfig(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    parser: ParserConfig = Field(default_factory=ParserConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    transcript: TranscriptConfig = Field(default_factory=TranscriptConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
