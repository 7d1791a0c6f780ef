"""Settings for the chat hub backend with observability configuration."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	secret_key: str = _env_field("change-me", "SECRET_KEY")
	jwt_issuer: str = _env_field("socialmedia-api", "JWT_ISSUER")
	jwt_audience: str = _env_field("socialmedia-fe", "JWT_AUDIENCE")

	chat_namespace: str = _env_field("/hubs/chat", "CHAT_NAMESPACE")
	chat_max_attachments: int = _env_field(10, "CHAT_MAX_ATTACHMENTS")
	chat_max_message_length: int = _env_field(4000, "CHAT_MAX_MESSAGE_LENGTH")
	# Prefix joined with an attachment's file path to build its public URL
	media_base_url: str = _env_field("http://localhost:8000", "MEDIA_BASE_URL")

	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
	obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("socialmedia-chat", "SERVICE_NAME")
	git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

	cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	def is_prod(self) -> bool:
		return self.environment.lower() in ("prod", "production", "live")

	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")

	@field_validator("cors_allow_origins", mode="before")
	@classmethod
	def _split_cors(cls, value):
		if value in (None, ""):
			return ()
		if isinstance(value, str):
			return tuple(part.strip() for part in value.split(",") if part.strip())
		if isinstance(value, (list, tuple, set)):
			return tuple(str(item).strip() for item in value if str(item).strip())
		return ()

	@field_validator("obs_log_level", mode="after")
	@classmethod
	def _normalise_level(cls, value: str) -> str:
		return value.upper()


settings = Settings()
