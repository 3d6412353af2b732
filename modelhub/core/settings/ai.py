"""AI provider settings: credentials, endpoints and request timeouts."""

from __future__ import annotations

from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from modelhub.infra.ai.providers.base import ProviderSettings

# Provider ids that have credentials in this settings model. The env var for a
# provider's key is AI_<ID>_API_KEY, its endpoint override AI_<ID>_BASE_URL.
CONFIGURABLE_PROVIDERS: tuple[str, ...] = (
    "openai",
    "anthropic",
    "google",
    "azure",
    "ollama",
    "openrouter",
    "cohere",
    "deepseek",
    "moonshot",
    "siliconflow",
    "tongyi",
    "volcengine",
    "hunyuan",
    "wenxin",
    "zhipuai",
    "minimax",
    "gitee_ai",
    "spark",
    "x",
)


class AISettings(BaseSettings):
    """AI provider configuration settings.

    Environment variables use AI_ prefix.
    Example: AI_DEFAULT_PROVIDER=openai, AI_OPENAI_API_KEY=sk-...

    Values here only seed ``ProviderSettings``; nothing is validated against
    the vendor until a model is first called.
    """

    # ===== Defaults =====
    default_provider: str = Field(
        default="openai",
        description="Provider id used when a caller does not name one",
    )
    default_model: str = Field(
        default="gpt-4o-mini",
        description="Language model id used when a caller does not name one",
    )
    request_timeout_seconds: float | None = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout handed to the HTTP client; None disables it",
    )

    # ===== API keys =====
    openai_api_key: SecretStr | None = Field(default=None, description="OpenAI API key")
    anthropic_api_key: SecretStr | None = Field(default=None, description="Anthropic API key")
    google_api_key: SecretStr | None = Field(default=None, description="Google AI (Gemini) API key")
    azure_api_key: SecretStr | None = Field(default=None, description="Azure OpenAI API key")
    ollama_api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for Ollama behind an authenticating proxy",
    )
    openrouter_api_key: SecretStr | None = Field(default=None, description="OpenRouter API key")
    cohere_api_key: SecretStr | None = Field(default=None, description="Cohere API key")
    deepseek_api_key: SecretStr | None = Field(default=None, description="DeepSeek API key")
    moonshot_api_key: SecretStr | None = Field(default=None, description="Moonshot (Kimi) API key")
    siliconflow_api_key: SecretStr | None = Field(default=None, description="SiliconFlow API key")
    tongyi_api_key: SecretStr | None = Field(default=None, description="Alibaba DashScope API key")
    volcengine_api_key: SecretStr | None = Field(default=None, description="Volcengine Ark API key")
    hunyuan_api_key: SecretStr | None = Field(default=None, description="Tencent Hunyuan API key")
    wenxin_api_key: SecretStr | None = Field(default=None, description="Baidu Qianfan API key")
    zhipuai_api_key: SecretStr | None = Field(default=None, description="Zhipu AI API key")
    minimax_api_key: SecretStr | None = Field(default=None, description="MiniMax API key")
    gitee_ai_api_key: SecretStr | None = Field(default=None, description="Gitee AI API key")
    spark_api_key: SecretStr | None = Field(default=None, description="iFlytek Spark API password")
    x_api_key: SecretStr | None = Field(default=None, description="xAI API key")

    # ===== Base URL overrides =====
    openai_base_url: str | None = Field(default=None, description="OpenAI endpoint override")
    anthropic_base_url: str | None = Field(default=None, description="Anthropic endpoint override")
    google_base_url: str | None = Field(default=None, description="Gemini endpoint override")
    azure_base_url: str | None = Field(
        default=None,
        description="Full Azure OpenAI base URL; takes precedence over azure_endpoint",
    )
    ollama_base_url: str | None = Field(
        default=None,
        description="Ollama API base URL, e.g. http://localhost:11434/api",
    )
    openrouter_base_url: str | None = Field(default=None, description="OpenRouter endpoint override")
    cohere_base_url: str | None = Field(default=None, description="Cohere endpoint override")
    deepseek_base_url: str | None = Field(default=None, description="DeepSeek endpoint override")
    moonshot_base_url: str | None = Field(default=None, description="Moonshot endpoint override")
    siliconflow_base_url: str | None = Field(default=None, description="SiliconFlow endpoint override")
    tongyi_base_url: str | None = Field(default=None, description="DashScope endpoint override")
    volcengine_base_url: str | None = Field(default=None, description="Volcengine endpoint override")
    hunyuan_base_url: str | None = Field(default=None, description="Hunyuan endpoint override")
    wenxin_base_url: str | None = Field(default=None, description="Qianfan endpoint override")
    zhipuai_base_url: str | None = Field(default=None, description="Zhipu AI endpoint override")
    minimax_base_url: str | None = Field(default=None, description="MiniMax endpoint override")
    gitee_ai_base_url: str | None = Field(default=None, description="Gitee AI endpoint override")
    spark_base_url: str | None = Field(default=None, description="Spark endpoint override")
    x_base_url: str | None = Field(default=None, description="xAI endpoint override")

    # Azure OpenAI specific
    azure_endpoint: str | None = Field(
        default=None,
        description="Azure OpenAI resource endpoint, e.g. https://my-resource.openai.azure.com",
    )
    azure_api_version: str = Field(
        default="2024-10-21",
        description="Azure OpenAI API version",
    )

    # OpenAI specific
    openai_organization: str | None = Field(default=None, description="OpenAI organization id")
    openai_project: str | None = Field(default=None, description="OpenAI project id")

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,  # Immutable settings
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("default_provider")
    @classmethod
    def _normalize_provider_id(cls, v: str) -> str:
        return v.strip().lower()

    def get_api_key(self, provider_id: str) -> str | None:
        """Return the plain-text API key configured for a provider.

        Args:
            provider_id: Provider id such as ``openai`` or ``gitee_ai``.

        Returns:
            The key, or None if the provider has no key configured.
        """
        secret = getattr(self, f"{provider_id}_api_key", None)
        if isinstance(secret, SecretStr):
            return secret.get_secret_value()
        return None

    def get_base_url(self, provider_id: str) -> str | None:
        """Return the configured base URL override for a provider, if any."""
        value = getattr(self, f"{provider_id}_base_url", None)
        return value if isinstance(value, str) else None

    def is_provider_configured(self, provider_id: str) -> bool:
        """Check whether a provider has enough configuration to be called.

        Ollama needs no key; Azure also needs an endpoint.
        """
        if provider_id == "ollama":
            return True
        if provider_id == "azure":
            has_endpoint = bool(self.azure_endpoint or self.azure_base_url)
            return has_endpoint and self.get_api_key("azure") is not None
        return self.get_api_key(provider_id) is not None

    def get_configured_providers(self) -> list[str]:
        """List provider ids that have credentials configured."""
        return [p for p in CONFIGURABLE_PROVIDERS if self.is_provider_configured(p)]

    def provider_settings(self, provider_id: str, **overrides: Any) -> ProviderSettings:
        """Build adapter settings for a provider from environment values.

        Args:
            provider_id: Provider id.
            **overrides: Explicit values that win over the environment
                (api_key, base_url, headers, timeout and vendor extras).

        Returns:
            ProviderSettings ready to pass to ``ProviderRegistry.get``.

        Example:
            settings = get_ai_settings()
            provider = registry.get("deepseek", settings.provider_settings("deepseek"))
        """
        values: dict[str, Any] = {
            "api_key": self.get_api_key(provider_id),
            "base_url": self.get_base_url(provider_id),
            "timeout": self.request_timeout_seconds,
        }
        if provider_id == "azure":
            values["endpoint"] = self.azure_endpoint
            values["api_version"] = self.azure_api_version
        elif provider_id == "openai":
            values["organization"] = self.openai_organization
            values["project"] = self.openai_project
        values.update(overrides)
        return ProviderSettings.model_validate(values)
