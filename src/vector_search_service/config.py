from typing import Optional

from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    azure_search_endpoint: AnyHttpUrl
    azure_search_key: SecretStr
    azure_search_index_name: str = "vector-search-demo"

    openai_api_key: SecretStr
    embedding_model: str = "text-embedding-ada-002"
    embedding_dimensions: int = 1536
    embedding_base_url: str = "https://api.openai.com/v1/embeddings"
    embedding_timeout: float = 60.0

    # When set, embeddings go through an Azure OpenAI deployment instead
    azure_openai_endpoint: Optional[AnyHttpUrl] = None
    azure_openai_deployment: str = "text-embedding-ada-002"
    azure_openai_api_version: str = "2023-05-15"

    vector_algorithm_name: str = "my-hnsw-config"
    vector_profile_name: str = "my-vector-profile"
    semantic_config_name: str = "my-semantic-config"

    default_k: int = 3
    default_top: int = 3
    # Forwarded as query_language only when set
    query_language: Optional[str] = None

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
