from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from logseq_rag.config import Settings

ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "EMBEDDING_PROVIDER",
    "LLM_PROVIDER",
    "LLM_MODEL",
    "CLAUDE_MODEL",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSIONS",
    "QDRANT_URL",
    "LOGSEQ_PATH",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "TOP_K_RESULTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _settings(**overrides) -> Settings:
    values = {"openai_api_key": "sk-test", "anthropic_api_key": "sk-ant-test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings()

        assert settings.embedding_model == "text-embedding-3-small"
        assert settings.embedding_dimensions == 1536
        assert settings.llm_provider == "anthropic"
        assert settings.qdrant_url == "http://localhost:6333"
        assert settings.qdrant_collection_name == "logseq-notes"
        assert settings.chunk_size == 800
        assert settings.chunk_overlap == 200
        assert settings.top_k_results == 100
        assert settings.logseq_path is None

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
        monkeypatch.setenv("CLAUDE_MODEL", "claude-test")
        monkeypatch.setenv("LOGSEQ_PATH", str(tmp_path))
        monkeypatch.setenv("TOP_K_RESULTS", "20")

        settings = Settings(_env_file=None)

        assert settings.llm_model == "claude-test"
        assert settings.logseq_path == tmp_path
        assert settings.top_k_results == 20

    def test_missing_anthropic_key(self) -> None:
        with pytest.raises(ValidationError, match="ANTHROPIC_API_KEY is required"):
            Settings(_env_file=None, openai_api_key="sk-test")

    def test_missing_openai_key_for_embeddings(self) -> None:
        with pytest.raises(ValidationError, match="OPENAI_API_KEY is required"):
            Settings(_env_file=None, anthropic_api_key="sk-ant-test")

    def test_local_embeddings_do_not_need_openai(self) -> None:
        settings = Settings(
            _env_file=None, anthropic_api_key="sk-ant-test", embedding_provider="local"
        )

        assert settings.embeddings_config().provider == "local"

    @pytest.mark.parametrize("url", ["localhost:6333", "ftp://qdrant"])
    def test_rejects_non_http_qdrant_url(self, url: str) -> None:
        with pytest.raises(ValidationError, match="qdrant_url must be an http"):
            _settings(qdrant_url=url)

    def test_strips_trailing_slash(self) -> None:
        assert _settings(qdrant_url="https://qdrant.example/").qdrant_url == (
            "https://qdrant.example"
        )

    def test_rejects_overlap_not_below_size(self) -> None:
        with pytest.raises(ValidationError, match="chunk_overlap must be < chunk_size"):
            _settings(chunk_size=100, chunk_overlap=100)

    def test_rejects_non_positive_sizes(self) -> None:
        with pytest.raises(ValidationError):
            _settings(chunk_size=0, chunk_overlap=0)
        with pytest.raises(ValidationError):
            _settings(top_k_results=0)


class TestSettingsFactories:
    def test_embeddings_config(self) -> None:
        config = _settings(embedding_dimensions=256, index_batch_size=50).embeddings_config()

        assert config.provider == "openai"
        assert config.api_key == "sk-test"
        assert config.dimensions == 256
        assert config.batch_size == 50

    def test_llm_config_uses_provider_key(self) -> None:
        assert _settings().llm_config().api_key == "sk-ant-test"
        openai_config = _settings(llm_provider="openai", llm_model="gpt-4o-mini").llm_config()
        assert openai_config.api_key == "sk-test"
        assert openai_config.model == "gpt-4o-mini"

    def test_create_chunker(self) -> None:
        chunker = _settings(chunk_size=400, chunk_overlap=50).create_chunker()

        assert chunker.chunk_size == 400
        assert chunker.chunk_overlap == 50


class TestLocalEmbeddingSettings:
    def test_local_provider_gets_its_own_default_model(self) -> None:
        settings = Settings(
            _env_file=None, anthropic_api_key="sk-ant-test", embedding_provider="local"
        )

        assert settings.embedding_model == "all-MiniLM-L6-v2"
        assert settings.embedding_dimensions is None
        assert settings.embeddings_config().model == "all-MiniLM-L6-v2"

    def test_explicit_local_model_is_kept(self) -> None:
        settings = Settings(
            _env_file=None,
            anthropic_api_key="sk-ant-test",
            embedding_provider="local",
            embedding_model="BAAI/bge-small-en-v1.5",
        )

        assert settings.embedding_model == "BAAI/bge-small-en-v1.5"

    def test_vector_store_is_sized_from_the_embeddings_client(self) -> None:
        settings = Settings(
            _env_file=None, anthropic_api_key="sk-ant-test", embedding_provider="local"
        )

        with patch("logseq_rag.config.QdrantVectorStore") as mock_store:
            settings.create_vector_store(vector_size=384)

        assert mock_store.call_args.kwargs["vector_size"] == 384

    def test_vector_store_without_known_size_raises(self) -> None:
        settings = Settings(
            _env_file=None, anthropic_api_key="sk-ant-test", embedding_provider="local"
        )

        with pytest.raises(ValueError, match="set EMBEDDING_DIMENSIONS"):
            settings.create_vector_store()

    def test_openai_store_falls_back_to_configured_dimensions(self) -> None:
        with patch("logseq_rag.config.QdrantVectorStore") as mock_store:
            _settings().create_vector_store(vector_size=None)

        assert mock_store.call_args.kwargs["vector_size"] == 1536
