import pytest

from matter_rag.config import ChunkingConfig, GlobalConfig, RetrievalConfig
from matter_rag.config.global_config import DEFAULT_JURISDICTION, DEFAULT_PROMPTS


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


def test_load_expands_environment_variables(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "sk-test")
    path = _write(
        tmp_path,
        "generator_llm:\n"
        "  type: OpenAIChatLike\n"
        "  model_name: gpt-test\n"
        "  api_key: ${TEST_LLM_KEY}\n",
    )

    cfg = GlobalConfig.load(path)

    assert cfg.generator_llm["api_key"] == "sk-test"
    assert cfg.config_path == path.resolve()


def test_defaults_when_sections_missing():
    cfg = GlobalConfig({})

    assert cfg.chunking == ChunkingConfig()
    assert cfg.retrieval == RetrievalConfig()
    assert cfg.retrieval.context_limit == 200
    assert cfg.jurisdiction == DEFAULT_JURISDICTION
    assert cfg.prompts == DEFAULT_PROMPTS
    assert cfg.passage_store == {}


def test_missing_generator_llm_raises():
    with pytest.raises(KeyError):
        GlobalConfig({}).generator_llm


def test_sections_are_parsed_and_unknown_keys_ignored():
    cfg = GlobalConfig({
        "chunking": {"chunk_size": 800, "overlap": 100, "unused": True},
        "retrieval": {"search_limit": 10, "context_limit": None, "strategies": ["sample"]},
        "analysis": {"jurisdiction": "Cayman Islands"},
    })

    assert cfg.chunking.chunk_size == 800
    assert cfg.chunking.overlap == 100
    assert cfg.chunking.max_chunk_length == 1200
    assert cfg.retrieval.search_limit == 10
    assert cfg.retrieval.context_limit is None
    assert cfg.retrieval.strategies == ("sample",)
    assert cfg.jurisdiction == "Cayman Islands"


def test_invalid_chunking_section_raises():
    with pytest.raises(ValueError):
        GlobalConfig({"chunking": {"chunk_size": 100, "overlap": 150}}).chunking
    with pytest.raises(TypeError):
        GlobalConfig({"chunking": ["not", "a", "mapping"]}).chunking


def test_resolve_path_relative_to_config_file(tmp_path):
    path = _write(tmp_path, "passage_store:\n  persist_path: data/passages.json\n")
    cfg = GlobalConfig.load(path)

    assert cfg.resolve_path(cfg.passage_store["persist_path"]) == (tmp_path / "data" / "passages.json").resolve()
    assert GlobalConfig({}).resolve_path("rel.json").as_posix() == "rel.json"
