"""Tests for prompt loader."""
import pytest
from app.core.extraction.prompt_loader import PromptLoader


class TestPromptLoader:
    def test_load_extraction_config(self, tmp_path):
        prompts_dir = tmp_path / "prompts" / "extraction"
        prompts_dir.mkdir(parents=True)
        (prompts_dir / "medical_bills.yaml").write_text("""
system_prompt: "Test system prompt"
user_prompt: "Test user prompt"
""")
        loader = PromptLoader(tmp_path / "prompts")
        config = loader.load("medical_bills")

        assert config["system_prompt"] == "Test system prompt"
        assert config["user_prompt"] == "Test user prompt"

    def test_load_missing_config_raises(self, tmp_path):
        loader = PromptLoader(tmp_path / "prompts")

        with pytest.raises(FileNotFoundError):
            loader.load("nonexistent")
        assert loader.exists("nonexistent") is False

    def test_load_from_chronology_directory(self, tmp_path):
        chronology_dir = tmp_path / "prompts" / "chronology"
        chronology_dir.mkdir(parents=True)
        (chronology_dir / "narrative.yaml").write_text('user_prompt: "Write it"\n')

        loader = PromptLoader(tmp_path / "prompts")

        assert loader.exists("narrative")
        assert loader.load("narrative")["user_prompt"] == "Write it"

    def test_render_substitutes_placeholders_and_keeps_braces(self, tmp_path):
        prompts_dir = tmp_path / "prompts"
        prompts_dir.mkdir(parents=True)
        (prompts_dir / "classification.yaml").write_text("""
system_prompt: "You classify documents."
user_prompt: |
  Return {"category": "X"}
  Text: $document_text
""")
        loader = PromptLoader(prompts_dir)
        rendered = loader.render("classification", document_text="ER visit")

        assert '{"category": "X"}' in rendered.prompt
        assert "Text: ER visit" in rendered.prompt
        assert rendered.system == "You classify documents."

    def test_caching_returns_same_object(self, tmp_path):
        prompts_dir = tmp_path / "prompts" / "extraction"
        prompts_dir.mkdir(parents=True)
        (prompts_dir / "test.yaml").write_text("key: value")

        loader = PromptLoader(tmp_path / "prompts")

        assert loader.load("test") is loader.load("test")

    def test_clear_cache(self, tmp_path):
        prompts_dir = tmp_path / "prompts" / "extraction"
        prompts_dir.mkdir(parents=True)
        (prompts_dir / "test.yaml").write_text("key: value")

        loader = PromptLoader(tmp_path / "prompts")
        config1 = loader.load("test")
        loader.clear_cache()
        config2 = loader.load("test")

        assert config1 is not config2

    def test_bundled_prompts_render(self):
        """Shipped prompt files load and carry a document placeholder."""
        loader = PromptLoader()
        for name in ("classification", "medical_records", "medical_bills",
                     "police_report", "wage_documentation", "medical_events"):
            rendered = loader.render(name, document_text="SAMPLE-TEXT")
            assert "SAMPLE-TEXT" in rendered.prompt
