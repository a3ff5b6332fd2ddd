"""Prompt template tests."""

import pytest

from tutorlab.utils import get_available_prompts, load_prompt, render_prompt

PROMPT_FIELDS = {
    "chat": dict(topic_context="Rust", history="", user_input="Why?"),
    "evaluate_explanation": dict(original_context="c", prompt_text="p", user_answer="a"),
    "evaluate_fill_blank": dict(correct_answer="blue", question_text="Sky is ___", user_answer="azure"),
    "generate_article": dict(separator="|||", summary="s", title="t"),
    "generate_curriculum": dict(content="c", difficulty="college", math_guideline="m", num_questions=7, topic="t"),
    "generate_feed": dict(current_date="2024-01-01", existing_titles="- (none)", topics="Science"),
    "generate_feed_item": dict(query="tides"),
    "generate_lesson": dict(difficulty="college", math_guideline="m", num_questions=7, title="t"),
    "generate_modules": dict(content="c", difficulty="college", math_guideline="m", num_questions=7, topic="t"),
    "related_topics": dict(topic="t"),
}


class TestPromptTemplates:
    """Test that every shipped template loads and renders."""

    def test_all_templates_present(self):
        assert get_available_prompts() == sorted(PROMPT_FIELDS)

    @pytest.mark.parametrize("name", sorted(PROMPT_FIELDS))
    def test_template_renders(self, name):
        config = load_prompt(name)
        assert "user_template" in config
        text, meta = render_prompt(name, schema="{}", **PROMPT_FIELDS[name])
        assert "temperature" in meta
        assert "{" not in text.replace("{}", "")

    def test_system_prepended(self):
        text, _ = render_prompt("chat", **PROMPT_FIELDS["chat"])
        assert "\n\n---\n\n" in text
        assert text.index("chat window") < text.index("Why?")

    def test_missing_template(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_prompt("nope", prompts_dir=tmp_path)
        assert get_available_prompts(tmp_path) == []
