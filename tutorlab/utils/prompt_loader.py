"""
Prompt loader utility for TutorLab.

Loads YAML prompt templates from the packaged prompts/ directory.
"""

from pathlib import Path
from typing import Any
import yaml


# Default prompts directory (shipped inside the package)
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def load_prompt(name: str, prompts_dir: Path | None = None) -> dict[str, Any]:
    """
    Load a prompt template by name.

    Args:
        name: Prompt name without .yaml extension (e.g., "generate_lesson")
        prompts_dir: Optional custom prompts directory

    Returns:
        Dict containing the parsed YAML prompt template with keys:
        - meta: version, temperature
        - system: optional system prompt string
        - user_template: user prompt template with {placeholders}

    Raises:
        FileNotFoundError: If prompt file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    dir_path = prompts_dir or PROMPTS_DIR
    file_path = dir_path / f"{name}.yaml"

    if not file_path.exists():
        raise FileNotFoundError(f"Prompt template not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def format_prompt(template: str, **kwargs) -> str:
    """
    Format a prompt template with provided values.

    Args:
        template: Template string with {placeholders}
        **kwargs: Values to substitute

    Returns:
        Formatted prompt string
    """
    return template.format(**kwargs)


def render_prompt(name: str, prompts_dir: Path | None = None, **kwargs) -> tuple[str, dict[str, Any]]:
    """
    Load a template and build the full prompt text.

    The system section (if any) is prepended to the formatted user
    template, separated by a horizontal rule.

    Returns:
        Tuple of (prompt text, meta dict)
    """
    config = load_prompt(name, prompts_dir)
    user_prompt = format_prompt(config.get("user_template", ""), **kwargs)
    system_prompt = (config.get("system") or "").strip()
    if system_prompt:
        user_prompt = f"{system_prompt}\n\n---\n\n{user_prompt}"
    return user_prompt, config.get("meta", {})


def get_available_prompts(prompts_dir: Path | None = None) -> list[str]:
    """
    List all available prompt templates.

    Args:
        prompts_dir: Optional custom prompts directory

    Returns:
        List of prompt names (without .yaml extension)
    """
    dir_path = prompts_dir or PROMPTS_DIR
    if not dir_path.exists():
        return []
    return sorted(p.stem for p in dir_path.glob("*.yaml"))
