import yaml
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict

PROMPTS_PATH = Path(__file__).with_name("prompts.yaml")

class Mode(str, Enum):
    SUMMARY = "summary"
    THREAD = "thread"

@lru_cache()
def _load_all() -> Dict[str, Dict[str, str]]:
    with open(PROMPTS_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)

def load_prompt(mode: Mode) -> Dict[str, str]:
    prompts = _load_all()
    if mode.value not in prompts:
        raise KeyError(f"Prompt for mode {mode.value!r} not found in {PROMPTS_PATH.name}")
    return prompts[mode.value]

def build_messages(content: str, user_prompt: str, mode: Mode):
    """
    Builds the chat messages for one completion.
    The user message carries the fenced content followed by mode-specific instructions.
    """
    prompt = load_prompt(mode)
    if user_prompt:
        instructions = prompt["instructions_with_prompt"].format(user_prompt=user_prompt)
    else:
        instructions = prompt["instructions"]

    user_message = f"Content:\n```\n{content}\n```\n\n{instructions}"
    return [
        {"role": "system", "content": prompt["system"].strip()},
        {"role": "user", "content": user_message},
    ]
