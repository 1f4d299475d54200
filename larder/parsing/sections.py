import re
from typing import Optional

from pydantic import BaseModel

INGREDIENT_HEADERS = ("ingredients",)
INSTRUCTION_HEADERS = ("instructions", "directions", "steps", "method")

_SEPARATOR_RE = re.compile(r"^(?:-{3,}|#{3,}|//.*)$")
_STEP_NUMBER_RE = re.compile(r"^\d+[.)]\s*|^step\s+\d+[.:]\s*", re.IGNORECASE)


class RecipeSections(BaseModel):
    ingredient_lines: list[str] = []
    instructions: str = ""


def _find_header(lines: list[str], headers: tuple[str, ...]) -> Optional[int]:
    for index, line in enumerate(lines):
        lowered = line.lower()
        if any(lowered.startswith(header) for header in headers):
            return index
    return None


def _infer_break(lines: list[str]) -> Optional[int]:
    """
    Guess where an unlabeled ingredient list turns into instructions.
    Ingredient lines are short; the first markedly longer run of lines or the
    first numbered step marks the switch.
    """
    for index in range(3, len(lines) - 3):
        before = sum(len(line) for line in lines[index - 3:index]) / 3.0
        after = sum(len(line) for line in lines[index:index + 3]) / 3.0
        if after > before * 1.8:
            return index
        if re.match(r"^\d+\.", lines[index]) and not re.match(r"^\d+\.", lines[index - 1]):
            return index
    return None


def _join_instructions(lines: list[str]) -> str:
    steps: list[str] = []
    for line in lines:
        cleaned = _STEP_NUMBER_RE.sub("", line).strip()
        if not cleaned or _SEPARATOR_RE.match(cleaned):
            continue
        if _STEP_NUMBER_RE.match(line) or not steps:
            steps.append(cleaned)
        else:
            steps[-1] = f"{steps[-1]} {cleaned}"
    return "\n\n".join(steps)


def split_recipe_text(raw_text: str) -> RecipeSections:
    """Split pasted recipe text into ingredient lines and instructions."""
    lines = [line.strip() for line in (raw_text or "").split("\n") if line.strip()]
    if not lines:
        return RecipeSections()

    ingredient_start = _find_header(lines, INGREDIENT_HEADERS)
    instruction_start = _find_header(lines, INSTRUCTION_HEADERS)

    if ingredient_start is None and instruction_start is None:
        section_break = _infer_break(lines)
        if section_break is None:
            return RecipeSections(instructions=_join_instructions(lines))
        ingredient_lines = lines[:section_break]
        instruction_lines = lines[section_break:]
    else:
        if instruction_start is None:
            instruction_start = len(lines)
        first_ingredient = ingredient_start + 1 if ingredient_start is not None else 0
        ingredient_lines = lines[first_ingredient:instruction_start]
        instruction_lines = lines[instruction_start + 1:]
        if ingredient_start is not None and ingredient_start > instruction_start:
            # instructions were listed first
            ingredient_lines = lines[ingredient_start + 1:]
            instruction_lines = lines[instruction_start + 1:ingredient_start]

    return RecipeSections(
        ingredient_lines=[line for line in ingredient_lines if not _SEPARATOR_RE.match(line)],
        instructions=_join_instructions(instruction_lines),
    )
