import re

from pydantic import BaseModel, ConfigDict

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class Prompt(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    version: str
    description: str
    inputs: dict[str, str]
    template: str

    def render(self, **values: object) -> str:
        """Fill `{{ input }}` placeholders. Every declared input is required."""
        missing = sorted(set(self.inputs) - set(values))
        if missing:
            raise ValueError(
                f"Prompt '{self.name}' missing inputs: {', '.join(missing)}"
            )

        def _substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            return str(values[key]) if key in values else match.group(0)

        return PLACEHOLDER_PATTERN.sub(_substitute, self.template)
