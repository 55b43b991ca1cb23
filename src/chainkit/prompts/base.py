# File: src/chainkit/prompts/base.py

from abc import abstractmethod
from string import Formatter
from typing import Any, Dict, Generic, List, TypeVar

from ..core.runnables import Runnable, RunnableConfig

PromptOutput = TypeVar("PromptOutput")

def get_template_variables(template: str) -> List[str]:
    """Return the `{placeholders}` of a str.format template, in order of appearance."""
    variables: List[str] = []
    for _, field_name, _, _ in Formatter().parse(template):
        if field_name and field_name not in variables:
            variables.append(field_name)
    return variables

def format_template(template: str, variables: Dict[str, Any]) -> str:
    try:
        return template.format(**variables)
    except KeyError as e:
        raise ValueError(f"Missing value for prompt variable {e.args[0]!r}. Got: {sorted(variables)}") from e

class BasePromptTemplate(Runnable[Dict[str, Any], PromptOutput], Generic[PromptOutput]):
    """
    Abstract base class for a prompt template.
    It takes a dictionary of variables and returns the formatted prompt.
    A non-dict input is accepted when the template has exactly one variable.
    """

    @property
    @abstractmethod
    def input_variables(self) -> List[str]:
        """Names of the variables the template expects."""

    @abstractmethod
    def format_prompt(self, **kwargs: Any) -> PromptOutput:
        """Format the prompt with the given variables."""
        pass

    def _coerce_input(self, input: Any) -> Dict[str, Any]:
        if isinstance(input, dict):
            return input
        if len(self.input_variables) == 1:
            return {self.input_variables[0]: input}
        raise ValueError(
            f"{type(self).__name__} expects a dict with keys {self.input_variables}, got {type(input).__name__}"
        )

    async def invoke(self, input: Dict[str, Any], config: RunnableConfig | None = None) -> PromptOutput:
        return self.format_prompt(**self._coerce_input(input))
