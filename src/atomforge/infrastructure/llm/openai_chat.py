"""
OpenAI-compatible decomposition service.

Works against OpenAI itself or any server exposing the chat completions API
(Ollama, vLLM, LM Studio).
"""

import json
import re
from dataclasses import dataclass
from typing import Any, cast

from atomforge.domain.exceptions import DecompositionError
from atomforge.domain.interfaces import DecomposerInterface
from atomforge.domain.models import Atom, Decomposition, DecompositionUnit

DEFAULT_OPENAI_URL = "https://api.openai.com/v1"

SYSTEM_PROMPT = (
    "You are an expert software architect. You decompose requests into atomic "
    "units of work and answer with a single JSON object only."
)

PLANNING_PROMPT = """Decompose the following request into atomic tasks ("atoms").

Abstractions first:
1. Identify all nouns (entities / DTOs) and define them as DTO atoms FIRST
2. Identify all verbs (capabilities) and define them as interface atoms SECOND
3. Only THEN define implementation atoms that implement the interfaces
4. Add test atoms last

Request: {request}

Context: {context}

Answer with JSON of this exact shape:
{{"atoms": [
  {{"id": "atom_001", "name": "UserDto", "description": "DTO model for user information", "dependencies": []}},
  {{"id": "atom_002", "name": "IUserRepository", "description": "Interface for user data access", "dependencies": ["atom_001"]}},
  {{"id": "atom_003", "name": "FileUserRepository", "description": "Repository implementation storing users in a file", "dependencies": ["atom_001", "atom_002"]}}
]}}
Mention the kind (dto, model, interface, implementation, repository, service, controller, test) in each description."""

REPAIR_PROMPT = """The following task decomposition has a circular dependency:

{cycle}

Current atoms:
{atoms}

Refactor the plan so the cycle disappears, introducing an interface where a
concrete dependency points the wrong way (dependency inversion). Keep ids of
unchanged atoms. Answer with the complete updated atom list in the same JSON
shape: {{"atoms": [{{"id": ..., "name": ..., "description": ..., "dependencies": [...]}}]}}"""


@dataclass
class OpenAIDecomposerConfig:
    """Configuration for OpenAIDecomposer.

    This typed config ensures unknown fields are rejected at construction time.
    """

    model: str = "gpt-4o-mini"
    base_url: str = DEFAULT_OPENAI_URL
    api_key: str | None = None  # Falls back to OPENAI_API_KEY
    timeout: float = 120.0
    temperature: float = 0.2


class OpenAIDecomposer(DecomposerInterface):
    """Decomposes requests through an OpenAI-compatible chat completions API."""

    config_class = OpenAIDecomposerConfig

    def __init__(
        self,
        config: OpenAIDecomposerConfig | None = None,
        client: Any = None,
        **kwargs: Any,
    ):
        """
        Args:
            config: Typed configuration object (preferred)
            client: Pre-built ``AsyncOpenAI`` client (tests inject a fake)
            **kwargs: Config fields when no config object is given
        """
        if config is None:
            config = OpenAIDecomposerConfig(**kwargs)
        self._config = config

        if client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as err:
                raise ImportError("openai library required: pip install openai") from err

            client = AsyncOpenAI(
                base_url=config.base_url,
                api_key=config.api_key,
                timeout=config.timeout,
            )
        self._client = client

    async def decompose(self, request: str, context: str = "") -> Decomposition:
        prompt = PLANNING_PROMPT.format(request=request, context=context or "(none)")
        content = await self._complete(prompt)
        return self._parse_units(content)

    async def repair_cycle(
        self, cycle: tuple[str, ...], atoms: list[Atom]
    ) -> Decomposition | None:
        atom_lines = "\n".join(
            f"- {a.atom_id}: {a.name} [{a.kind.value}, {a.layer}] "
            f"(depends on: {', '.join(a.dependencies) or 'nothing'})"
            for a in atoms
        )
        prompt = REPAIR_PROMPT.format(cycle=" -> ".join(cycle), atoms=atom_lines)
        content = await self._complete(prompt)
        return self._parse_units(content)

    async def _complete(self, prompt: str) -> str:
        from openai import OpenAIError

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=cast(Any, messages),
                temperature=self._config.temperature,
            )
        except OpenAIError as e:
            raise DecompositionError(f"Decomposition request failed: {e}") from e

        if not response.choices:
            raise DecompositionError("Decomposition response had no choices")
        return response.choices[0].message.content or ""

    def _parse_units(self, content: str) -> Decomposition:
        """Parse the model's JSON answer into a Decomposition."""
        payload = self._extract_json(content)
        if not payload:
            raise DecompositionError("Decomposition response contained no JSON", transient=True)

        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            raise DecompositionError(f"Invalid JSON in decomposition: {e}") from e

        raw_units = data.get("atoms") if isinstance(data, dict) else data
        if not isinstance(raw_units, list):
            raise DecompositionError("Decomposition JSON has no 'atoms' list")

        units = []
        for index, item in enumerate(raw_units):
            if not isinstance(item, dict) or not item.get("id"):
                raise DecompositionError(f"Atom #{index + 1} is missing an id")
            dependencies = item.get("dependencies") or []
            if not isinstance(dependencies, list):
                raise DecompositionError(f"Atom {item['id']} has non-list dependencies")
            units.append(
                DecompositionUnit(
                    unit_id=str(item["id"]),
                    description=str(item.get("description", "")),
                    dependency_ids=tuple(str(d) for d in dependencies),
                    name=str(item.get("name", "")),
                )
            )
        return Decomposition(units=tuple(units))

    def _extract_json(self, content: str) -> str:
        """Extract a JSON document from a chat response."""
        if not content or content.isspace():
            return ""

        stripped = content.strip()
        if stripped[0] in "[{":
            return stripped

        # Try json block
        match = re.search(r"```json\s*\n(.*?)\n```", content, re.DOTALL)
        if match:
            return match.group(1)

        # Try generic block
        match = re.search(r"```\s*\n(.*?)\n```", content, re.DOTALL)
        if match:
            return match.group(1)

        # Fall back to the outermost braces
        start, end = content.find("{"), content.rfind("}")
        if start != -1 and end > start:
            return content[start : end + 1]

        return ""
