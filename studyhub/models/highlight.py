"""Highlight (numbered note annotation) models for studyhub."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field


class Highlight(BaseModel):
    """An annotation reconstructed from note markup.

    `text`, `category` and `number` are always derived from the markup;
    only `commentary` and `is_expanded` come from the sidecar.
    """

    id: str = Field(..., description="Permanent id (UUID, or legacy '{category}-{n}')")
    category: str = Field(..., description="Key into the category map")
    number: int = Field(..., description="Display number, contiguous 1..K within the category")
    text: str = Field(..., description="Exact text the annotation covers")
    commentary: str = Field("", description="User-authored notes")
    is_expanded: bool = Field(False, description="UI-only toggle")


class HighlightSidecarEntry(BaseModel):
    """User-authored fields persisted alongside note content."""

    id: str
    commentary: str = ""
    isExpanded: bool = False


class HighlightCategory(BaseModel):
    """Display metadata for one category."""

    key: str
    name: str
    color: str
    border_color: Optional[str] = None
    prompts: Tuple[str, ...] = ()

    class Config:
        """Pydantic configuration."""
        frozen = True


class HighlightCategories(Mapping):
    """Immutable category map threaded explicitly through the highlight engine."""

    def __init__(self, categories: List[HighlightCategory]):
        self._by_key: Mapping[str, HighlightCategory] = MappingProxyType({c.key: c for c in categories})

    def __getitem__(self, key: str) -> HighlightCategory:
        return self._by_key[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_key)

    def __len__(self) -> int:
        return len(self._by_key)

    def __repr__(self) -> str:
        return f"HighlightCategories({list(self._by_key)!r})"

    @property
    def keys_in_order(self) -> List[str]:
        return list(self._by_key)


DEFAULT_HIGHLIGHT_CATEGORIES = HighlightCategories(
    [
        HighlightCategory(
            key="red",
            name="Key Definition",
            color="#ffcdd2",
            border_color="#f44336",
            prompts=(
                "Define this term in your own words",
                "Why is this definition important?",
                "What are the key components of this definition?",
            ),
        ),
        HighlightCategory(
            key="yellow",
            name="Key Principle",
            color="#fff9c4",
            border_color="#ffeb3b",
            prompts=(
                "Explain this principle step by step",
                "How does this principle apply in real situations?",
                "What would happen if this principle didn't exist?",
            ),
        ),
        HighlightCategory(
            key="green",
            name="Example",
            color="#c8e6c9",
            border_color="#4caf50",
            prompts=(
                "How does this example illustrate the concept?",
                "Can you think of similar examples?",
                "What makes this a good example?",
            ),
        ),
        HighlightCategory(
            key="blue",
            name="Review Later",
            color="#bbdefb",
            border_color="#2196f3",
            prompts=(
                "What questions do you have about this?",
                "What additional research is needed?",
                "How does this connect to other topics?",
            ),
        ),
    ]
)
