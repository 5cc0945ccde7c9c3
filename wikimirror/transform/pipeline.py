"""Ordered HTML rewrites applied between rendering and publication."""

from abc import ABC, abstractmethod
from collections.abc import Iterable


class Transform(ABC):
    """One textual rewrite of a rendered HTML document."""

    @abstractmethod
    def apply(self, content: str) -> str:
        ...


class TransformPipeline:
    """Runs transforms strictly in the order given.

    Later rules see the output of earlier ones: the suffix rewrite has to run
    before the extensionless rewrite, which then skips the ``.html`` targets
    it produced. The order is fixed at construction.
    """

    def __init__(self, transforms: Iterable[Transform]):
        self.transforms = tuple(transforms)

    def __len__(self) -> int:
        return len(self.transforms)

    def apply(self, html: str) -> str:
        for transform in self.transforms:
            html = transform.apply(html)
        return html
