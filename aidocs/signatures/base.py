"""Contract for pluggable function-signature extractors."""

from abc import ABC, abstractmethod
from typing import List

from ..models import FunctionSignature


class SignatureExtractor(ABC):
    """Lists the top-level function declarations of one source dialect."""

    dialect: str = ""

    @abstractmethod
    def extract(self, source: str, *, library: str = "<source>") -> List[FunctionSignature]:
        """Return top-level declarations in source order.

        Raises ParseFailure when ``source`` is not valid for this dialect.
        """
