"""Protocol shared by value providers behind [provider.name] tokens."""

from typing import Protocol
import pandas as pd


class ValueProvider(Protocol):
    """
    A source of realistic values for one token name, e.g. faker.email.

    The token engine draws one value per placeholder; sample(n) exists so a
    provider can also fill a whole column at once.
    """

    def sample(self, n: int, **kwargs) -> pd.Series:
        """
        Draw n values.

        Args:
            n: Number of values
            **kwargs: Provider-specific arguments

        Returns:
            Series of n values
        """
        ...
