"""Fund account model."""

from dataclasses import dataclass

from fundstat.domain.models.enums import AccountCategory


@dataclass(frozen=True)
class FundAccount:
    """A registered fund account."""

    id: str
    name: str
    category: AccountCategory
    description: str

    @property
    def is_counted(self) -> bool:
        """Whether the account contributes to fund totals."""
        return self.category != AccountCategory.OTHER
