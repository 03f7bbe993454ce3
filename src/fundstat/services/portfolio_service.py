"""Account balances from the ledger."""

import logging

from fundstat.core.exceptions import LedgerQueryError, NotFoundError, ValidationError
from fundstat.domain.models import AssetKind, AssetRef, is_valid_account_id
from fundstat.domain.views import AccountPortfolio, AccountRecord, TokenBalance
from fundstat.providers.ledger_provider import LedgerProvider

logger = logging.getLogger(__name__)

_CREDIT_KINDS = {AssetKind.CREDIT_ALPHANUM4.value, AssetKind.CREDIT_ALPHANUM12.value}


def portfolio_from_account(record: AccountRecord) -> AccountPortfolio:
    """
    Split an account record into native balance and credit token balances.

    Liquidity pool shares and entries without code or issuer are skipped.
    """
    portfolio = AccountPortfolio(account_id=record.account_id)
    for balance in record.balances:
        if balance.asset_type == AssetKind.NATIVE.value:
            portfolio.native_balance = balance.balance
            continue
        if balance.asset_type not in _CREDIT_KINDS:
            continue
        if not balance.asset_code or not balance.asset_issuer:
            continue
        portfolio.tokens.append(
            TokenBalance(
                asset=AssetRef(
                    code=balance.asset_code,
                    issuer=balance.asset_issuer,
                    kind=AssetKind(balance.asset_type),
                ),
                balance=balance.balance,
                limit=balance.limit,
            )
        )
    return portfolio


class PortfolioService:
    """Service for reading account holdings."""

    def __init__(self, ledger: LedgerProvider):
        self._ledger = ledger

    async def get_account_portfolio(self, account_id: str) -> AccountPortfolio:
        """
        Load an account's native balance and token balances.

        Raises:
            ValidationError: If account_id is not a valid account id.
            NotFoundError: If the account does not exist on the ledger.
            LedgerQueryError: If the account cannot be loaded.
        """
        if not is_valid_account_id(account_id):
            raise ValidationError(f"Invalid account id: {account_id}")
        try:
            record = await self._ledger.load_account(account_id)
        except LedgerQueryError as exc:
            if exc.status_code == 404:
                raise NotFoundError("Account", account_id) from exc
            raise
        portfolio = portfolio_from_account(record)
        logger.info("Loaded %d token balances for %s", len(portfolio.tokens), account_id)
        return portfolio
