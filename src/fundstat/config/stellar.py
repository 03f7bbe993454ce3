"""Ledger network configuration."""

from dataclasses import dataclass
from typing import Optional

from fundstat.config.settings import Settings, get_settings
from fundstat.core.exceptions import ConfigurationError

MAINNET = "mainnet"
TESTNET = "testnet"

_NETWORKS = {
    MAINNET: ("https://horizon.stellar.org", "Public Global Stellar Network ; September 2015"),
    TESTNET: ("https://horizon-testnet.stellar.org", "Test SDF Network ; September 2015"),
}


@dataclass(frozen=True)
class StellarConfig:
    """
    Resolved network endpoint and passphrase.

    The passphrase is only needed for signing transactions, which this service never does.
    """

    network: str
    horizon_url: str
    network_passphrase: str


def get_stellar_config(settings: Optional[Settings] = None) -> StellarConfig:
    """
    Resolve the ledger network from settings.

    Raises:
        ConfigurationError: If the configured network is unknown.
    """
    settings = settings or get_settings()
    network = (settings.stellar_network or "").strip().lower()
    if network not in _NETWORKS:
        raise ConfigurationError(
            "STELLAR_NETWORK",
            f"unknown network '{settings.stellar_network}', expected one of {sorted(_NETWORKS)}",
        )
    default_url, passphrase = _NETWORKS[network]
    return StellarConfig(
        network=network,
        horizon_url=(settings.horizon_url or default_url).rstrip("/"),
        network_passphrase=passphrase,
    )
