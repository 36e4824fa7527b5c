"""BOSH director integration."""

from .cloud_config import BOSHCommandRunner, BOSHError, CloudConfigGenerator, CloudConfigManager

__all__ = [
    "BOSHCommandRunner",
    "BOSHError",
    "CloudConfigGenerator",
    "CloudConfigManager",
]
