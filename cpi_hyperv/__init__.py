"""
Hyper-V provider adapter: a typed action API over PowerShell.
"""
import logging

from cpi_hyperv.provider import HyperVProvider
from cpi_hyperv.settings import ProviderSettings

__version__ = "0.1.0"
__all__ = ["HyperVProvider", "ProviderSettings", "__version__"]

logging.getLogger(__name__).addHandler(logging.NullHandler())
