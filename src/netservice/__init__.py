"""
Resolve network services from their SRV records into an ordered stream of
connectable socket addresses, from blocking code or trio tasks.
"""

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler
from typing import TextIO

from . import exceptions
from ._version import __version__
from .address import InetSocketAddress, ProxyAddress
from .cancellable import Cancellable
from .connectable import HostConnectable
from .enumerator import EnumeratorState, ServiceAddressEnumerator
from .service import ServiceLocator
from .target import Target
from .util.resolver import DNSResolver, Resolver

__license__ = "MIT"
__version__ = __version__

__all__ = (
    "Cancellable",
    "DNSResolver",
    "EnumeratorState",
    "HostConnectable",
    "InetSocketAddress",
    "ProxyAddress",
    "Resolver",
    "ServiceAddressEnumerator",
    "ServiceLocator",
    "Target",
    "add_stderr_logger",
    "exceptions",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(level: int = logging.DEBUG) -> "logging.StreamHandler[TextIO]":
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    # even if netservice is vendored within another package.
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


# ... Clean up.
del NullHandler
