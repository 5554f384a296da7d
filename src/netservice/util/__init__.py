from .connection import allowed_gai_family, getaddrinfo, getaddrinfo_async
from .hostname import is_ip_address, normalize_hostname
from .proxy import proxy_for
from .resolver import (
    DNSResolver,
    Resolver,
    get_default_resolver,
    set_default_resolver,
    sort_targets,
    srv_name,
)
from .url import Url, parse_url

__all__ = (
    "DNSResolver",
    "Resolver",
    "Url",
    "allowed_gai_family",
    "get_default_resolver",
    "getaddrinfo",
    "getaddrinfo_async",
    "is_ip_address",
    "normalize_hostname",
    "parse_url",
    "proxy_for",
    "set_default_resolver",
    "sort_targets",
    "srv_name",
)
