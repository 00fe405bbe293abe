# cart_tracker/utils/client_info.py
import ipaddress
from typing import Mapping

# kolejnosc ma znaczenie, pierwszy publiczny adres wygrywa
IP_HEADERS = ("x-forwarded-for", "x-real-ip", "client-ip")


def _public_ip(value: str) -> str | None:
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return None
    if ip.is_private or ip.is_reserved or ip.is_loopback or ip.is_link_local:
        return None
    return str(ip)


def resolve_client_ip(headers: Mapping[str, str], remote_addr: str | None) -> str:
    """
    Adres klienta z naglowkow proxy.
    Z listy rozdzielonej przecinkami brany jest pierwszy wpis i tylko jesli
    jest publicznym adresem, w przeciwnym razie adres polaczenia.
    """
    lowered = {k.lower(): v for k, v in headers.items()}

    for key in IP_HEADERS:
        raw = lowered.get(key)
        if not raw:
            continue
        candidate = raw.split(",")[0].strip()
        ip = _public_ip(candidate)
        if ip:
            return ip

    return remote_addr or ""
