from .normalize import AddressSet, is_likely_ip, normalize_ips

__all__ = ['AddressSet', 'is_likely_ip', 'normalize_ips']
