from .ipapi import IpApiClient, IPAPI_FIELDS

__all__ = ['IpApiClient', 'IPAPI_FIELDS']
