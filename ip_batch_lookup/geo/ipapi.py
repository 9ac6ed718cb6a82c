import aiohttp, asyncio, logging
from typing import List, Dict, Optional

from ..config import IPAPI_URL

logger = logging.getLogger(__name__)

IPAPI_FIELDS = 'status,message,query,country,regionName,city,isp,org,lat,lon'


def failure_records(batch: List[str], message: str) -> List[Dict]:
    # one placeholder per address keeps the result length equal to the input
    return [{'query': ip, 'status': 'fail', 'message': message} for ip in batch]


class IpApiClient:
    """Thin client for the ip-api.com batch endpoint (free tier is HTTP only)."""

    def __init__(self, url: str = IPAPI_URL, timeout: float = 20.0,
                 session: Optional[aiohttp.ClientSession] = None):
        self.url = url
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    def _get_session(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self.session

    async def lookup_batch(self, batch: List[str]) -> List[Dict]:
        """
        Look up one batch (<= 100 addresses). Never raises for upstream
        problems: a failed call turns into one 'fail' record per address.
        """
        if not batch:
            return []
        session = self._get_session()
        try:
            async with session.post(self.url, params={'fields': IPAPI_FIELDS}, json=batch) as resp:
                if not resp.ok:
                    logger.warning('ip-api batch of %d failed with HTTP %s', len(batch), resp.status)
                    return failure_records(batch, f'HTTP {resp.status}')
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError:
            logger.warning('ip-api batch of %d timed out after %ss', len(batch), self.timeout)
            return failure_records(batch, 'Request timed out')
        except aiohttp.ClientError as e:
            logger.warning('ip-api batch of %d failed: %r', len(batch), e)
            return failure_records(batch, f'Request failed: {e.__class__.__name__}')
        except ValueError:
            logger.warning('ip-api batch of %d returned invalid JSON', len(batch))
            return failure_records(batch, 'Invalid response from lookup service')

        if not isinstance(data, list):
            logger.warning('ip-api batch of %d returned %s instead of a list', len(batch), type(data).__name__)
            return failure_records(batch, 'Invalid response from lookup service')
        if len(data) != len(batch):
            # records are still taken positionally; see DESIGN.md
            logger.warning('ip-api returned %d records for a batch of %d', len(data), len(batch))
        return data

    async def close(self):
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None
