import asyncio, inspect, logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..config import Settings
from ..utils.normalize import AddressSet, normalize_ips

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]


class LookupRejected(Exception):
    """Input failed validation; nothing was sent upstream."""

    def __init__(self, message: str, rejected: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.rejected = rejected

    def to_dict(self) -> Dict:
        body = {'error': self.message}
        if self.rejected is not None:
            body['rejected'] = self.rejected
        return body


def iter_batches(addresses: List[str], size: int) -> Iterator[List[str]]:
    for i in range(0, len(addresses), size):
        yield addresses[i:i + size]


def aggregate(batches: Iterable[List[Dict]]) -> List[Dict]:
    results = []
    for records in batches:
        results.extend(records)
    return results


class JobManager:
    def __init__(self, client, settings: Settings):
        self.client = client
        self.settings = settings
        self.sleep = asyncio.sleep

    def prepare(self, raw: Any) -> AddressSet:
        parsed = normalize_ips(raw)
        if not parsed.addresses:
            raise LookupRejected('No valid IP addresses found, please check the input.', parsed.rejected)
        if len(parsed.addresses) > self.settings.max_ips:
            raise LookupRejected(
                f'At most {self.settings.max_ips} IP addresses per request, got {len(parsed.addresses)}.')
        return parsed

    async def dispatch(self, addresses: List[str], on_progress: Optional[ProgressCallback] = None) -> List[Dict]:
        """
        Look up addresses batch by batch, strictly one call at a time, sleeping
        pace_ms between calls to stay under the upstream rate limit.
        """
        total = len(addresses)
        batches = list(iter_batches(addresses, self.settings.batch_size))
        collected = []
        done = 0
        for idx, batch in enumerate(batches):
            collected.append(await self.client.lookup_batch(batch))
            done += len(batch)
            if on_progress is not None:
                res = on_progress(done, total)
                if inspect.isawaitable(res):
                    await res
            if idx < len(batches) - 1:
                await self.sleep(self.settings.pace_seconds)
        return aggregate(collected)

    async def handle_lookup(self, raw: Any, on_progress: Optional[ProgressCallback] = None) -> Dict:
        parsed = self.prepare(raw)
        return await self.run(parsed, on_progress)

    async def run(self, parsed: AddressSet, on_progress: Optional[ProgressCallback] = None) -> Dict:
        logger.info('Looking up %d addresses (%d rejected tokens)', len(parsed.addresses), len(parsed.rejected))
        results = await self.dispatch(parsed.addresses, on_progress)
        return {'total': len(parsed.addresses), 'rejected': parsed.rejected, 'results': results}
