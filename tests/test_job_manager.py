import asyncio

import pytest

from ip_batch_lookup.config import Settings
from ip_batch_lookup.geo.ipapi import IpApiClient
from ip_batch_lookup.workers.job_manager import JobManager, LookupRejected, aggregate, iter_batches
from tests.fakes import FakeSession, SleepRecorder, make_ips


def build(script=None, **overrides):
    session = FakeSession(script)
    jm = JobManager(IpApiClient(session=session), Settings(**overrides))
    jm.sleep = SleepRecorder()
    return jm, session


def test_iter_batches_partitions_in_order():
    ips = make_ips(250)
    batches = list(iter_batches(ips, 100))
    assert [len(b) for b in batches] == [100, 100, 50]
    assert aggregate(batches) == ips


def test_aggregate_is_plain_concatenation():
    assert aggregate([[{'a': 1}], [], [{'b': 2}, {'a': 1}]]) == [{'a': 1}, {'b': 2}, {'a': 1}]


def test_250_addresses_take_three_paced_calls():
    jm, session = build()
    progress = []
    ips = make_ips(250)
    results = asyncio.run(jm.dispatch(ips, lambda done, total: progress.append((done, total))))

    assert [len(c['json']) for c in session.calls] == [100, 100, 50]
    assert [c['json'] for c in session.calls] == list(iter_batches(ips, 100))
    assert [r['query'] for r in results] == ips
    assert progress == [(100, 250), (200, 250), (250, 250)]
    assert jm.sleep.delays == [0.75, 0.75]


def test_single_batch_is_not_followed_by_a_pause():
    jm, session = build()
    asyncio.run(jm.dispatch(make_ips(100)))
    assert len(session.calls) == 1
    assert jm.sleep.delays == []


def test_failed_middle_batch_keeps_full_length():
    jm, _ = build([None, 500, None])
    ips = make_ips(250)
    results = asyncio.run(jm.dispatch(ips))

    assert len(results) == 250
    assert [r['query'] for r in results] == ips
    assert all(r['status'] == 'success' for r in results[:100] + results[200:])
    assert all(r == {'query': ip, 'status': 'fail', 'message': 'HTTP 500'}
               for r, ip in zip(results[100:200], ips[100:200]))


def test_async_progress_callback_is_awaited():
    jm, _ = build(batch_size=2, pace_ms=0)
    seen = []

    async def on_progress(done, total):
        seen.append(done)

    asyncio.run(jm.dispatch(make_ips(5), on_progress))
    assert seen == [2, 4, 5]
    assert jm.sleep.delays == [0.0, 0.0]


def test_handle_lookup_envelope():
    jm, _ = build()
    envelope = asyncio.run(jm.handle_lookup('8.8.8.8, not-an-ip\n1.1.1.1'))
    assert envelope['total'] == 2
    assert envelope['rejected'] == ['not-an-ip']
    assert [r['query'] for r in envelope['results']] == ['8.8.8.8', '1.1.1.1']


def test_empty_input_is_rejected_without_calls():
    jm, session = build()
    with pytest.raises(LookupRejected) as info:
        asyncio.run(jm.handle_lookup(''))
    assert info.value.to_dict() == {'error': 'No valid IP addresses found, please check the input.', 'rejected': []}
    assert session.calls == []


def test_all_invalid_input_reports_rejected_tokens():
    jm, _ = build()
    with pytest.raises(LookupRejected) as info:
        jm.prepare('foo bar')
    assert info.value.rejected == ['foo', 'bar']


def test_too_many_addresses_is_rejected_without_calls():
    jm, session = build()
    with pytest.raises(LookupRejected) as info:
        asyncio.run(jm.handle_lookup(make_ips(6001)))
    assert '6000' in info.value.message
    assert '6001' in info.value.message
    assert 'rejected' not in info.value.to_dict()
    assert session.calls == []


def test_limit_counts_unique_addresses():
    jm, _ = build(max_ips=2)
    parsed = jm.prepare(['1.1.1.1', '1.1.1.1', '2.2.2.2'])
    assert parsed.addresses == ['1.1.1.1', '2.2.2.2']
