"""Tests for paginated node listing."""

import httpx
import pytest

from common.exceptions import ProtocolError
from common.types import EntryKind, ListingEntry, ListingPage
from inventory.inventory_writer import ListingCodeLog
from inventory.node_lister import NodeLister, next_marker
from conftest import listing_xml, node_of


def paged_server(folders, objects, page_size, explicit_marker=False, requests=None):
    """
    Handler serving folder and object listings page by page.

    The marker is exclusive: a page starts after the entry named by the marker.
    """
    def page_of(names, kind, marker):
        start = names.index(marker) + 1 if marker else 0
        chunk = names[start:start + page_size]
        entries = [(n, kind) for n in chunk]
        if explicit_marker:
            more = start + page_size < len(names)
            return listing_xml(entries, marker=chunk[-1] if more and chunk else None, with_marker=True)
        return listing_xml(entries)

    def handler(request):
        if requests is not None:
            requests.append(request)
        marker = request.url.params.get('marker')
        path = request.url.path[len('/rest/'):].strip('/')
        if request.url.params['type'] == 'directory':
            return httpx.Response(200, text=page_of(folders, 'directory', marker))
        return httpx.Response(200, text=page_of(objects.get(path, []), 'object', marker))

    return handler


def make_lister(client, page_size=2, suffix='.ccf', code_log=None):
    return NodeLister(client, namespace='ns1', page_size=page_size, object_suffix=suffix, workers=2, code_log=code_log)


class TestNextMarker:
    """Tests for the page termination rule."""

    def page(self, names, marker=None, has_marker=False):
        return ListingPage(
            entries=tuple(ListingEntry(n, EntryKind.OBJECT) for n in names),
            next_marker=marker,
            has_marker_field=has_marker,
        )

    def test_empty_page_stops(self):
        assert next_marker(self.page([], marker='x', has_marker=True), 2) is None

    def test_explicit_marker_wins(self):
        assert next_marker(self.page(['a'], marker='zz', has_marker=True), 2) == 'zz'

    def test_explicit_empty_marker_stops_even_on_full_page(self):
        assert next_marker(self.page(['a', 'b'], has_marker=True), 2) is None

    def test_fallback_to_last_entry_on_full_page(self):
        assert next_marker(self.page(['a', 'b']), 2) == 'b'

    def test_short_page_without_marker_stops(self):
        assert next_marker(self.page(['a']), 2) is None


def test_n_full_pages_then_empty_page_issue_n_plus_one_requests(make_client):
    """N full pages of size B followed by an empty page -> exactly N+1 requests."""
    requests = []
    names = [f'obj{i:03d}.ccf' for i in range(6)]
    client = make_client(paged_server([], {'f1': names}, page_size=3, requests=requests))
    lister = make_lister(client, page_size=3)

    keys, complete = lister.list_objects('hcp1', 'f1')

    assert complete
    assert keys == [f'f1/{n}' for n in names]
    assert len(requests) == 3
    assert [r.url.params.get('marker') for r in requests] == [None, 'obj002.ccf', 'obj005.ccf']


def test_explicit_marker_pagination(make_client):
    """With a nextMarker element the server's marker drives the loop."""
    requests = []
    names = [f'obj{i}.ccf' for i in range(5)]
    client = make_client(paged_server([], {'f1': names}, page_size=2, explicit_marker=True, requests=requests))
    lister = make_lister(client, page_size=2)

    keys, complete = lister.list_objects('hcp1', 'f1')

    assert complete
    assert len(keys) == 5
    assert len(requests) == 3


def test_suffix_filter_and_directories_ignored(make_client):
    def handler(request):
        return httpx.Response(200, text=listing_xml([
            ('a.ccf', 'object'), ('b.tmp', 'object'), ('nested', 'directory'), ('c.ccf', 'object'),
        ]))

    lister = make_lister(make_client(handler), page_size=10)
    keys, complete = lister.list_objects('hcp1', 'f1')

    assert keys == ['f1/a.ccf', 'f1/c.ccf']
    assert complete


def test_non_advancing_cursor_is_protocol_error(make_client):
    """A server repeating the same marker must not loop forever."""
    def handler(request):
        return httpx.Response(200, text=listing_xml([('a.ccf', 'object')], marker='a.ccf'))

    lister = make_lister(make_client(handler), page_size=10)

    with pytest.raises(ProtocolError):
        list(lister.iter_pages('hcp1', 'f1', EntryKind.OBJECT))


def test_failure_truncates_only_that_folder(make_client, tmp_path):
    """A folder whose listing fails keeps what was listed and flags the node partial."""
    objects = {
        'good': ['g1.ccf', 'g2.ccf'],
        'bad': ['b1.ccf', 'b2.ccf', 'b3.ccf'],
    }
    inner = paged_server(['bad', 'good'], objects, page_size=2)

    def handler(request):
        if request.url.path.startswith('/rest/bad') and request.url.params.get('marker'):
            raise httpx.ConnectError("reset", request=request)
        return inner(request)

    code_log = ListingCodeLog(tmp_path)
    lister = make_lister(make_client(handler), page_size=2, code_log=code_log)
    listing = lister.list_node('hcp1')

    assert listing.keys == ['bad/b1.ccf', 'bad/b2.ccf', 'good/g1.ccf', 'good/g2.ccf']
    assert listing.partial_resources == ['bad']
    assert not listing.complete
    codes = code_log.codes_path.read_text().splitlines()
    assert 'hcp1\t000\tbad_page_2' in codes
    assert 'hcp1\t200\troot_page_1' in codes


def test_http_error_on_folder_listing_is_partial(make_client):
    """A non-200 listing status is never treated as an empty folder."""
    def handler(request):
        if request.url.params['type'] == 'directory':
            return httpx.Response(200, text=listing_xml([('f1', 'directory')]))
        return httpx.Response(403, text='forbidden')

    listing = make_lister(make_client(handler)).list_node('hcp1')

    assert listing.keys == []
    assert listing.partial_resources == ['f1']


def test_list_node_deduplicates_and_sorts(make_client):
    """Repeated entries across pages collapse into one sorted key list."""
    def handler(request):
        if request.url.params['type'] == 'directory':
            return httpx.Response(200, text=listing_xml([('z', 'directory'), ('a', 'directory')]))
        return httpx.Response(200, text=listing_xml([('2.ccf', 'object'), ('1.ccf', 'object'), ('1.ccf', 'object')]))

    listing = make_lister(make_client(handler), page_size=10).list_node('hcp1')

    assert listing.keys == ['a/1.ccf', 'a/2.ccf', 'z/1.ccf', 'z/2.ccf']
    assert listing.folders == 2
    assert listing.complete


def test_requests_hit_the_listed_node(make_client):
    nodes = set()

    def handler(request):
        nodes.add(node_of(request))
        return httpx.Response(200, text=listing_xml([]))

    make_lister(make_client(handler)).list_node('hcp7')
    assert nodes == {'hcp7'}
