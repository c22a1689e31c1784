"""End-to-end tests for an inventory run against a synthetic node set."""

import httpx

from common.settings import ListingSettings
from inventory.scanner import run_inventory
from conftest import TOKEN, key_of, listing_xml, node_of

NODE_CONTENT = {
    'hcp1': {'2023': ['a.ccf', 'b.ccf'], '2024': ['c.ccf']},
    'hcp2': {'2024': ['c.ccf', 'd.ccf', 'notes.txt']},
    'hcp3': {},
}


def handler(request):
    node = node_of(request)
    folder = key_of(request).strip('/')
    content = NODE_CONTENT[node]
    if request.url.params['type'] == 'directory':
        return httpx.Response(200, text=listing_xml([(f, 'directory') for f in sorted(content)]))
    return httpx.Response(200, text=listing_xml([(o, 'object') for o in content.get(folder, [])]))


def make_settings(connection_settings, tmp_path, **overrides):
    values = dict(
        connection=connection_settings,
        namespace='ns1',
        nodes=['hcp1', 'hcp2', 'hcp3'],
        page_size=100,
        out_dir=tmp_path,
    )
    values.update(overrides)
    return ListingSettings(**values)


def test_run_inventory_writes_all_outputs(make_client, connection_settings, tmp_path):
    summary = run_inventory(make_settings(connection_settings, tmp_path), client=make_client(handler))

    run_dir = summary.run_dir
    assert run_dir.parent == tmp_path
    assert (run_dir / 'hcp1.txt').read_text().splitlines() == ['2023/a.ccf', '2023/b.ccf', '2024/c.ccf']
    assert (run_dir / 'hcp2.txt').read_text().splitlines() == ['2024/c.ccf', '2024/d.ccf']
    assert (run_dir / 'hcp3.txt').read_text() == ''
    assert (run_dir / 'results_found.tsv').read_text().splitlines() == [
        'path\tnodes',
        'ns1/2023/a.ccf\thcp1',
        'ns1/2023/b.ccf\thcp1',
        'ns1/2024/c.ccf\thcp1,hcp2',
        'ns1/2024/d.ccf\thcp2',
    ]
    assert (run_dir / 'multi_location.txt').read_text().splitlines() == ['path\tnodes', 'ns1/2024/c.ccf\thcp1,hcp2']
    assert (run_dir / 'scan.log').exists()
    assert (run_dir / 'results_codes.tsv').read_text().count('\t200\t') > 0
    assert not (run_dir / 'raw').exists()

    assert summary.node_counts == {'hcp1': 3, 'hcp2': 2, 'hcp3': 0}
    assert summary.paths == 4
    assert summary.multi_location == 1
    assert summary.partial_nodes == []
    assert 'results_found.tsv : 4 rows' in summary.render()


def test_debug_saves_raw_pages(make_client, connection_settings, tmp_path):
    summary = run_inventory(make_settings(connection_settings, tmp_path, debug=True), client=make_client(handler))

    raw = summary.run_dir / 'raw'
    assert (raw / 'hcp1_root_p1.xml').exists()
    assert (raw / 'hcp1_2023_p1.xml').exists()


def test_unreachable_node_is_partial_not_fatal(make_client, connection_settings, tmp_path):
    def flaky(request):
        if node_of(request) == 'hcp2':
            raise httpx.ConnectError("no route to host", request=request)
        return handler(request)

    summary = run_inventory(make_settings(connection_settings, tmp_path), client=make_client(flaky))

    assert summary.partial_nodes == ['hcp2']
    assert summary.node_counts['hcp2'] == 0
    assert 'hcp2\t000\troot_page_1' in (summary.run_dir / 'results_codes.tsv').read_text()
    assert '(partial)' in summary.render()


def test_scan_log_records_run_parameters(make_client, connection_settings, tmp_path):
    """scan.log holds the run header and summary, without the token."""
    summary = run_inventory(make_settings(connection_settings, tmp_path), client=make_client(handler))

    log_text = (summary.run_dir / 'scan.log').read_text()
    assert 'Namespace: ns1' in log_text
    assert 'SUMMARY:' in log_text
    assert TOKEN not in log_text
