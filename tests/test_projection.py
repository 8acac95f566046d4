from GaneshaMetrics import projection
from GaneshaMetrics.stats_types import (Client, ClientIOs, ClientIOStats,
                                        Export, IOCategoryBlock, IOCounters,
                                        OperationCounters, OperationsStats,
                                        Timespec)
from GaneshaMetrics.versions import UNSET, make_versions


def make_export(export_id, path):
    return Export(export_id, path, True, True, False, False, True, True,
                  False, False, Timespec())


def make_client(addr, nfsv3=True, nfsv40=False, nfsv41=True, nfsv42=False):
    return Client(addr, nfsv3, True, False, False, nfsv40, nfsv41, nfsv42,
                  False, Timespec())


def by_name(points):
    return {(p.descriptor.name, p.labels): p.value for p in points}


def test_descriptor_names():
    assert projection.EXPORT_COUNT.name == "nfs_ganesha_export_count"
    assert projection.CLIENT_COUNT.name == "nfs_ganesha_client_count"
    assert projection.VERSIONS_STATUS.name == "nfs_ganesha_metrics_status"
    assert projection.EXPORT_OPS['nfsv41'].name == \
        "nfs_ganesha_export_ops_nfsv41"
    assert projection.EXPORT_OPS['plan9'].name == "nfs_ganesha_export_ops_9p"

    desc = projection.CLIENT_IO[('nfsv40', 'read', 'transferred')]
    assert desc.name == "nfs_ganesha_client_nfsv40_read_transferred"
    assert desc.documentation == "NFSv4.0 READ transferred"
    assert desc.labels == ('ipaddr',)


def test_layout_only_for_minor_versions_with_layouts():
    keys = set(projection.CLIENT_IO)
    assert ('nfsv41', 'layout', 'total') in keys
    assert ('nfsv42', 'layout', 'errors') in keys
    assert ('nfsv3', 'layout', 'total') not in keys
    assert ('nfsv41', 'layout', 'transferred') not in keys


def test_versions_point():
    points = projection.project_versions(make_versions("abc123"))
    assert len(points) == 1
    assert points[0].labels == ("1.0.0", "abc123")
    assert points[0].value == 1.0


def test_versions_point_without_commit():
    points = projection.project_versions(make_versions())
    assert points[0].labels == ("1.0.0", UNSET)


def test_export_count_follows_listing():
    exports = [make_export(1, "/a"), make_export(2, "/b"), make_export(3, "/c")]
    stats = {2: OperationsStats(ops=OperationCounters(nfsv3=11, nfsv40=4))}
    points = by_name(projection.project_exports(exports, stats))

    assert points[("nfs_ganesha_export_count", ())] == 3.0
    assert points[("nfs_ganesha_export_ops_nfsv3", ("2", "/b"))] == 11.0
    assert points[("nfs_ganesha_export_ops_nfsv40", ("2", "/b"))] == 4.0
    assert points[("nfs_ganesha_export_ops_nfsv42", ("2", "/b"))] == 0.0
    assert not any(labels == ("1", "/a") for _, labels in points)


def test_no_exports():
    points = projection.project_exports([], {})
    assert by_name(points) == {("nfs_ganesha_export_count", ()): 0.0}


def test_client_protocols_need_listing_flag_and_reply_block():
    block = IOCategoryBlock(read=IOCounters(5, 0, 500),
                            write=IOCounters(2, 1, 200),
                            layout=IOCounters(9, 9, 9))
    io = ClientIOStats(nfsv3=block, nfsv41=block, nfsv42=block,
                       available=('nfsv3', 'nfsv42'))
    clients = [make_client("10.0.0.1", nfsv42=False)]
    points = by_name(projection.project_clients(
        clients, {"10.0.0.1": ClientIOs(io=io)}))

    labels = ("10.0.0.1",)
    assert points[("nfs_ganesha_client_count", ())] == 1.0
    assert points[("nfs_ganesha_client_nfsv3_read_total", labels)] == 5.0
    assert points[("nfs_ganesha_client_nfsv3_write_errors", labels)] == 1.0
    assert points[("nfs_ganesha_client_nfsv3_write_transferred",
                   labels)] == 200.0
    # listed but no block in the reply
    assert ("nfs_ganesha_client_nfsv41_read_total", labels) not in points
    # block in the reply but not listed
    assert ("nfs_ganesha_client_nfsv42_read_total", labels) not in points
    assert ("nfs_ganesha_client_nfsv3_layout_total", labels) not in points


def test_client_layout_points():
    block = IOCategoryBlock(layout=IOCounters(4, 1, 77))
    io = ClientIOStats(nfsv41=block, available=('nfsv41',))
    clients = [make_client("c1", nfsv3=False)]
    points = by_name(projection.project_clients(clients,
                                                {"c1": ClientIOs(io=io)}))

    assert points[("nfs_ganesha_client_nfsv41_layout_total", ("c1",))] == 4.0
    assert points[("nfs_ganesha_client_nfsv41_layout_errors", ("c1",))] == 1.0
    assert points[("nfs_ganesha_client_nfsv41_read_total", ("c1",))] == 0.0


def test_client_without_stats_is_only_counted():
    clients = [make_client("c1"), make_client("c2")]
    points = projection.project_clients(clients, {})
    assert by_name(points) == {("nfs_ganesha_client_count", ()): 2.0}


def test_repeated_export_id_is_projected_once():
    exports = [make_export(4, "/a"), make_export(4, "/a")]
    stats = {4: OperationsStats(ops=OperationCounters(nfsv3=1))}
    points = projection.project_exports(exports, stats)

    keys = [(p.descriptor.name, p.labels) for p in points]
    assert len(keys) == len(set(keys))
    assert by_name(points)[("nfs_ganesha_export_count", ())] == 2.0


def test_repeated_client_address_is_projected_once():
    io = ClientIOStats(available=('nfsv3',))
    clients = [make_client("c1"), make_client("c1")]
    points = projection.project_clients(clients, {"c1": ClientIOs(io=io)})

    keys = [(p.descriptor.name, p.labels) for p in points]
    assert len(keys) == len(set(keys))
    assert len(points) == 1 + 9
