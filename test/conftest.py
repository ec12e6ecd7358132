from datetime import datetime, timezone

import osmium
import pytest
from osmium.osm import mutable

TS = "2020-01-01T00:00:00Z"


def write_opl(path, lines):
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)


def _kind(obj):
    if isinstance(obj, osmium.osm.Node):
        return "n"
    if isinstance(obj, osmium.osm.Way):
        return "w"
    return "r"


def read_entities(path):
    """(type, id, version, changeset, uid, user, timestamp) for each object in a file."""
    return [
        (_kind(o), o.id, o.version, o.changeset, o.uid, o.user,
         o.timestamp.replace(tzinfo=None))
        for o in osmium.FileProcessor(str(path))
    ]


@pytest.fixture()
def nodes_opl(tmp_path):
    """Two nodes with full provenance attributes."""
    return write_opl(tmp_path / "a.opl", [
        f"n1 v5 dV c7 t{TS} i10 ualice Tamenity=cafe x1.5 y2.5",
        f"n2 v3 dV c8 t{TS} i11 ubob T x1.6 y2.6",
    ])


@pytest.fixture()
def ways_opl(tmp_path):
    """Three ways referencing the nodes of nodes_opl."""
    return write_opl(tmp_path / "b.opl", [
        f"w10 v1 dV c20 t{TS} i12 ucarol Thighway=path Nn1,n2",
        f"w11 v2 dV c21 t{TS} i12 ucarol T Nn2,n1",
        f"w12 v4 dV c22 t{TS} i13 udave Tbuilding=yes Nn1,n2,n1",
    ])


@pytest.fixture()
def relation_opl(tmp_path):
    return write_opl(tmp_path / "c.opl", [
        f"r100 v2 dV c30 t{TS} i14 ueve Ttype=route Mw10@,n1@stop",
    ])


@pytest.fixture()
def nodes_pbf(tmp_path):
    """PBF file with a replication timestamp in its header."""
    path = str(tmp_path / "a.osm.pbf")
    header = osmium.io.Header()
    header.set("osmosis_replication_timestamp", TS)
    writer = osmium.SimpleWriter(path, header=header)
    for i in (1, 2, 3):
        writer.add_node(mutable.Node(
            id=i, version=1, visible=True, changeset=1,
            timestamp=datetime(2020, 1, 1, tzinfo=timezone.utc),
            uid=1, user="alice", tags={}, location=(1.0 + i / 10, 2.0),
        ))
    writer.close()
    return path
