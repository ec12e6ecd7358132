"""
Reading and writing OSM entity files through pyosmium.

The pipeline only sees buffers: lists of detached entities that stay valid
after the underlying reader has moved on.
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from itertools import islice

import osmium
from osmium.osm import mutable

from osmcat.exceptions import ConfigError, UnsupportedEntityError

log = logging.getLogger(__name__)

BUFFER_SIZE_DEFAULT = 10_000

ENTITY_TYPES = {
    "node": osmium.osm.NODE,
    "way": osmium.osm.WAY,
    "relation": osmium.osm.RELATION,
    "changeset": osmium.osm.CHANGESET,
}


class _EndOfStream:
    def __repr__(self):
        return "END_OF_STREAM"


# Returned by OsmReader.read() once the input is exhausted.
END_OF_STREAM = _EndOfStream()


@dataclass
class Changeset:
    """Detached changeset record. pyosmium has no mutable changeset type."""

    id: int
    uid: int
    user: str
    created_at: datetime | None
    closed_at: datetime | None
    num_changes: int
    tags: dict[str, str] = field(default_factory=dict)


def entity_bits(types=()):
    """
    Entity mask for the given type names. No names selects every type.
    """
    if not types:
        return osmium.osm.ALL
    bits = osmium.osm.NOTHING
    for name in types:
        if name not in ENTITY_TYPES:
            raise ConfigError(f"Unknown object type: '{name}'")
        bits |= ENTITY_TYPES[name]
    return bits


def file_size(path) -> int:
    return os.path.getsize(path)


def file_size_sum(paths) -> int:
    """Sum of file sizes, read without opening the files."""
    return sum(file_size(p) for p in paths)


def detach(obj):
    """
    Copy a pyosmium object out of the reader's memory.

    Objects handed out by osmium.FileProcessor die when the reader advances.
    Nodes, ways and relations become mutable pyosmium objects the writer
    accepts directly. Tags, way nodes and members are copied to plain values.
    """
    if isinstance(obj, osmium.osm.Changeset):
        return Changeset(
            id=obj.id,
            uid=obj.uid,
            user=obj.user,
            created_at=obj.created_at,
            closed_at=obj.closed_at,
            num_changes=obj.num_changes,
            tags=dict(obj.tags),
        )

    common = dict(
        id=obj.id,
        version=obj.version,
        visible=obj.visible,
        changeset=obj.changeset,
        timestamp=obj.timestamp,
        uid=obj.uid,
        user=obj.user,
        tags=dict(obj.tags),
    )
    if isinstance(obj, osmium.osm.Node):
        return mutable.Node(location=obj.location, **common)
    if isinstance(obj, osmium.osm.Way):
        return mutable.Way(nodes=[n.ref for n in obj.nodes], **common)
    if isinstance(obj, osmium.osm.Relation):
        return mutable.Relation(
            members=[(m.type, m.ref, m.role) for m in obj.members], **common
        )
    raise UnsupportedEntityError(f"Cannot read entity of type {type(obj).__name__}")


def parse_header_options(values) -> dict[str, str]:
    """Split KEY=VALUE strings from --output-header into a dict."""
    options = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise ConfigError(f"Output header option must be KEY=VALUE, got '{value}'")
        options[key] = val
    return options


def build_header(base=None, generator=None, overrides=None):
    """
    Output header: *base* or a fresh one, with generator and overrides set
    on top.

    *base* is modified and returned as is. Readers hand out their own copy of
    the file header, and pyosmium offers no way to list a header's options
    for copying them over.
    """
    header = base if base is not None else osmium.io.Header()
    if generator:
        header.set("generator", generator)
    for key, value in (overrides or {}).items():
        header.set(key, value)
    return header


class OsmReader:
    """
    Buffered reader over one OSM file.

    read() hands out lists of at most *buffer_size* detached entities and
    END_OF_STREAM once the file is drained.
    """

    def __init__(self, path, entities=None, buffer_size: int = BUFFER_SIZE_DEFAULT,
                 input_format: str | None = None):
        if buffer_size < 1:
            raise ConfigError(f"Buffer size must be positive, got {buffer_size}")
        self.path = str(path)
        self.buffer_size = buffer_size
        self._size = file_size(self.path)
        source = osmium.io.File(self.path, input_format) if input_format else self.path
        self._processor = osmium.FileProcessor(
            source, entities if entities is not None else osmium.osm.ALL
        )
        self._header = self._processor.header
        self._entities = iter(self._processor)
        self._exhausted = False
        self._closed = False
        log.debug(f"Opened reader for {self.path} ({self._size} bytes)")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def read(self):
        if self._closed:
            raise ValueError(f"Reader for {self.path} is closed")
        if self._exhausted:
            return END_OF_STREAM
        buffer = [detach(obj) for obj in islice(self._entities, self.buffer_size)]
        if not buffer:
            self._exhausted = True
            return END_OF_STREAM
        return buffer

    def header(self):
        return self._header

    def file_size(self) -> int:
        return self._size

    def offset(self) -> int:
        # pyosmium does not expose the decoder's input position.
        return self._size if self._exhausted else 0

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._entities, "close", None)
        if close is not None:
            close()
        self._entities = None
        self._processor = None


class OsmWriter:
    """
    Writes buffers to one output file via osmium.SimpleWriter.

    close() returns the number of bytes in the finished file.
    """

    def __init__(self, path, header=None, overwrite: bool = False, fsync: bool = False,
                 output_format: str | None = None):
        self.path = str(path)
        self.fsync = fsync
        if not overwrite and os.path.exists(self.path):
            raise FileExistsError(
                f"Output file '{self.path}' exists. Use --overwrite to replace it."
            )
        out_dir = os.path.dirname(self.path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)

        target = osmium.io.File(self.path, output_format) if output_format else self.path
        self._writer = osmium.SimpleWriter(
            target,
            header=header if header is not None else osmium.io.Header(),
            overwrite=overwrite,
        )
        self._bytes_written = None
        log.debug(f"Opened writer for {self.path}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def write(self, buffer) -> None:
        if self._writer is None:
            raise ValueError(f"Writer for {self.path} is closed")
        for entity in buffer:
            if isinstance(entity, mutable.Node):
                self._writer.add_node(entity)
            elif isinstance(entity, mutable.Way):
                self._writer.add_way(entity)
            elif isinstance(entity, mutable.Relation):
                self._writer.add_relation(entity)
            else:
                raise UnsupportedEntityError(
                    f"Cannot write {type(entity).__name__} entities with the osmium writer"
                )

    def close(self) -> int:
        if self._writer is None:
            return self._bytes_written
        writer, self._writer = self._writer, None
        writer.close()
        if self.fsync:
            with open(self.path, "rb") as f:
                os.fsync(f.fileno())
        self._bytes_written = file_size(self.path)
        return self._bytes_written
