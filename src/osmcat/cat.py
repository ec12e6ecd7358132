"""
Concatenate OSM files into one, optionally cleaning provenance attributes.

One input: the output keeps the input header.
Several inputs: the output gets a fresh header, inputs are copied in order.
"""
import enum
import logging
import os
from dataclasses import dataclass

from osmcat.clean import CleanOptions, scrub_buffer
from osmcat.config import CatSettings
from osmcat.exceptions import ConfigError, OsmCatError
from osmcat.osm_io import (
    END_OF_STREAM,
    OsmReader,
    OsmWriter,
    build_header,
    entity_bits,
    file_size_sum,
)
from osmcat.progress import ProgressBar

log = logging.getLogger(__name__)


class Mode(enum.Enum):
    SINGLE_FILE = "single-file"
    MULTI_FILE = "multi-file"


class State(enum.Enum):
    IDLE = "idle"
    DETERMINING_MODE = "determining-mode"
    SINGLE_FILE = "single-file"
    MULTI_FILE = "multi-file"
    CLOSED = "closed"


@dataclass(frozen=True)
class CatResult:
    mode: Mode
    input_count: int
    entities: int
    bytes_written: int


def copy(progress, reader, writer, options: CleanOptions) -> int:
    """
    Move every buffer from *reader* to *writer*, cleaning it on the way.

    Buffers are written in the order they are read. Returns the number of
    entities copied.
    """
    count = 0
    while True:
        buffer = reader.read()
        if buffer is END_OF_STREAM:
            break
        progress.update(reader.offset())
        if options:
            scrub_buffer(buffer, options)
        count += len(buffer)
        writer.write(buffer)
        del buffer
    return count


class Concatenator:
    """
    Runs one concatenation from IDLE to CLOSED.

    Readers, writer, total size and progress bar are injectable so the
    sequencing can be exercised without real files.
    """

    def __init__(
        self,
        settings: CatSettings,
        reader_factory=None,
        writer_factory=None,
        total_size=file_size_sum,
        progress_factory=ProgressBar,
    ):
        self.settings = settings
        self.reader_factory = reader_factory or self._open_reader
        self.writer_factory = writer_factory or self._open_writer
        self.total_size = total_size
        self.progress_factory = progress_factory
        self.state = State.IDLE
        self.mode = None
        self.entities = 0
        self.bytes_written = None
        self._bits = entity_bits(settings.object_types)

    def run(self) -> CatResult:
        if self.state is not State.IDLE:
            raise OsmCatError(f"Concatenator already used (state {self.state.value})")

        self.state = State.DETERMINING_MODE
        self.mode = self._select_mode()
        if self.mode is Mode.SINGLE_FILE:
            self.state = State.SINGLE_FILE
            self._run_single()
        else:
            self.state = State.MULTI_FILE
            self._run_multi()
        self.state = State.CLOSED

        return CatResult(
            mode=self.mode,
            input_count=len(self.settings.input_files),
            entities=self.entities,
            bytes_written=self.bytes_written,
        )

    def _select_mode(self) -> Mode:
        count = len(self.settings.input_files)
        if count == 0:
            raise ConfigError("No input files given")
        return Mode.SINGLE_FILE if count == 1 else Mode.MULTI_FILE

    def _run_single(self) -> None:
        s = self.settings
        with self.reader_factory(s.input_files[0]) as reader:
            log.info(
                f"Copying input file '{os.path.basename(s.input_files[0])}' "
                f"({reader.file_size()} bytes)"
            )
            header = self._output_header(reader.header())
            with self.writer_factory(header) as writer:
                progress = self.progress_factory(reader.file_size(), s.progress)
                self.entities += copy(progress, reader, writer, s.clean)
                progress.done()
                self.bytes_written = writer.close()

    def _run_multi(self) -> None:
        s = self.settings
        header = self._output_header(None)
        with self.writer_factory(header) as writer:
            progress = self.progress_factory(self.total_size(s.input_files), s.progress)
            for input_file in s.input_files:
                progress.remove()
                with self.reader_factory(input_file) as reader:
                    log.info(
                        f"Copying input file '{os.path.basename(input_file)}' "
                        f"({reader.file_size()} bytes)"
                    )
                    self.entities += copy(progress, reader, writer, s.clean)
                    progress.file_done(reader.file_size())
            self.bytes_written = writer.close()
            progress.done()

    def _output_header(self, base):
        return build_header(base, self.settings.generator, self.settings.output_header)

    def _open_reader(self, path):
        s = self.settings
        return OsmReader(path, self._bits, s.buffer_size, s.input_format)

    def _open_writer(self, header):
        s = self.settings
        return OsmWriter(s.output_file, header, s.overwrite, s.fsync, s.output_format)


def run_cat(settings: CatSettings, **collaborators) -> CatResult:
    """Run a concatenation end to end and report what was written."""
    result = Concatenator(settings, **collaborators).run()
    if result.bytes_written:
        log.info(f"Wrote {result.bytes_written} bytes.")
    log.info("Done.")
    return result
