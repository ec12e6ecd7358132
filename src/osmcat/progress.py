import sys

from tqdm import tqdm


class ProgressBar:
    """
    Byte based progress over one file or the sum of several, drawn by tqdm.

    The bar position is the size of the files already done plus the offset
    inside the current one. Every method is a no-op when disabled.

    pyosmium does not report how far its decoder has read, so readers give
    offset 0 until a file is drained. A single-file run therefore stays at 0
    until done() and a multi-file run moves one file at a time.
    """

    def __init__(self, total: int, enabled: bool = True, file=None):
        self.total = total
        self.enabled = enabled
        self.done_size = 0
        self.offset = 0
        self._bar = tqdm(
            total=total,
            unit="B",
            unit_scale=True,
            disable=not enabled,
            file=file if file is not None else sys.stderr,
        )

    @property
    def position(self) -> int:
        return self.done_size + self.offset

    def update(self, offset: int) -> None:
        if not self.enabled:
            return
        # offsets only grow within one file
        self.offset = max(self.offset, offset)
        self._show()

    def file_done(self, size: int) -> None:
        if not self.enabled:
            return
        self.done_size += size
        self.offset = 0
        self._show()

    def remove(self) -> None:
        """Clear the bar line so other output can be printed cleanly."""
        if not self.enabled:
            return
        self._bar.clear()

    def done(self) -> None:
        if not self.enabled:
            return
        self.done_size = self.total
        self.offset = 0
        self._show()
        self._bar.close()

    def _show(self) -> None:
        self._bar.n = self.position
        self._bar.refresh()
