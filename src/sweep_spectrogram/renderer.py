#!/usr/bin/env python3
"""
Spectrogram Renderer

Composes an RGB pixel buffer from a parsed sweep log:

    +-----------------------------------------+  row 0
    | title (left aligned)                    |  banner_height rows
    +-----------------------------------------+
    | one row per sweep, one column per step  |  record_count rows
    | (color = power via ColorMapper)         |
    | vertical frequency gridlines (blended)  |
    +-----------------------------------------+
    |          summary line (right aligned)   |  footer_height rows
    +-----------------------------------------+

Width is the step count. Text strips are laid out with matplotlib's Agg
canvas; PNG encoding goes through Pillow. Body rows may be colored by a
thread pool: every row is written exactly once and rows never overlap, so
the result does not depend on the worker count.

Usage:
------
    renderer = SpectrogramRenderer(config)
    buffer = renderer.render(document, title="HF 1-30 MHz")
    buffer.save_png(output_filename('hf', document))
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
import numpy as np
from PIL import Image

from .colormap import ColorMapper
from .config import SpectrogramConfig
from .gridlines import GridlineCalculator
from .models import LogDocument
from .version import format_log_timestamp, generation_timestamp

logger = logging.getLogger(__name__)

# Text layout
TEXT_DPI = 100
TEXT_MARGIN_PX = 4
TEXT_HEIGHT_FRACTION = 0.6
TEXT_COLOR = 'white'
BACKGROUND_COLOR = 'black'

GRIDLINE_COLOR = (255, 255, 255)

# Minimum rows per worker chunk
ROWS_PER_CHUNK = 64

RGB = Tuple[int, int, int]


class PixelBuffer:
    """
    Owned 8-bit RGB pixel buffer (height x width x 3, row-major).

    All writes are bounds checked; the array is only handed out read-only
    or as a copy.
    """

    CHANNELS = 3

    def __init__(self, width: int, height: int, fill: RGB = (0, 0, 0)):
        if width < 1 or height < 1:
            raise ValueError(f"pixel buffer must be at least 1x1, got {width}x{height}")
        self._pixels = np.empty((height, width, self.CHANNELS), dtype=np.uint8)
        self._pixels[...] = fill

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def stride(self) -> int:
        """Bytes per row"""
        return self.width * self.CHANNELS

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the buffer"""
        view = self._pixels.view()
        view.setflags(write=False)
        return view

    def to_array(self) -> np.ndarray:
        return self._pixels.copy()

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} buffer")

    def get_pixel(self, x: int, y: int) -> RGB:
        self._check(x, y)
        r, g, b = self._pixels[y, x]
        return int(r), int(g), int(b)

    def set_pixel(self, x: int, y: int, color: RGB) -> None:
        self._check(x, y)
        self._pixels[y, x] = color

    def write_rows(self, row: int, block: np.ndarray) -> None:
        """Copy a (rows, width, 3) uint8 block starting at `row`"""
        block = np.asarray(block)
        if block.ndim != 3 or block.shape[1:] != (self.width, self.CHANNELS):
            raise ValueError(f"block shape {block.shape} does not fit width {self.width}")
        if row < 0 or row + block.shape[0] > self.height:
            raise IndexError(
                f"rows {row}..{row + block.shape[0]} outside buffer of height {self.height}"
            )
        self._pixels[row:row + block.shape[0]] = block

    def blend_columns(self, columns: Sequence[int], row_start: int, row_stop: int,
                      color: RGB, alpha: float) -> None:
        """Alpha-blend `color` over whole columns between row_start and row_stop"""
        if not columns or row_stop <= row_start:
            return
        if row_start < 0 or row_stop > self.height:
            raise IndexError(f"rows {row_start}..{row_stop} outside buffer of height {self.height}")
        for x in columns:
            self._check(x, row_start)
        cols = np.asarray(columns, dtype=np.intp)
        region = self._pixels[row_start:row_stop, cols].astype(np.float32)
        blended = region * (1.0 - alpha) + np.asarray(color, dtype=np.float32) * alpha
        self._pixels[row_start:row_stop, cols] = np.rint(blended).astype(np.uint8)

    def save_png(self, path: Union[str, Path]) -> Path:
        """Encode the buffer as an 8-bit RGB PNG"""
        path = Path(path)
        Image.fromarray(self._pixels).save(path, 'PNG')
        logger.info(f"Wrote {self.width}x{self.height} image to {path}")
        return path


def render_text_strip(text: str, width: int, height: int, align: str = 'left',
                      font_family: str = 'monospace') -> np.ndarray:
    """
    Lay out one line of text on a black strip.

    Returns:
        uint8 array of shape (height, width, 3)
    """
    fig = Figure(figsize=(width / TEXT_DPI, height / TEXT_DPI), dpi=TEXT_DPI,
                 facecolor=BACKGROUND_COLOR)
    canvas = FigureCanvasAgg(fig)

    fontsize = max(1.0, height * TEXT_HEIGHT_FRACTION) * 72.0 / TEXT_DPI
    margin = min(TEXT_MARGIN_PX / width, 0.5)
    x = margin if align == 'left' else 1.0 - margin
    fig.text(x, 0.5, text, ha=align, va='center', color=TEXT_COLOR,
             family=font_family, fontsize=fontsize)
    canvas.draw()

    # Canvas size can be off by one pixel after inch rounding
    rgba = np.asarray(canvas.buffer_rgba())
    strip = np.zeros((height, width, 3), dtype=np.uint8)
    rows = min(height, rgba.shape[0])
    cols = min(width, rgba.shape[1])
    strip[:rows, :cols] = rgba[:rows, :cols, :3]
    return strip


def footer_text(document: LogDocument, generated: Optional[datetime] = None) -> str:
    """Summary line: frequency range, sweep/step counts, RBW, generation time"""
    record = document.first
    return (f"{record.start_freq_mhz:.6f}-{record.stop_freq_mhz:.6f} MHz  "
            f"{document.record_count} sweeps x {document.steps} steps  "
            f"RBW {record.rbw_khz:.3f} kHz  "
            f"generated {generation_timestamp(generated)}")


def output_filename(prefix: str, document: LogDocument) -> str:
    """`<prefix>.<end time of last sweep>.png`"""
    return f"{prefix}.{format_log_timestamp(document.last.end_time)}.png"


class SpectrogramRenderer:
    """
    Render a LogDocument into a PixelBuffer.

    Args:
        config: SpectrogramConfig (layout, display window, gridlines, workers)
    """

    def __init__(self, config: Optional[SpectrogramConfig] = None):
        self.config = config or SpectrogramConfig()
        self.color_mapper = ColorMapper(
            min_dbm=self.config.min_power_dbm,
            max_dbm=self.config.max_power_dbm,
            cmap=self.config.cmap,
        )
        self.gridline_calculator = GridlineCalculator(self.config.min_gridlines)

    def render(self, document: LogDocument, title: Optional[str] = None,
               generated: Optional[datetime] = None) -> PixelBuffer:
        """
        Render a parsed log.

        Args:
            document: Parsed log
            title: Banner text (defaults to config.title)
            generated: Generation time shown in the footer (defaults to now)

        Returns:
            PixelBuffer of size steps x (banner + records + footer)
        """
        cfg = self.config
        title = cfg.title if title is None else title
        width = document.steps
        body_top = cfg.banner_height
        body_bottom = body_top + document.record_count
        height = body_bottom + cfg.footer_height

        buffer = PixelBuffer(width, height)
        logger.info(f"Rendering {width}x{height} spectrogram "
                    f"({document.record_count} sweeps, {cfg.workers} worker(s))")

        self._render_body(buffer, document, body_top)

        if cfg.gridlines:
            self._render_gridlines(buffer, document, body_top, body_bottom)

        if cfg.banner_height > 0:
            buffer.write_rows(0, render_text_strip(
                title, width, cfg.banner_height, align='left', font_family=cfg.font_family))
        if cfg.footer_height > 0:
            buffer.write_rows(body_bottom, render_text_strip(
                footer_text(document, generated), width, cfg.footer_height,
                align='right', font_family=cfg.font_family))

        return buffer

    def _render_body(self, buffer: PixelBuffer, document: LogDocument, body_top: int) -> None:
        matrix = document.sample_matrix()
        rows = matrix.shape[0]

        def color_rows(start: int, stop: int) -> None:
            buffer.write_rows(body_top + start, self.color_mapper.map_array(matrix[start:stop]))

        workers = self.config.workers
        if workers == 1 or rows <= ROWS_PER_CHUNK:
            color_rows(0, rows)
            return

        chunk = max(ROWS_PER_CHUNK, -(-rows // workers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='spectrogram') as pool:
            futures = [pool.submit(color_rows, start, min(start + chunk, rows))
                       for start in range(0, rows, chunk)]
            for future in futures:
                future.result()

    def _render_gridlines(self, buffer: PixelBuffer, document: LogDocument,
                          body_top: int, body_bottom: int) -> None:
        record = document.first
        columns = self.gridline_calculator.compute(
            record.start_freq_hz, record.stop_freq_hz, record.steps)
        buffer.blend_columns(columns, body_top, body_bottom, GRIDLINE_COLOR,
                             self.config.gridline_alpha)


def render_spectrogram(document: LogDocument, config: Optional[SpectrogramConfig] = None,
                       title: Optional[str] = None) -> PixelBuffer:
    return SpectrogramRenderer(config).render(document, title=title)
