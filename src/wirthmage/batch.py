"""Batch conversion of many files at up to three scale factors.

Each enabled scale factor gets its own worker: a single-thread executor
(one queue) owning one ``ImageProcessor``.  For every input the driver
decodes once, fans the raster out to the workers, collects the encoded
results, and writes them itself, so file writes are serialized while the
CPU-bound conversions overlap.  Cancellation is checked only between
inputs; an item that has started always runs to completion or failure.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from wirthmage.config import ConverterSettings
from wirthmage.encoders import encode
from wirthmage.image_io import load_raster, write_output
from wirthmage.logging import get_logger
from wirthmage.models import (
    ConvertOptions,
    EncodedImage,
    OutputFormat,
    OutputType,
    output_filename,
)
from wirthmage.processor import ImageProcessor, format_for
from wirthmage.raster import Raster

logger = get_logger("batch")

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class BatchReport:
    """Outcome of a batch run."""

    written: list[Path] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    processed: int = 0
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


class ScaleWorker:
    """One logical worker: a private processor behind a one-thread queue."""

    def __init__(self, factor: int, options: ConvertOptions, fmt: OutputFormat) -> None:
        self.factor = factor
        self.options = options
        self.format = fmt
        self._processor = ImageProcessor()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"wirthmage-x{factor}"
        )

    def convert(self, raster: Raster) -> EncodedImage:
        processed = self._processor.process(raster, self.options)
        return encode(processed, self.format)

    async def submit(self, raster: Raster) -> EncodedImage:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.convert, raster)

    def close(self) -> None:
        self._executor.shutdown(wait=True)


def _write_item(
    target_dir: Path,
    base_name: str,
    output_type: OutputType,
    workers: Sequence[ScaleWorker],
    results: Sequence[EncodedImage],
) -> list[Path]:
    """Write every scale of one input; on failure remove what was written."""
    written: list[Path] = []
    try:
        for worker, encoded in zip(workers, results):
            name = output_filename(base_name, worker.factor, output_type)
            written.append(write_output(target_dir, name, encoded))
    except Exception:
        for path in written:
            path.unlink(missing_ok=True)
        logger.debug("Removed %d partial output(s) of %s", len(written), base_name)
        raise
    return written


class BatchConverter:
    """Converts files according to ``ConverterSettings`` into *output_dir*."""

    def __init__(self, settings: ConverterSettings, output_dir: str | Path) -> None:
        self.settings = settings
        self.output_dir = Path(output_dir)

    def _build_workers(self) -> list[ScaleWorker]:
        workers = []
        for factor, _suffix in self.settings.scales():
            options = self.settings.to_convert_options(scale=factor)
            fmt = format_for(self.settings.output_type, options)
            workers.append(ScaleWorker(factor, options, fmt))
        return workers

    async def run(
        self,
        paths: Sequence[str | Path],
        progress_callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchReport:
        """Convert every path; failures are recorded and the batch goes on.

        Args:
            paths: Source image files.
            progress_callback: Optional callback(stage_name, current, total),
                called with ``"item"`` after each input.
            cancel_event: When set, the batch stops before the next input.

        Returns:
            A report of written files, per-input failures, and cancellation.
        """
        report = BatchReport()
        total = len(paths)
        workers = self._build_workers()
        written_names: set[str] = set()
        output_type = self.settings.output_type

        try:
            for position, raw_path in enumerate(paths, start=1):
                path = Path(raw_path)
                base_name = path.stem
                try:
                    raster = await asyncio.to_thread(load_raster, path)
                    results = await asyncio.gather(
                        *(worker.submit(raster) for worker in workers)
                    )

                    target_dir = self.output_dir
                    if base_name in written_names:
                        target_dir = self.output_dir / f"{base_name}-{position}"
                    # claimed before writing so a later input never lands on leftovers
                    written_names.add(base_name)
                    report.written.extend(
                        _write_item(target_dir, base_name, output_type, workers, results)
                    )
                except Exception as exc:  # noqa: BLE001
                    logger.error("Failed to convert %s: %s", path, exc, exc_info=True)
                    report.failures[str(path)] = str(exc)

                report.processed = position
                if progress_callback:
                    progress_callback("item", position, total)

                if cancel_event is not None and cancel_event.is_set():
                    if position < total:
                        report.cancelled = True
                        logger.info(
                            "Batch cancelled after %d of %d inputs", position, total
                        )
                    break
        finally:
            for worker in workers:
                worker.close()

        return report
