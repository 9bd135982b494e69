"""Session record of an image-approximation run.

``TaskState`` owns the target image, the current best genome, counters,
per-kind mutation statistics and the three capability plugins. It is the
single synchronization point for concurrent workers: scoring happens outside
``improvement_lock``, acceptance happens inside it via :meth:`TaskState.try_improve`.

Snapshot layout (little-endian)::

    int32   format version (FORMAT_VERSION)
    int32   shape count
    int32   vertex count
    ...     best match (DNA.write)
    int32   improvement counter
    int32   mutation counter
    int64   elapsed ticks since task start (100 ns units)
    ...     initializer, mutator, evaluator (PluginRegistry.write_module)
    int32   PNG length, then the PNG bytes of the target image
    int32   statistics entry count, then per entry:
            string name, int32 attempts, int32 improvement (truncated)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import io
import os
import random
import tempfile
import threading
from typing import BinaryIO
import xml.etree.ElementTree as ET

from loguru import logger
import numpy as np
from PIL import Image

from imgevolve.exceptions import (
    EvolutionError,
    PluginError,
    SnapshotFormatError,
    SnapshotReadError,
    ValidationError,
)
from imgevolve.genome.dna import DNA
from imgevolve.genome.mutation import Mutation, MutationType
from imgevolve.plugins.base import Evaluator, Initializer, Mutator, Plugin
from imgevolve.plugins.evaluators import RGBEvaluator
from imgevolve.plugins.initializers import SegmentedInitializer
from imgevolve.plugins.mutators import HardMutator
from imgevolve.plugins.registry import PluginRegistry
from imgevolve.rendering.renderer import new_canvas, render_dna
from imgevolve.session.statistics import MutationStatistics
from imgevolve.utils.binary import BinaryReader, BinaryWriter

__all__ = ["TaskState", "FORMAT_VERSION"]

FORMAT_VERSION = 1
TICKS_PER_MICROSECOND = 10

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_ticks(elapsed: timedelta) -> int:
    return (elapsed // timedelta(microseconds=1)) * TICKS_PER_MICROSECOND


def _from_ticks(ticks: int) -> timedelta:
    return timedelta(microseconds=ticks // TICKS_PER_MICROSECOND)


def _decode_png(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return image.convert("RGB")
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise SnapshotReadError(f"Corrupt target image: {exc}") from exc


def _check_registered(plugin: Plugin) -> Plugin:
    # Raises PluginError now rather than on the next save
    PluginRegistry.tag_of(plugin)
    return plugin


class TaskState:
    """All state of one evolution session.

    ``shape_count`` and ``vertex_count`` are fixed at construction. The target
    image is set once and read-only afterwards; ``image_data`` is a read-only
    array view that scoring code may share without locking.

    ``best_match`` is replaced wholesale, never edited in place, with one
    exception: :meth:`set_evaluator` rewrites its divergence under the lock.
    Code that needs an exact view of it must hold ``improvement_lock`` or use
    :meth:`get_best_match`.
    """

    def __init__(
        self,
        shape_count: int,
        vertex_count: int,
        image: Image.Image | None = None,
        *,
        initializer: Initializer | None = None,
        mutator: Mutator | None = None,
        evaluator: Evaluator | None = None,
    ):
        if shape_count <= 0:
            raise ValidationError(f"shape_count must be positive, got {shape_count}")
        if vertex_count <= 0:
            raise ValidationError(f"vertex_count must be positive, got {vertex_count}")
        self._shape_count = shape_count
        self._vertex_count = vertex_count

        self.image: Image.Image | None = None
        self.image_data: np.ndarray | None = None
        self._best_match: DNA | None = None
        self.best_match_render: Image.Image | None = None
        self.project_file_name: str | None = None

        self.improvement_counter = 0
        self.mutation_counter = 0
        self.task_start = _now()
        self.last_improvement_time = self.task_start
        self.last_improvement_mutation_count = 0

        self.mutation_log: list[Mutation] = []
        self.statistics = MutationStatistics()

        self.initializer: Initializer = _check_registered(
            initializer or SegmentedInitializer(color=(0, 0, 0))
        )
        self.mutator: Mutator = _check_registered(mutator or HardMutator())
        self.evaluator: Evaluator = _check_registered(
            evaluator or RGBEvaluator(emphasized=False)
        )

        self.improvement_lock = threading.Lock()

        if image is not None:
            self.set_image(image)

        logger.debug(
            "[TaskState] Init | shapes={}, vertices={}, initializer={}, mutator={}, evaluator={}",
            shape_count,
            vertex_count,
            type(self.initializer).__name__,
            type(self.mutator).__name__,
            type(self.evaluator).__name__,
        )

    # ------------------------------------------------------------------
    # Read-only structure
    # ------------------------------------------------------------------

    @property
    def shape_count(self) -> int:
        return self._shape_count

    @property
    def vertex_count(self) -> int:
        return self._vertex_count

    @property
    def image_width(self) -> int:
        return self.image.width if self.image is not None else 0

    @property
    def image_height(self) -> int:
        return self.image.height if self.image is not None else 0

    @property
    def best_match(self) -> DNA | None:
        """Current best genome, unsynchronized. See :meth:`get_best_match`."""
        return self._best_match

    @property
    def mutation_counts(self) -> dict[MutationType, int]:
        return self.statistics.counts

    @property
    def mutation_improvements(self) -> dict[MutationType, float]:
        return self.statistics.improvements

    @property
    def elapsed(self) -> timedelta:
        return _now() - self.task_start

    def set_image(self, image: Image.Image) -> None:
        """Install the target image. Allowed once per session."""
        if self.image is not None:
            raise EvolutionError("Target image is already set")
        if image.width <= 0 or image.height <= 0:
            raise ValidationError(f"Target image has no pixels: {image.size}")
        self._install_image(image)

    def _install_image(self, image: Image.Image) -> None:
        rgb = image.convert("RGB")
        data = np.array(rgb, dtype=np.uint8)
        data.setflags(write=False)
        self.image = rgb
        self.image_data = data

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    def set_evaluator(self, new_evaluator: Evaluator) -> None:
        """Install *new_evaluator*, re-scoring the best match under it first.

        The whole read-recompute-install sequence runs under the lock so it
        never interleaves with an acceptance.

        Raises:
            PluginError: if the evaluator class is not registered
        """
        _check_registered(new_evaluator)
        with self.improvement_lock:
            if self.image is not None and self._best_match is not None:
                canvas = new_canvas(self.image_width, self.image_height)
                new_evaluator.initialize(self)
                old = self._best_match.divergence
                self._best_match.divergence = new_evaluator.calculate_divergence(
                    canvas, self._best_match, self, 1.0
                )
                logger.info(
                    "[TaskState] Evaluator {} -> {} | best divergence {:.6f} -> {:.6f}",
                    type(self.evaluator).__name__,
                    type(new_evaluator).__name__,
                    old,
                    self._best_match.divergence,
                )
            self.evaluator = new_evaluator

    def set_initializer(self, new_initializer: Initializer) -> None:
        _check_registered(new_initializer)
        with self.improvement_lock:
            self.initializer = new_initializer

    def set_mutator(self, new_mutator: Mutator) -> None:
        _check_registered(new_mutator)
        with self.improvement_lock:
            self.mutator = new_mutator

    # ------------------------------------------------------------------
    # Best-match protocol
    # ------------------------------------------------------------------

    def seed(self, rng: random.Random | None = None) -> DNA:
        """Build, score and install an initial best match."""
        if self.image is None:
            raise EvolutionError("Cannot seed a session without a target image")
        rng = rng or random.Random()

        dna = self.initializer.initialize(rng, self)
        dna.validate_budget(self.shape_count, self.vertex_count)
        canvas = new_canvas(self.image_width, self.image_height)
        dna.divergence = self.evaluator.calculate_divergence(canvas, dna, self, 1.0)

        with self.improvement_lock:
            self._best_match = dna
            self.best_match_render = canvas
            self.last_improvement_time = _now()
            self.last_improvement_mutation_count = self.mutation_counter

        logger.info(
            "[TaskState] Seeded with {} | divergence={:.6f}",
            type(self.initializer).__name__,
            dna.divergence,
        )
        return dna.clone()

    def record_mutation_attempt(self, kind: MutationType | None = None) -> int:
        """Count one mutation attempt; returns the new mutation counter."""
        with self.improvement_lock:
            self.mutation_counter += 1
            if kind is not None:
                self.statistics.record_attempt(kind)
            return self.mutation_counter

    def try_improve(
        self,
        candidate: DNA,
        mutation_type: MutationType | None = None,
        render: Image.Image | None = None,
    ) -> bool:
        """Replace the best match with *candidate* if it is still strictly better.

        *candidate* must already be scored. The comparison is made against the
        live best match inside the lock, so concurrent proposers can never make
        it worse. Returns True when the candidate was accepted.
        """
        candidate.validate_budget(self.shape_count, self.vertex_count)
        owned = candidate.clone()
        kind = mutation_type or candidate.last_mutation

        with self.improvement_lock:
            current = self._best_match
            if current is not None and not owned.divergence < current.divergence:
                return False

            before = current.divergence if current is not None else None
            self._best_match = owned
            self.improvement_counter += 1
            self.last_improvement_time = _now()
            self.last_improvement_mutation_count = self.mutation_counter
            if kind is not None and before is not None:
                self.statistics.record_improvement(kind, before - owned.divergence)
            self.mutation_log.append(
                Mutation(
                    type=kind,
                    divergence_before=before,
                    divergence_after=owned.divergence,
                    mutation_count=self.mutation_counter,
                    timestamp=self.last_improvement_time,
                )
            )
            if render is not None:
                self.best_match_render = render
            improvements = self.improvement_counter

        logger.debug(
            "[TaskState] Improvement #{} | kind={}, divergence={:.6f}",
            improvements,
            kind.value if kind else None,
            owned.divergence,
        )
        return True

    def get_best_match(self) -> DNA | None:
        """Consistent copy of the best match, taken under the lock."""
        with self.improvement_lock:
            return self._best_match.clone() if self._best_match is not None else None

    def render_best_match(self, smooth: bool = False) -> Image.Image:
        best = self.get_best_match()
        if best is None or self.image is None:
            raise EvolutionError("Nothing to render: session is not seeded")
        return render_dna(best, new_canvas(self.image_width, self.image_height), smooth)

    # ------------------------------------------------------------------
    # Binary snapshot
    # ------------------------------------------------------------------

    def serialize(self, stream: BinaryIO) -> None:
        """Write a snapshot of the whole session to *stream* under the lock."""
        with self.improvement_lock:
            if self._best_match is None or self.image is None:
                raise EvolutionError("Cannot serialize a session that is not seeded")

            writer = BinaryWriter(stream)
            writer.write_int32(FORMAT_VERSION)
            writer.write_int32(self.shape_count)
            writer.write_int32(self.vertex_count)
            self._best_match.write(writer)
            writer.write_int32(self.improvement_counter)
            writer.write_int32(self.mutation_counter)
            writer.write_int64(_to_ticks(_now() - self.task_start))

            PluginRegistry.write_module(self.initializer, writer)
            PluginRegistry.write_module(self.mutator, writer)
            PluginRegistry.write_module(self.evaluator, writer)

            buffer = io.BytesIO()
            self.image.save(buffer, format="PNG")
            writer.write_blob(buffer.getvalue())

            # Improvements are narrowed to int32 on write
            writer.write_int32(len(self.statistics))
            for kind, count, improvement in self.statistics.items():
                writer.write_string(kind.value)
                writer.write_int32(count)
                writer.write_int32(int(improvement))

    @classmethod
    def deserialize(cls, stream: BinaryIO) -> TaskState:
        """Rebuild a session from a snapshot.

        Raises:
            SnapshotFormatError: if the format version is not supported
            SnapshotReadError: if the stream is truncated or corrupt
        """
        reader = BinaryReader(stream)
        version = reader.read_int32()
        if version != FORMAT_VERSION:
            raise SnapshotFormatError(
                f"Unsupported snapshot version {version}, expected {FORMAT_VERSION}"
            )

        shape_count = reader.read_int32()
        vertex_count = reader.read_int32()
        if shape_count <= 0 or vertex_count <= 0:
            raise SnapshotReadError(
                f"Invalid genome budget: shapes={shape_count}, vertices={vertex_count}"
            )
        best_match = DNA.read(reader, shape_count, vertex_count)
        improvement_counter = reader.read_int32()
        mutation_counter = reader.read_int32()
        elapsed_ticks = reader.read_int64()

        try:
            initializer = PluginRegistry.read_module(reader, Initializer)
            mutator = PluginRegistry.read_module(reader, Mutator)
            evaluator = PluginRegistry.read_module(reader, Evaluator)
        except PluginError as exc:
            raise SnapshotReadError(f"Invalid plugin in snapshot: {exc}") from exc

        image = _decode_png(reader.read_blob())

        state = cls(
            shape_count,
            vertex_count,
            image,
            initializer=initializer,
            mutator=mutator,
            evaluator=evaluator,
        )

        stat_count = reader.read_int32()
        if stat_count < 0:
            raise SnapshotReadError(f"Negative statistics count: {stat_count}")
        for _ in range(stat_count):
            name = reader.read_string()
            count = reader.read_int32()
            improvement = reader.read_int32()
            kind = MutationType.from_name(name)
            if kind is None:
                logger.warning(f"[TaskState] Discarding unknown mutation statistic {name!r}")
                continue
            state.statistics.set_entry(kind, count, float(improvement))

        now = _now()
        if elapsed_ticks < 0:
            raise SnapshotReadError(f"Negative elapsed time: {elapsed_ticks} ticks")
        try:
            task_start = now - _from_ticks(elapsed_ticks)
        except (OverflowError, ValueError) as exc:
            raise SnapshotReadError(
                f"Elapsed time out of range: {elapsed_ticks} ticks"
            ) from exc

        state._best_match = best_match
        state.improvement_counter = improvement_counter
        state.mutation_counter = mutation_counter
        state.task_start = task_start
        state.last_improvement_time = now
        state.last_improvement_mutation_count = mutation_counter
        return state

    def save(self, path: str | os.PathLike | None = None) -> str:
        """Write a snapshot to *path* (or the last project file) and remember it.

        The snapshot is built in memory, written to a temp file beside the
        target and renamed over it, so a failed save leaves any previous
        snapshot at *path* intact.
        """
        target = os.fspath(path) if path is not None else self.project_file_name
        if target is None:
            raise EvolutionError("No path given and session has no project file")

        buffer = io.BytesIO()
        self.serialize(buffer)

        fd, temp_path = tempfile.mkstemp(
            prefix=".snapshot-", dir=os.path.dirname(os.path.abspath(target))
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(buffer.getvalue())
            os.replace(temp_path, target)
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        self.project_file_name = target
        logger.info(
            "[TaskState] Saved to {} | improvements={}, mutations={}",
            target,
            self.improvement_counter,
            self.mutation_counter,
        )
        return target

    @classmethod
    def load(cls, path: str | os.PathLike) -> TaskState:
        target = os.fspath(path)
        with open(target, "rb") as f:
            state = cls.deserialize(f)
        state.project_file_name = target
        logger.info(
            "[TaskState] Loaded {} | shapes={}, vertices={}, elapsed={}",
            target,
            state.shape_count,
            state.vertex_count,
            state.elapsed,
        )
        return state

    # ------------------------------------------------------------------
    # Vector export
    # ------------------------------------------------------------------

    def serialize_svg(self, consistent: bool = True) -> ET.ElementTree:
        """SVG document of the best match, shapes in drawing order.

        With *consistent* the best match is copied under the lock; otherwise
        the current reference is read as-is and may be stale.
        """
        best = self.get_best_match() if consistent else self._best_match
        if best is None:
            raise EvolutionError("Cannot export a session that is not seeded")

        root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NAMESPACE,
                "xmlns:xlink": XLINK_NAMESPACE,
                "width": str(self.image_width),
                "height": str(self.image_height),
            },
        )
        for shape in best.shapes:
            root.append(shape.to_svg())
        return ET.ElementTree(root)

    def to_svg_string(self, consistent: bool = True) -> str:
        return ET.tostring(self.serialize_svg(consistent).getroot(), encoding="unicode")

    def save_svg(self, path: str | os.PathLike, consistent: bool = True) -> None:
        self.serialize_svg(consistent).write(path, encoding="utf-8", xml_declaration=True)
        logger.info(f"[TaskState] Exported SVG to {os.fspath(path)}")
