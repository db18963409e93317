"""
Codec — Convert uploaded raster images to WebP on disk.

Pipeline:
1. Detect the image type from the file's magic bytes
2. Pick the first backend that is available AND supports that type
3. Expand palette / grey+alpha images to RGBA so transparency survives
4. Encode next to the original: same directory, same stem, .webp

Backends, in order:
- Pillow       (in-process bitmap library)
- ImageMagick  (magick / convert binary)

The original file is never deleted here; the orchestrator decides.
Nothing in this module raises to the caller: every failure comes back as
a ConversionResult with `converted == False` and a reason.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..errors import ConversionBackendFailure, ConversionUnsupported
from ..models.outcome import ConversionResult
from ..observability.metrics import MetricsRegistry, metrics as default_metrics
from .filetype import JPEG, PNG, detect_image_type

logger = logging.getLogger(__name__)

# ── Defaults ─────────────────────────────────────────────────

WEBP_QUALITY = 80          # lossy WebP quality (0-100)
TARGET_EXTENSION = ".webp"
CONVERTIBLE_TYPES = (JPEG, PNG)
MAGICK_TIMEOUT = 120       # seconds


def output_path_for(source: Path) -> Path:
    """Same directory and stem as the source, WebP extension."""
    return source.with_suffix(TARGET_EXTENSION)


# ── Backends ─────────────────────────────────────────────────


class CodecBackend(ABC):
    """Interchangeable image-encoding capability."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this backend can run on this host at all."""
        pass

    @abstractmethod
    def supports(self, image_type: str) -> bool:
        """Whether this backend can decode the given input type."""
        pass

    @abstractmethod
    def encode(self, source: Path, dest: Path, quality: int) -> None:
        """
        Write `source` to `dest` as WebP.

        Raises ConversionBackendFailure on any decode/encode error.
        """
        pass


class PillowBackend(CodecBackend):
    """Pillow-based encoder. Needs Pillow built with WebP support."""

    # Pillow codec feature needed to decode each input type
    _DECODERS = {JPEG: "jpg", PNG: "zlib"}

    @property
    def name(self) -> str:
        return "pillow"

    def is_available(self) -> bool:
        try:
            from PIL import features
        except ImportError:
            logger.debug("Pillow not installed")
            return False
        return bool(features.check("webp"))

    def supports(self, image_type: str) -> bool:
        feature = self._DECODERS.get(image_type)
        if feature is None:
            return False
        from PIL import features
        return bool(features.check(feature))

    def encode(self, source: Path, dest: Path, quality: int) -> None:
        from PIL import Image

        try:
            with Image.open(source) as img:
                img.load()
                img = _prepare_mode(img)
                img.save(dest, format="WEBP", quality=quality, method=4)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ConversionBackendFailure(self.name, str(e)) from e


def _prepare_mode(img):
    """
    Normalise colour mode before WebP encoding.

    Palette images and anything carrying transparency become RGBA so that
    transparent pixels do not turn into an opaque fill colour.
    """
    if img.mode in ("P", "PA", "LA") or "transparency" in img.info:
        return img.convert("RGBA")
    if img.mode not in ("RGB", "RGBA"):
        return img.convert("RGB")
    return img


class ImageMagickBackend(CodecBackend):
    """ImageMagick encoder driven through its command-line binary."""

    SUPPORTED = (JPEG, PNG)

    def __init__(self, binary: Optional[str] = None):
        self._binary = binary
        self._webp_delegate: Optional[bool] = None

    @property
    def name(self) -> str:
        return "imagemagick"

    @property
    def binary(self) -> Optional[str]:
        if self._binary is None:
            self._binary = shutil.which("magick") or shutil.which("convert")
        return self._binary

    def is_available(self) -> bool:
        if not self.binary:
            return False
        if self._webp_delegate is None:
            self._webp_delegate = self._detect_webp_delegate()
        return self._webp_delegate

    def _detect_webp_delegate(self) -> bool:
        """Check `-list format` for a WEBP entry. Cached per instance."""
        try:
            proc = subprocess.run(
                [self.binary, "-list", "format"],
                capture_output=True, text=True, timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"ImageMagick format probe failed: {e}")
            return False
        return proc.returncode == 0 and "WEBP" in proc.stdout

    def supports(self, image_type: str) -> bool:
        return image_type in self.SUPPORTED

    def encode(self, source: Path, dest: Path, quality: int) -> None:
        cmd = [
            self.binary,
            # [0] = first frame only
            f"{source}[0]",
            "-quality", str(quality),
            "-define", "webp:alpha-quality=100",
            f"webp:{dest}",
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=MAGICK_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            raise ConversionBackendFailure(self.name, f"timed out after {MAGICK_TIMEOUT}s") from e
        except OSError as e:
            raise ConversionBackendFailure(self.name, str(e)) from e

        if proc.returncode != 0:
            raise ConversionBackendFailure(
                self.name, proc.stderr.strip()[:500] or f"exit code {proc.returncode}"
            )
        if not dest.exists():
            raise ConversionBackendFailure(self.name, "no output written")


def default_backends() -> List[CodecBackend]:
    """Backends in preference order."""
    return [PillowBackend(), ImageMagickBackend()]


# ── Codec ────────────────────────────────────────────────────


class Codec:
    """
    Converts an image file on disk to WebP using the first capable backend.
    """

    def __init__(
        self,
        backends: Optional[Iterable[CodecBackend]] = None,
        quality: int = WEBP_QUALITY,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.backends = list(backends) if backends is not None else default_backends()
        self.quality = quality
        self.metrics = metrics or default_metrics
        self._availability: Dict[str, bool] = {}

    def _is_available(self, backend: CodecBackend) -> bool:
        if backend.name not in self._availability:
            self._availability[backend.name] = backend.is_available()
        return self._availability[backend.name]

    def select_backend(self, source: Path) -> CodecBackend:
        """
        Find a backend for `source`.

        Raises ConversionUnsupported if the file is not a convertible image
        or no available backend handles its type.
        """
        image_type = detect_image_type(source)
        if image_type not in CONVERTIBLE_TYPES:
            raise ConversionUnsupported(source, image_type)

        for backend in self.backends:
            if self._is_available(backend) and backend.supports(image_type):
                return backend
            logger.debug(f"Backend {backend.name} cannot handle {image_type}, trying next")

        raise ConversionUnsupported(source, image_type, reason="no_backend")

    def convert(self, local_path) -> ConversionResult:
        """
        Convert `local_path` to WebP.

        Returns a ConversionResult pointing at the new file, or a
        not-converted result when the input is unsupported or the backend
        failed. The input file is left untouched either way.
        """
        source = Path(local_path)

        try:
            backend = self.select_backend(source)
        except ConversionUnsupported as e:
            logger.debug(f"Not converting {source.name}: {e.reason} ({e.image_type})")
            self.metrics.increment("conversions_total", labels={"result": e.reason})
            return ConversionResult.not_convertible(source, e.reason)

        dest = output_path_for(source)
        if dest == source:
            # A PNG/JPEG stored under a .webp name; converting would overwrite it
            logger.warning(f"Not converting {source.name}: output path equals input")
            self.metrics.increment("conversions_total", labels={"result": "name_clash"})
            return ConversionResult.not_convertible(source, "name_clash")

        try:
            original_size = source.stat().st_size
            backend.encode(source, dest, self.quality)
        except ConversionBackendFailure as e:
            logger.error(f"WebP conversion failed: {e}", extra={"backend": backend.name})
            return self._failed(source, dest)
        except Exception as e:
            logger.exception(f"WebP conversion failed unexpectedly for {source.name}: {e}")
            return self._failed(source, dest)

        new_size = dest.stat().st_size
        pct = new_size / original_size * 100 if original_size else 0
        logger.info(
            f"Converted {source.name} → {dest.name} [{backend.name}]: "
            f"{original_size:,} → {new_size:,} bytes ({pct:.0f}%)",
            extra={"backend": backend.name},
        )
        self.metrics.increment("conversions_total", labels={"result": "converted"})
        return ConversionResult.done(source, dest, backend.name)

    def _failed(self, source: Path, dest: Path) -> ConversionResult:
        if dest != source and dest.exists():
            try:
                dest.unlink()
            except OSError as e:
                logger.warning(f"Could not remove partial output {dest}: {e}")
        self.metrics.increment("conversions_total", labels={"result": "backend_error"})
        return ConversionResult.not_convertible(source, "backend_error")
