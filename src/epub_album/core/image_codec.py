# epub_album/src/epub_album/core/image_codec.py
"""
Ré-encodage d'images avec Pillow.

Le pipeline de recompression ne dépend que de la méthode ``reencode``:
tout objet qui la fournit peut remplacer PillowImageCodec.
"""

import logging
from io import BytesIO
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import ImageConversionFailed
from .models import CompressionFormat

logger = logging.getLogger(__name__)

_ALPHA_MODES = ("RGBA", "LA", "P")


def _flatten_on_white(img: Image.Image) -> Image.Image:
    """Aplatit la transparence sur fond blanc (le JPEG n'a pas de canal alpha)."""
    img = img.convert("RGBA")
    background = Image.new("RGB", img.size, "white")
    background.paste(img, mask=img.split()[-1])
    return background


def _prepare_for(img: Image.Image, fmt: CompressionFormat) -> Image.Image:
    if fmt is CompressionFormat.JPEG:
        if img.mode in _ALPHA_MODES:
            return _flatten_on_white(img)
        if img.mode != "RGB":
            return img.convert("RGB")
        return img

    # WebP conserve la transparence
    if img.mode in _ALPHA_MODES:
        return img.convert("RGBA")
    if img.mode not in ("RGB", "RGBA"):
        return img.convert("RGB")
    return img


class PillowImageCodec:
    """Codec d'image par défaut (Pillow)."""

    def reencode(
        self, data: bytes, quality: float, fmt: Union[str, CompressionFormat]
    ) -> bytes:
        """
        Ré-encode une image.

        Args:
            data: Octets de l'image source (tout format lisible par Pillow)
            quality: Qualité cible entre 0.0 et 1.0
            fmt: Format de sortie (jpeg ou webp)

        Returns:
            Octets de l'image ré-encodée

        Raises:
            ImageConversionFailed: Si l'image est illisible ou l'encodage échoue
        """
        fmt = CompressionFormat.parse(fmt)
        pil_quality = max(0, min(100, int(round(quality * 100))))

        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                prepared = _prepare_for(img, fmt)
                out = BytesIO()
                prepared.save(out, format=fmt.pil_format, quality=pil_quality)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageConversionFailed(str(e)) from e

        result = out.getvalue()
        if not result:
            raise ImageConversionFailed("encoder produced no data")
        logger.debug("Re-encoded %d -> %d bytes (%s, q=%d)", len(data), len(result), fmt.value, pil_quality)
        return result


def estimate_compressed_size(
    original_size: int, quality: float, fmt: Union[str, CompressionFormat]
) -> int:
    """
    Estimation indicative de la taille après compression.

    Heuristique: ratio de base 15:1 pour WebP, 12:1 sinon, multiplié par
    1 + (1 - qualité * 0.5). Ce n'est jamais une garantie.
    """
    fmt = CompressionFormat.parse(fmt)
    base_ratio = 15.0 if fmt is CompressionFormat.WEBP else 12.0
    quality_factor = 1.0 - (quality * 0.5)
    estimated_ratio = base_ratio * (1.0 + quality_factor)
    return int(original_size / estimated_ratio)
