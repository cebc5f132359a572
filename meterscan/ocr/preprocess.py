from __future__ import annotations

from PIL import Image, ImageMath

from meterscan.ocr.base import EnhancedRaster, ImageDecodeError, RawImage, RenderingUnavailable
from meterscan.ocr.config import PreprocessConfig

_LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def _luminance(rgb: Image.Image) -> Image.Image:
    """Float (mode "F") luminance, unrounded."""
    r, g, b = (band.convert("F") for band in rgb.split())
    wr, wg, wb = _LUMA_WEIGHTS
    return ImageMath.lambda_eval(
        lambda args: args["r"] * wr + args["g"] * wg + args["b"] * wb, r=r, g=g, b=b
    )


def _binarize(lum: Image.Image, *, contrast_factor: float, threshold: int) -> Image.Image:
    def _expr(args):
        stretched = (args["lum"] - 128) * contrast_factor + 128
        stretched = args["max"](args["min"](stretched, 255.0), 0.0)
        return (stretched > threshold) * 255

    return ImageMath.lambda_eval(_expr, lum=lum).convert("L")


def _draw(image: RawImage, scale: int) -> Image.Image:
    with image.open() as src:
        try:
            src.load()
        except OSError as err:
            # Pillow raises OSError("decoder ... not available") when a codec is missing.
            if "not available" in str(err):
                raise RenderingUnavailable(f"Cannot draw image {image.name!r}: {err}") from err
            raise ImageDecodeError(f"Cannot decode image {image.name!r}: {err}") from err
        has_alpha = src.mode in ("RGBA", "LA", "PA") or "transparency" in src.info
        surface = src.convert("RGBA" if has_alpha else "RGB")
    w, h = surface.size
    if scale == 1:
        return surface
    return surface.resize((w * scale, h * scale), Image.Resampling.LANCZOS)


def preprocess(image: RawImage, config: PreprocessConfig | None = None) -> EnhancedRaster:
    """Turn a meter photo into a high-contrast black/white raster for digit OCR.

    The photo is upscaled by ``scale_factor``, reduced to luminance, contrast-stretched
    around mid-grey and thresholded. Alpha, when the source has it, is kept as-is.
    """

    cfg = config or PreprocessConfig()
    surface = _draw(image, cfg.scale_factor)

    rgb = surface.convert("RGB") if surface.mode == "RGBA" else surface
    bw = _binarize(
        _luminance(rgb), contrast_factor=cfg.contrast_factor, threshold=cfg.threshold
    )

    if surface.mode == "RGBA":
        alpha = surface.getchannel("A")
        out = Image.merge("RGBA", (bw, bw, bw, alpha))
    else:
        out = bw
    return EnhancedRaster(image=out, scale_factor=cfg.scale_factor)
