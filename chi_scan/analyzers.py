# chi_scan/analyzers.py
"""
Room photo -> dominant hex colors.

Two palette methods:
- quantized: fixed-size downsample, every Nth pixel, channels snapped to a
  32-step grid, top N colors by frequency (default)
- kmeans: KMeans in LAB space over a random pixel sample
"""

import io
import logging

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans
import cv2

logger = logging.getLogger(__name__)


DECODE_FAILED_MSG = "Could not decode image"
TOO_MANY_PIXELS_MSG = "Image dimensions too large"


class ImageDecodeError(ValueError):
    pass


# ---------- Preprocessing ----------
def load_image_bytes(image_bytes: bytes, max_pixels=None) -> Image.Image:
    """
    Decode an upload to RGB. ``Image.open`` only reads the header, so the
    pixel cap is enforced before any pixel data is decompressed.
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        if max_pixels is not None and img.width * img.height > max_pixels:
            raise ImageDecodeError(TOO_MANY_PIXELS_MSG)
        return img.convert("RGB")
    except (OSError, Image.DecompressionBombError) as e:  # OSError includes PIL.UnidentifiedImageError
        raise ImageDecodeError(DECODE_FAILED_MSG) from e


def preprocess_image_to_pil(img: Image.Image, max_size=1200):
    img_copy = img.copy()
    img_copy.thumbnail((max_size, max_size), Image.LANCZOS)
    return img_copy


def rgb_to_hex(rgb):
    return '#%02x%02x%02x' % tuple(int(c) for c in rgb)


# ---------- Palette extraction (grid sample + quantize) ----------
def quantize_channels(arr, step=32):
    """Snap channels to multiples of ``step`` (half rounds up), capped at 255."""
    q = np.floor(arr.astype(np.float64) / step + 0.5) * step
    return np.clip(q, 0, 255).astype(np.uint8)


def extract_palette_quantized(img: Image.Image, n_colors=5, size=200, step=4, quantize_step=32):
    small = img.resize((size, size), Image.BILINEAR)
    pixels = np.asarray(small)[::step, ::step].reshape(-1, 3)
    pixels = quantize_channels(pixels, quantize_step)

    # unique colors with first-seen index so frequency ties keep scan order
    uniq, first_idx, counts = np.unique(pixels, axis=0, return_index=True, return_counts=True)
    order = sorted(range(len(uniq)), key=lambda i: (-counts[i], first_idx[i]))
    return [rgb_to_hex(uniq[i]) for i in order[:n_colors]]


# ---------- Palette extraction (KMeans in LAB) ----------
def extract_palette_kmeans(img: Image.Image, n_colors=5, sample_pixels=15000, seed=42):
    pixels = np.asarray(img, dtype=np.uint8).reshape(-1, 3)
    if pixels.shape[0] > sample_pixels:
        rng = np.random.RandomState(seed)
        idx = rng.choice(pixels.shape[0], sample_pixels, replace=False)
        pixels_sample = pixels[idx]
    else:
        pixels_sample = pixels

    # never ask for more clusters than there are distinct colors
    n_distinct = len(np.unique(pixels_sample, axis=0))
    n_clusters = max(1, min(n_colors, n_distinct))

    # convert to LAB using OpenCV
    pixels_lab = cv2.cvtColor(pixels_sample.reshape(-1,1,3), cv2.COLOR_RGB2LAB)
    pixels_lab = pixels_lab.reshape(-1,3)

    kmeans = KMeans(n_clusters=n_clusters, random_state=seed, n_init=10).fit(pixels_lab)
    centers_lab = np.clip(kmeans.cluster_centers_.round(), 0, 255).astype(np.uint8)

    # largest cluster first
    sizes = np.bincount(kmeans.labels_, minlength=n_clusters)
    hex_colors = []
    for i in np.argsort(-sizes, kind="stable"):
        lab_pixel = centers_lab[i].reshape(1, 1, 3)
        rgb_pixel = cv2.cvtColor(lab_pixel, cv2.COLOR_LAB2RGB)[0,0]
        hex_colors.append(rgb_to_hex(rgb_pixel))
    return hex_colors


# ---------- Full pipeline ----------
def sample_room_colors(image_bytes: bytes, settings):
    img = load_image_bytes(image_bytes, max_pixels=settings.max_image_pixels)
    if settings.palette_method == "kmeans":
        img_small = preprocess_image_to_pil(img, max_size=settings.kmeans_max_size)
        colors = extract_palette_kmeans(img_small, n_colors=settings.palette_size)
    else:
        colors = extract_palette_quantized(
            img,
            n_colors=settings.palette_size,
            size=settings.sample_size,
            step=settings.sample_step,
            quantize_step=settings.quantize_step,
        )
    logger.debug("sampled %d colors (%s): %s", len(colors), settings.palette_method, colors)
    return colors
