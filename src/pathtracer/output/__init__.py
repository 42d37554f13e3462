"""Output module for image export and preview.

Components:
    export: PPM and Pillow image writers
    display: Matplotlib-based preview display
"""

from pathtracer.output.display import show_preview
from pathtracer.output.export import image_to_pixels, save_image, save_png, write_ppm

__all__ = [
    "write_ppm",
    "save_png",
    "save_image",
    "image_to_pixels",
    "show_preview",
]
