"""Generate a sample image for demos and load tests."""

import sys

from PIL import Image, ImageDraw


def generate_sample_image(path: str, size: tuple[int, int] = (800, 600), fmt: str = "JPEG") -> str:
    """Draw a grid with a centered rectangle so resized output is easy to eyeball."""
    width, height = size
    img = Image.new("RGB", size, color=(41, 128, 185))
    draw = ImageDraw.Draw(img)

    # Draw a simple grid pattern so the thumbnail is visually interesting
    step = max(1, width // 20)
    for x in range(0, width, step):
        draw.line([(x, 0), (x, height)], fill=(52, 152, 219), width=1)
    for y in range(0, height, step):
        draw.line([(0, y), (width, y)], fill=(52, 152, 219), width=1)

    # Draw a centered rectangle
    draw.rectangle(
        [width // 4, height // 4, width * 3 // 4, height * 3 // 4],
        fill=(231, 76, 60), outline=(192, 57, 43), width=3,
    )

    img.save(path, fmt)
    return path


if __name__ == "__main__":
    out = sys.argv[1] if len(sys.argv) > 1 else "sample_data/sample.jpg"
    generate_sample_image(out, (6000, 4000))
    print(f"Created {out} (6000x4000)")
