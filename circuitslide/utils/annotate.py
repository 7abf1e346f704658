# Edge length, in pixels, of every rendered board image (height, width).
IMG_SIZE = (480, 480)

# BGR palette shared by the image renderer.
BACKGROUND_COLOR = (40, 30, 24)
CELL_COLOR = (72, 56, 46)
EMPTY_COLOR = (20, 16, 12)
WIRE_COLOR = (150, 150, 150)
POWERED_WIRE_COLOR = (60, 220, 255)
SOURCE_COLOR = (40, 200, 250)
CRITTER_COLOR = (110, 90, 230)
POWERED_CRITTER_COLOR = (120, 230, 120)
