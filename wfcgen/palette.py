import numpy as np

PALETTE_LETTERS = [
    'B', # Black
    'W', # White
    'R', # Red
    'I', # Dark blue
    'P', # Dark purple
    'E', # Dark green
    'N', # Brown
    'D', # Dark grey
    'A', # Light grey
    'O', # Orange
    'Y', # Yellow
    'G', # Green
    'U', # Blue
    'S', # Lavender
    'K', # Pink
    'F', # Light peach
]

# https://pico-8.fandom.com/wiki/Palette
PICO8_PALETTE = [
    [0, 0, 0],
    [255, 241, 232],
    [255, 0, 7],
    [29, 43, 83],
    [126, 37, 83],
    [0, 135, 81],
    [171, 82, 54],
    [95, 87, 79],
    [194, 195, 199],
    [255, 163, 0],
    [255, 236, 39],
    [0, 228, 54],
    [41, 173, 255],
    [131, 118, 156],
    [255, 119, 168],
    [255, 204, 170],
]

TRANSPARENT = 255


def array_from_chars(chars):
    width = None
    array = []
    for char in chars:
        if char == ' ' or char == '\n':
            continue
        elif char == ',':
            if width == None:
                width = len(array)
        elif char == '*':
            array.append(TRANSPARENT)
        else:
            try:
                array.append(int(char))
            except ValueError:
                array.append(PALETTE_LETTERS.index(char))

    if width == None:
        return np.array(array, dtype=np.uint8).reshape(1, -1)
    else:
        return np.reshape(np.array(array, dtype=np.uint8), (-1, width))


def image_from_chars(chars, palette=PICO8_PALETTE):
    """
    RGBA image from palette letters, rows separated by ','. '*' is a fully
    transparent pixel.
    """
    indices = array_from_chars(chars)
    image = np.zeros(indices.shape + (4,), dtype=np.uint8)
    opaque = indices != TRANSPARENT
    image[opaque, :3] = np.array(palette, dtype=np.uint8)[indices[opaque]]
    image[opaque, 3] = 255
    return image
