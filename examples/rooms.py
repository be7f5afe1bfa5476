import random
from wfcgen import *

# walls, floors and doors; overlapping 3x3 patterns keep rooms closed
source = image_from_chars(
    """
    DDDDDDDDDDDD,
    DAAAADAAAAAD,
    DAAAADAAAAAD,
    DAAAAOAAAAAD,
    DAAAADAAAAAD,
    DDODDDDDODDD,
    DAAAAAADAAAD,
    DAAAAAAOAAAD,
    DAAAAAADAAAD,
    DDDDDDDDDDDD,
"""
)

wfc = create_wfc(source, (48, 48), kind="overlapping-tile", tile_size=3)
print(wfc.model)

writer = FfmpegWriter("rooms.mp4", (wfc.height * 3, wfc.width * 3), skip=4)

try:
    success = generate_with_retries(wfc, random.Random(3).random, callback=writer.write)
finally:
    writer.close()

if success:
    save_image("rooms.png", wfc.generated_image()[:48, :48])
else:
    print("!!")
    print(wfc.collapse_status())
